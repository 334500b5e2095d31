# Copyright (c) 2022 Canonical Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or
# implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import unittest
from unittest import mock

from pydantic import ValidationError
from requests.exceptions import ConnectionError as RequestsConnectionError

from snapd_client.config import ConnectionConfig
from snapd_client.service import (
    BaseService,
    DaemonError,
    DecodeError,
    Form,
    Request,
    SnapdUnauthorizedException,
    TransportError,
    as_list,
    compact,
)
from tests.unit.snapd_client.base import (
    SOCKET_URL,
    ServiceTestCase,
    make_response,
)


class TestRequest(unittest.TestCase):
    def test_defaults_to_get(self):
        request = Request(path="system-info")
        self.assertEqual(request.method, "GET")
        self.assertIsNone(request.body)
        self.assertIsNone(request.form)

    def test_method_is_upper_cased(self):
        self.assertEqual(Request(method="post", path="snaps").method, "POST")

    def test_unknown_method(self):
        with self.assertRaises(ValidationError):
            Request(method="FETCH", path="snaps")

    def test_leading_slash_is_stripped(self):
        self.assertEqual(Request(path="/snaps/hello").path, "snaps/hello")

    def test_empty_path(self):
        with self.assertRaises(ValidationError):
            Request(path="")
        with self.assertRaises(ValidationError):
            Request(path="/")

    def test_body_and_form_are_exclusive(self):
        form = Form(fields={"action": "install"})
        with self.assertRaises(ValueError):
            Request(method="POST", path="snaps", body={"a": 1}, form=form)


class TestHelpers(unittest.TestCase):
    def test_as_list_scalar(self):
        self.assertEqual(as_list("core"), ["core"])
        self.assertEqual(as_list({"snap": "core"}), [{"snap": "core"}])

    def test_as_list_sequence_keeps_order(self):
        self.assertEqual(as_list(("b", "a")), ["b", "a"])

    def test_compact(self):
        self.assertEqual(
            compact(channel="edge", revision=None, ignore_validation=True),
            {"channel": "edge", "ignore-validation": True},
        )


class TestDispatch(ServiceTestCase):
    service_class = BaseService

    def test_url_and_headers(self):
        self.service.dispatch(Request(path="system-info"))

        self.session.request.assert_called_once_with(
            method="GET",
            url=f"{SOCKET_URL}/v2/system-info",
            headers={"Host": "", "X-Allow-Interaction": "false"},
        )

    def test_custom_socket_and_version(self):
        config = ConnectionConfig(
            socket_path="/tmp/snapd.sock", version="v3", allow_interaction=True
        )
        service = BaseService(self.session, config)
        service.dispatch(Request(path="snaps"))

        self.assertEqual(self.sent["url"], "http+unix://%2Ftmp%2Fsnapd.sock/v3/snaps")
        self.assertEqual(self.sent["headers"]["X-Allow-Interaction"], "true")

    def test_query_and_json_body(self):
        self.service.dispatch(
            Request(method="POST", path="snaps/hello", query={"a": "1"}, body={"b": 2})
        )
        self.assertEqual(self.sent["params"], {"a": "1"})
        self.assertEqual(self.sent["json"], {"b": 2})
        self.assertNotIn("files", self.sent)

    def test_form(self):
        form = Form(
            fields={"action": "install"},
            files={"snap": ("hello.snap", b"data", "application/octet-stream")},
        )
        self.service.dispatch(Request(method="POST", path="snaps", form=form))

        self.assertEqual(self.sent["data"], {"action": "install"})
        self.assertEqual(
            self.sent["files"],
            {"snap": ("hello.snap", b"data", "application/octet-stream")},
        )
        self.assertNotIn("json", self.sent)

    def test_sync_envelope_is_returned_unchanged(self):
        envelope = {
            "type": "sync",
            "status-code": 200,
            "status": "OK",
            "result": {"series": "16"},
        }
        self.respond_with(envelope)
        self.assertEqual(self.service.dispatch(Request(path="system-info")), envelope)

    def test_error_envelope_raises(self):
        self.respond_with(
            {
                "type": "error",
                "status-code": 404,
                "status": "Not Found",
                "result": {"message": "snap not installed", "kind": "snap-not-found"},
            },
            status_code=404,
        )
        with self.assertRaises(DaemonError) as ctx:
            self.service.dispatch(Request(path="snaps/nope"))

        self.assertEqual(str(ctx.exception), "snap not installed")
        self.assertEqual(ctx.exception.message, "snap not installed")
        self.assertEqual(ctx.exception.kind, "snap-not-found")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_error_envelope_without_status_code(self):
        self.respond_with({"type": "error", "result": {"message": "X"}})
        with self.assertRaises(DaemonError) as ctx:
            self.service.dispatch(Request(path="snaps"))
        self.assertEqual(ctx.exception.message, "X")
        self.assertEqual(ctx.exception.status_code, 200)

    def test_unauthorized(self):
        self.respond_with(
            {
                "type": "error",
                "status-code": 401,
                "result": {"message": "access denied", "kind": "login-required"},
            },
            status_code=401,
        )
        with self.assertRaises(SnapdUnauthorizedException) as ctx:
            self.service.dispatch(Request(method="POST", path="snaps/hello"))
        self.assertIsInstance(ctx.exception, DaemonError)
        self.assertEqual(ctx.exception.message, "access denied")

    def test_invalid_json(self):
        self.session.request.return_value = make_response(text="Some invalid JSON")
        with self.assertRaises(DecodeError) as ctx:
            self.service.dispatch(Request(path="snaps"))
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    def test_transport_error(self):
        error = RequestsConnectionError("No such file or directory")
        self.session.request.side_effect = error
        with self.assertRaises(TransportError) as ctx:
            self.service.dispatch(Request(path="snaps"))
        self.assertIs(ctx.exception.__cause__, error)
        self.assertIn("/run/snapd.socket", ctx.exception.message)

    def test_json_seq_is_collected(self):
        text = '\x1e{"message": "one"}\n\x1e{"message": "two"}\n'
        self.session.request.return_value = make_response(
            text=text, content_type="application/json-seq"
        )
        envelope = self.service.dispatch(Request(path="logs"))
        self.assertEqual(envelope["type"], "sync")
        self.assertEqual(
            envelope["result"], [{"message": "one"}, {"message": "two"}]
        )

    def test_get_renders_query(self):
        self.service._get(
            "things", params={"names": ["a", "b"], "flag": True, "n": 5, "x": None}
        )
        self.assertEqual(self.sent["params"], {"names": "a,b", "flag": "true", "n": "5"})

    def test_response_body_logged_only_at_debug(self):
        with mock.patch("snapd_client.service.LOG") as log:
            log.isEnabledFor.return_value = False
            self.service.dispatch(Request(path="snaps"))
        self.assertEqual(log.debug.call_count, 1)

        with self.assertLogs("snapd_client.service", level="DEBUG") as logs:
            self.service.dispatch(Request(path="snaps"))
        self.assertTrue(any("Response(200)" in line for line in logs.output))

    def test_get_skips_empty_sequences(self):
        self.service._get("things", params={"names": [], "keys": ()})
        self.assertNotIn("params", self.sent)

    def test_get_without_query(self):
        self.service._get("things", params={"x": None})
        self.assertNotIn("params", self.sent)

    def test_config_defaults(self):
        service = BaseService(mock.MagicMock())
        self.assertEqual(service.config, ConnectionConfig())


if __name__ == "__main__":
    unittest.main()
