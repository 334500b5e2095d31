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
from datetime import datetime, timedelta
from unittest.mock import patch

from snapd_client.changes import Change, ChangeService, Status, TimeoutException
from tests.unit.snapd_client.base import ServiceTestCase, make_response


def change_envelope(status="Doing", ready=False):
    return {
        "type": "sync",
        "status-code": 200,
        "status": "OK",
        "result": {
            "id": "7",
            "kind": "install-snap",
            "summary": 'Install "hello" snap',
            "status": status,
            "ready": ready,
            "spawn-time": "2022-11-22T10:00:00Z",
            "tasks": [
                {
                    "id": "70",
                    "kind": "download-snap",
                    "summary": 'Download snap "hello"',
                    "status": status,
                    "progress": {"label": "", "done": 1, "total": 1},
                    "spawn-time": "2022-11-22T10:00:00Z",
                }
            ],
        },
    }


class TestChanges(ServiceTestCase):
    service_class = ChangeService

    def test_changes_without_id(self):
        self.service.changes()
        self.assertRequested("GET", "changes")

    def test_changes_with_zero_id(self):
        self.service.changes(0)
        self.assertRequested("GET", "changes/0")

    def test_changes_select_and_snap(self):
        self.service.changes(select="all", snap="hello")
        self.assertRequested("GET", "changes", params={"select": "all", "for": "hello"})

    def test_abort(self):
        self.service.abort(7)
        self.assertRequested("POST", "changes/7", json={"action": "abort"})

    def test_get_status(self):
        self.respond_with(change_envelope())
        change = self.service.get_status(7)

        self.assertRequested("GET", "changes/7")
        self.assertIsInstance(change, Change)
        self.assertEqual(change.id, 7)
        self.assertEqual(change.status, Status.DoingStatus)
        self.assertEqual(change.tasks[0].progress.done, 1)
        self.assertIsNotNone(change.spawn_time)


@patch("snapd_client.changes.time.sleep")
class TestWaitUntil(ServiceTestCase):
    service_class = ChangeService

    def test_wait_until_done(self, sleep):
        self.session.request.side_effect = [
            make_response(change_envelope("Doing")),
            make_response(change_envelope("Done", ready=True)),
        ]
        change = self.service.wait_until(7, timeout=60)

        self.assertEqual(change.status, Status.DoneStatus)
        self.assertEqual(self.session.request.call_count, 2)
        sleep.assert_called_once()

    def test_wait_until_any_of(self, sleep):
        self.respond_with(change_envelope("Error", ready=True))
        change = self.service.wait_until(
            7, [Status.DoneStatus, Status.ErrorStatus], timeout=60
        )
        self.assertEqual(change.status, Status.ErrorStatus)
        sleep.assert_not_called()

    def test_wait_until_sleeps_the_remainder(self, sleep):
        clock = [datetime(2022, 11, 22, 10, 0, 0)]

        def advance(seconds):
            clock[0] += timedelta(seconds=seconds)

        sleep.side_effect = advance
        self.respond_with(change_envelope("Doing"))
        with patch("snapd_client.changes.datetime") as fake_datetime:
            fake_datetime.now.side_effect = lambda: clock[0]
            with self.assertRaises(TimeoutException):
                self.service.wait_until(7, timeout=2, sleep_time=1.5)

        self.assertEqual(self.session.request.call_count, 2)
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [1.5, 0.5])

    def test_wait_until_timeout(self, sleep):
        with self.assertRaises(TimeoutException) as ctx:
            self.service.wait_until(7, [Status.DoneStatus, Status.ErrorStatus], 0)

        self.assertIn("change 7", ctx.exception.message)
        self.assertIn("one of Done, Error", ctx.exception.message)
        self.session.request.assert_not_called()


if __name__ == "__main__":
    unittest.main()
