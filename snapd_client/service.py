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

import json
import logging
import typing
from abc import ABC
from collections.abc import Iterable, Mapping
from http import HTTPStatus
from urllib.parse import quote

from pydantic import BaseModel, field_validator, model_validator
from requests.exceptions import RequestException
from requests.models import Response
from requests.sessions import Session
from requests_unixsocket import DEFAULT_SCHEME

from snapd_client.config import ConnectionConfig

LOG = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")

# Content type of the logs endpoint (RFC 7464 record separated JSON)
JSON_SEQ = "application/json-seq"
RECORD_SEPARATOR = "\x1e"


class SnapdException(Exception):
    """An Exception raised when interacting with the snapd service"""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class TransportError(SnapdException):
    """Raised when the snapd socket cannot be reached or the connection fails"""

    pass


class DecodeError(SnapdException):
    """Raised when snapd answers with a body that is not valid JSON"""

    pass


class DaemonError(SnapdException):
    """Raised when snapd answers with an error-typed response envelope.

    The message is the one supplied by the daemon, unmodified. The error
    kind (e.g. 'snap-not-found') and value are kept when present.
    """

    def __init__(
        self,
        message: str = "",
        kind: typing.Optional[str] = None,
        value: typing.Any = None,
        status_code: typing.Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.value = value
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, kind={self.kind!r}, "
            f"status_code={self.status_code!r})"
        )


class SnapdUnauthorizedException(DaemonError):
    """Raised when the user lacks sufficient authorization for a command"""

    pass


def as_list(value: typing.Any) -> typing.List:
    """Normalizes a one-or-many argument to a list.

    Strings and mappings count as a single value; any other iterable is
    copied into a list in its original order.
    """
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        return [value]
    return list(value)


def compact(**fields) -> dict:
    """Drops None values and maps python style names to snapd's dashed ones."""
    return {
        name.replace("_", "-"): value
        for name, value in fields.items()
        if value is not None
    }


class Form(BaseModel):
    """A multipart/form-data payload.

    :param fields: plain text fields, sent in order
    :param files: file fields as (filename, content, content type)
    """

    fields: typing.Dict[str, str] = {}
    files: typing.Dict[str, typing.Tuple[str, typing.Any, str]] = {}


class Request(BaseModel):
    """Describes a single call to the snapd API.

    The path is relative to the versioned prefix, so 'snaps/hello' ends up
    as '/v2/snaps/hello'. Only one of body and form may be given.
    """

    method: str = "GET"
    path: str
    query: typing.Optional[typing.Dict[str, typing.Any]] = None
    body: typing.Any = None
    form: typing.Optional[Form] = None

    @field_validator("method")
    @classmethod
    def _check_method(cls, value: str) -> str:
        method = value.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method {value!r}")
        return method

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        path = value.lstrip("/")
        if not path:
            raise ValueError("path must be a non-empty relative path")
        return path

    @model_validator(mode="after")
    def _check_payload(self) -> "Request":
        if self.body is not None and self.form is not None:
            raise ValueError("body and form are mutually exclusive")
        return self


class BaseService(ABC):
    """BaseService is the base service class for snapd services."""

    def __init__(self, session: Session, config: ConnectionConfig = None):
        """Creates a new BaseService for the Snapd API

        The service class is used to provide convenient APIs for clients to
        use when interacting with the snapd api. The services should loosely
        map to the various components/services from the snapd-api docs.

        See https://snapcraft.io/docs/snapd-api

        :param session: the session to use when interacting with the snapd API
        :type: Session
        :param config: where and how to reach snapd
        :type: ConnectionConfig
        """
        self.__session = session
        self.__config = config or ConnectionConfig()

    @property
    def config(self) -> ConnectionConfig:
        return self.__config

    def url(self, path: str) -> str:
        """Returns the full URL of the given endpoint path.

        The percent-encoded socket path takes the place of the host, which
        is how the unix socket adapter finds the socket to connect to.
        """
        netloc = quote(self.__config.socket_path, safe="")
        return f"{DEFAULT_SCHEME}{netloc}/{self.__config.prefix}/{path.lstrip('/')}"

    def headers(self) -> typing.Dict[str, str]:
        allow = "true" if self.__config.allow_interaction else "false"
        return {"Host": "", "X-Allow-Interaction": allow}

    def dispatch(self, request: Request) -> dict:
        """Sends the request to snapd and interprets the response envelope.

        :param request: the request to send
        :type request: Request
        :return: the response envelope, unchanged
        :rtype: dict
        :raises TransportError: if snapd could not be reached
        :raises DecodeError: if the response is not valid JSON
        :raises DaemonError: if snapd answered with an error envelope
        """
        url = self.url(request.path)
        kwargs = {}
        if request.query:
            kwargs["params"] = request.query
        if request.body is not None:
            kwargs["json"] = request.body
        elif request.form is not None:
            kwargs["data"] = request.form.fields
            kwargs["files"] = request.form.files

        LOG.debug("[%s] %s, query=%s", request.method, url, request.query)
        try:
            response = self.__session.request(
                method=request.method, url=url, headers=self.headers(), **kwargs
            )
        except RequestException as e:
            raise TransportError(
                f"Unable to reach snapd at {self.__config.socket_path}: {e}"
            ) from e
        if LOG.isEnabledFor(logging.DEBUG):
            LOG.debug("Response(%s) = %s", response.status_code, response.content)

        envelope = self._decode(response)
        if isinstance(envelope, dict) and envelope.get("type") == "error":
            raise self._daemon_error(envelope, response.status_code)

        return envelope

    def _decode(self, response: Response) -> typing.Any:
        content_type = response.headers.get("Content-Type", "")
        try:
            if content_type.startswith(JSON_SEQ):
                records = [
                    json.loads(record)
                    for record in response.text.split(RECORD_SEPARATOR)
                    if record.strip()
                ]
                return {
                    "type": "sync",
                    "status-code": response.status_code,
                    "result": records,
                }
            return response.json()
        except ValueError as e:
            raise DecodeError(
                f"Invalid JSON in snapd response ({response.status_code}): {e}"
            ) from e

    def _daemon_error(self, envelope: dict, status_code: int) -> DaemonError:
        result = envelope.get("result")
        if not isinstance(result, dict):
            result = {"message": "" if result is None else str(result)}

        status_code = envelope.get("status-code", status_code)
        error_cls = DaemonError
        if status_code in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN):
            error_cls = SnapdUnauthorizedException

        return error_cls(
            result.get("message", ""),
            kind=result.get("kind"),
            value=result.get("value"),
            status_code=status_code,
        )

    def _query(self, params: typing.Mapping[str, typing.Any]) -> dict:
        """Renders query parameters, skipping the ones that are None
        or empty sequences.

        Sequences are joined with commas, booleans become 'true'/'false'.
        """
        query = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            elif not isinstance(value, (str, int)):
                items = as_list(value)
                if not items:
                    continue
                value = ",".join(str(item) for item in items)
            query[key] = str(value)
        return query

    def _request(self, method, path, **kwargs):
        return self.dispatch(Request(method=method, path=path, **kwargs))

    def _get(self, path, params=None):
        return self._request("GET", path, query=self._query(params or {}) or None)

    def _post(self, path, json=None, form=None):
        return self._request("POST", path, body=json, form=form)

    def _put(self, path, json=None):
        return self._request("PUT", path, body=json)
