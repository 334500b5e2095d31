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

import typing

import requests
import requests_unixsocket

from snapd_client.apps import AppService
from snapd_client.changes import ChangeService
from snapd_client.conf import ConfService
from snapd_client.config import ConnectionConfig
from snapd_client.interfaces import InterfaceService
from snapd_client.service import BaseService, Form, Request
from snapd_client.snaps import SnapService
from snapd_client.system import SystemService


class Client:
    """A client for interacting with the Snapd API.

    All services share one session, which has the unix socket adapter
    mounted, and one immutable ConnectionConfig.

        client = Client()
        client.snaps.install('hello', channel='latest/edge')
        client.conf.get('hello', ['some.key'])
    """

    def __init__(
        self,
        config: typing.Optional[ConnectionConfig] = None,
        session: typing.Optional[requests.Session] = None,
    ):
        super(Client, self).__init__()
        self.__config = config or ConnectionConfig()
        if session is None:
            session = requests.sessions.Session()
            session.mount(
                requests_unixsocket.DEFAULT_SCHEME, requests_unixsocket.UnixAdapter()
            )
        self._session = session
        self._dispatcher = BaseService(self._session, self.__config)
        self.snaps = SnapService(self._session, self.__config)
        self.conf = ConfService(self._session, self.__config)
        self.interfaces = InterfaceService(self._session, self.__config)
        self.apps = AppService(self._session, self.__config)
        self.changes = ChangeService(self._session, self.__config)
        self.system = SystemService(self._session, self.__config)

    @property
    def config(self) -> ConnectionConfig:
        return self.__config

    def request(
        self,
        path: str,
        method: str = "GET",
        query: typing.Optional[typing.Mapping[str, str]] = None,
        body: typing.Any = None,
        form: typing.Optional[Form] = None,
    ) -> dict:
        """Sends an arbitrary request to snapd.

        Useful for endpoints without a dedicated service method.

        :param path: the endpoint path relative to the version prefix,
                     e.g. 'snaps/hello'
        :param method: the HTTP method
        :param query: query parameters
        :param body: JSON body, mutually exclusive with form
        :param form: multipart form, mutually exclusive with body
        :return: the response envelope
        :rtype: dict
        """
        request = Request(
            method=method,
            path=path,
            query=self._dispatcher._query(query or {}) or None,
            body=body,
            form=form,
        )
        return self._dispatcher.dispatch(request)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
