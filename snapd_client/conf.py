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

from snapd_client import service


class ConfService(service.BaseService):
    """Reads and writes snap configuration"""

    def get(
        self,
        name: str,
        keys: typing.Optional[typing.Union[str, typing.Iterable[str]]] = None,
    ) -> dict:
        """Returns configuration values of a snap.

        :param name: the snap to query
        :type name: str
        :param keys: a key or list of keys to fetch; all of them if omitted
        :return: the response envelope, the values are under 'result'
        :rtype: dict
        """
        return self._get(f"snaps/{name}/conf", params={"keys": keys})

    def set(self, name: str, conf: typing.Mapping[str, typing.Any]) -> dict:
        """Sets configuration values of a snap.

        Dotted keys are passed through as-is, a value of None unsets the key.

        :param name: the snap to configure
        :type name: str
        :param conf: mapping of configuration keys to their new values
        :type conf: Mapping
        :return: the response envelope; its 'change' key tracks the
                 asynchronous configure hook
        :rtype: dict
        """
        return self._put(f"snaps/{name}/conf", json=dict(conf))
