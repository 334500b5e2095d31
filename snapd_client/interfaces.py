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
from enum import Enum

from snapd_client import service
from snapd_client.service import as_list

Endpoint = typing.Union[str, typing.Mapping[str, str]]


class InterfaceAction(Enum):
    """Actions to take on interfaces"""

    Connect = "connect"
    Disconnect = "disconnect"


class InterfaceService(service.BaseService):
    """Lists interfaces and manages their connections"""

    def interfaces(
        self,
        select: typing.Optional[str] = None,
        names: typing.Optional[typing.Union[str, typing.Iterable[str]]] = None,
        plugs: typing.Optional[bool] = None,
        slots: typing.Optional[bool] = None,
    ) -> dict:
        """Lists the interfaces known to snapd.

        :param select: 'all' or 'connected'
        :param names: only list these interfaces
        :param plugs: include the plugs of each interface
        :param slots: include the slots of each interface
        :return: the response envelope
        :rtype: dict
        """
        params = {"select": select, "names": names, "plugs": plugs, "slots": slots}
        return self._get("interfaces", params=params)

    def connect(
        self,
        slots: typing.Union[Endpoint, typing.Iterable[Endpoint]],
        plugs: typing.Union[Endpoint, typing.Iterable[Endpoint]],
    ) -> dict:
        """Connects plugs to slots.

        Each slot and plug is either a mapping such as
        {'snap': 'core', 'slot': 'network'} or a string, and may be given
        on its own or as a list.
        """
        return self._update_interfaces(InterfaceAction.Connect, slots, plugs)

    def disconnect(
        self,
        slots: typing.Union[Endpoint, typing.Iterable[Endpoint]],
        plugs: typing.Union[Endpoint, typing.Iterable[Endpoint]],
    ) -> dict:
        """Disconnects plugs from slots."""
        return self._update_interfaces(InterfaceAction.Disconnect, slots, plugs)

    def _update_interfaces(self, action: InterfaceAction, slots, plugs) -> dict:
        data = {
            "action": str(action.value),
            "slots": as_list(slots),
            "plugs": as_list(plugs),
        }
        return self._post("interfaces", json=data)
