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
from snapd_client.service import as_list, compact

Names = typing.Union[str, typing.Iterable[str]]


class AppAction(Enum):
    """Actions to take on app"""

    Stop = "stop"
    Start = "start"
    Restart = "restart"


class AppService(service.BaseService):
    """Lists and manages the apps and services of snaps"""

    def services(self, names: typing.Optional[Names] = None) -> dict:
        """Lists services.

        :param names: snap or snap.app names to restrict the listing to
        :return: the response envelope
        :rtype: dict
        """
        return self._get("apps", params={"select": "service", "names": names})

    def start(self, names: Names, enable: typing.Optional[bool] = None) -> dict:
        """Start list of apps or all apps in a snap.

        Start the apps specified in names. If snap is specified
        in names, start all the apps in the snap.

        :param names: name of app or snap, or a list of them
        :type names: str or list
        :param enable: also enable the services at boot
        :return: the response envelope
        :rtype: dict
        """
        return self._update_app(AppAction.Start, names, enable=enable)

    def stop(self, names: Names, disable: typing.Optional[bool] = None) -> dict:
        """Stop list of apps or all apps in a snap.

        Stop the apps specified in names. If snap is specified
        in names, stop all the apps in the snap.

        :param names: name of app or snap, or a list of them
        :type names: str or list
        :param disable: also disable the services at boot
        :return: the response envelope
        :rtype: dict
        """
        return self._update_app(AppAction.Stop, names, disable=disable)

    def restart(self, names: Names, reload: typing.Optional[bool] = None) -> dict:
        """Restart list of apps or all apps in a snap.

        :param names: name of app or snap, or a list of them
        :type names: str or list
        :param reload: reload the services instead of restarting them where
                       they support it
        :return: the response envelope
        :rtype: dict
        """
        return self._update_app(AppAction.Restart, names, reload=reload)

    def logs(
        self, names: typing.Optional[Names] = None, n: typing.Optional[int] = None
    ) -> dict:
        """Returns the journal entries of services.

        snapd sends log entries as a JSON sequence; they are returned as a
        list under the 'result' key of a sync envelope.

        :param names: snap or snap.app names to fetch the logs of
        :param n: number of entries to return, -1 for all
        :return: the response envelope
        :rtype: dict
        """
        return self._get("logs", params={"names": names, "n": n})

    def _update_app(self, action: AppAction, names: Names, **kwargs) -> dict:
        data = {
            "action": str(action.value),
            "names": as_list(names),
        }
        data.update(compact(**kwargs))

        return self._post("apps", json=data)
