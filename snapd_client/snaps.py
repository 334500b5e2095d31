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
from snapd_client.service import Form, compact

DEFAULT_SNAP_FILENAME = "snap.snap"
SNAP_CONTENT_TYPE = "application/octet-stream"


class SnapAction(Enum):
    """Actions to take on a snap"""

    Install = "install"
    Refresh = "refresh"
    Remove = "remove"
    Revert = "revert"
    Enable = "enable"
    Disable = "disable"
    Switch = "switch"


class SnapService(service.BaseService):
    """Lists, inspects and manages snaps"""

    def list(
        self,
        snaps: typing.Optional[typing.Union[str, typing.Iterable[str]]] = None,
        select: typing.Optional[str] = None,
    ) -> dict:
        """Lists the installed snaps.

        :param snaps: only list these snaps (a name or a list of names)
        :param select: 'all' to include inactive revisions, 'enabled' to
                       only list enabled snaps, 'refresh-inhibited', ...
        :return: the response envelope
        :rtype: dict
        """
        return self._get("snaps", params={"snaps": snaps, "select": select})

    def info(self, name: typing.Optional[str] = None) -> dict:
        """Returns the details of an installed snap.

        Without a name this is the same as listing all installed snaps.
        """
        if name:
            return self._get(f"snaps/{name}")
        return self._get("snaps")

    def find(
        self,
        query: typing.Optional[str] = None,
        name: typing.Optional[str] = None,
        section: typing.Optional[str] = None,
        select: typing.Optional[str] = None,
        scope: typing.Optional[str] = None,
    ) -> dict:
        """Searches the store.

        :param query: free text search term
        :param name: exact snap name to look up
        :param section: only search this store section
        :param select: 'refresh' for pending refreshes, 'private' ...
        :param scope: 'wide' to search beyond the default scope
        :return: the response envelope
        :rtype: dict
        """
        params = {
            "q": query,
            "name": name,
            "section": section,
            "select": select,
            "scope": scope,
        }
        return self._get("find", params=params)

    def install(
        self,
        name: str,
        channel: typing.Optional[str] = None,
        revision: typing.Optional[str] = None,
        classic: typing.Optional[bool] = None,
        devmode: typing.Optional[bool] = None,
        jailmode: typing.Optional[bool] = None,
        cohort_key: typing.Optional[str] = None,
        **kwargs,
    ) -> dict:
        """Installs the specified snap from the store.

        By default, the default channel of the snap is installed. This can be
        explicitly determined by specifying the channel[/track[/risk]],
        e.g. channel='yoga/edge'.

        Additional arguments can be provided through the **kwargs argument that
        will be provided to the snapd API itself, with underscores turned into
        dashes. These may include, but are not limited to:

        - ignore_validation: ignore validation by other snaps blocking
                             the install if true
        - (and others, check https://snapcraft.io/docs/snapd-api)

        For example, the following code installs the 'hello' snap from the
        `latest/edge` channel in devmode:

            snap_service.install('hello', channel='latest/edge',
                                 devmode=True)

        :param name: the name of the snap to install
        :type: str
        :param channel: optional string specifying the channel[/track[/risk]]
                        to install the snap from
        :return: the response envelope; its 'change' key holds the change id
                 used to track the asynchronous action
        :rtype: dict
        """
        return self._update_snap(
            SnapAction.Install,
            name,
            channel=channel,
            revision=revision,
            classic=classic,
            devmode=devmode,
            jailmode=jailmode,
            cohort_key=cohort_key,
            **kwargs,
        )

    def sideload(
        self,
        payload: typing.Union[bytes, typing.BinaryIO],
        filename: str = DEFAULT_SNAP_FILENAME,
        snap_path: typing.Optional[str] = None,
        devmode: bool = False,
        dangerous: bool = False,
        classic: bool = False,
        jailmode: bool = False,
    ) -> dict:
        """Installs a snap from a local .snap file.

        The file is uploaded to snapd as multipart/form-data. Unsigned snaps
        need dangerous=True.

        :param payload: the content of the .snap file, or an open binary file
        :param filename: the filename reported for the uploaded file
        :param snap_path: the original path of the file, if any
        :return: the response envelope
        :rtype: dict
        """
        fields = {"action": SnapAction.Install.value}
        flags = {
            "devmode": devmode,
            "dangerous": dangerous,
            "classic": classic,
            "jailmode": jailmode,
        }
        for flag, enabled in flags.items():
            if enabled:
                fields[flag] = "true"
        if snap_path:
            fields["snap-path"] = str(snap_path)

        form = Form(
            fields=fields,
            files={"snap": (filename, payload, SNAP_CONTENT_TYPE)},
        )
        return self._post("snaps", form=form)

    def remove(
        self,
        name: str,
        purge: typing.Optional[bool] = None,
        revision: typing.Optional[str] = None,
        **kwargs,
    ) -> dict:
        """Removes an installed snap from the system.

        Remove the installed snap from the system. By default, this will save a
        snapshot of the user data directory. To remove this directory as well,
        specify purge=True.

        :param name: the name of the snap to remove
        :type name: str
        :param purge: whether to purge the snapshot data
        :type purge: bool
        :param revision: only remove this revision
        :return: the response envelope
        :rtype: dict
        """
        return self._update_snap(
            SnapAction.Remove, name, purge=purge, revision=revision, **kwargs
        )

    def refresh(
        self,
        name: str,
        channel: typing.Optional[str] = None,
        revision: typing.Optional[str] = None,
        classic: typing.Optional[bool] = None,
        devmode: typing.Optional[bool] = None,
        jailmode: typing.Optional[bool] = None,
        **kwargs,
    ) -> dict:
        """Refreshes a snap, optionally switching channel or revision."""
        return self._update_snap(
            SnapAction.Refresh,
            name,
            channel=channel,
            revision=revision,
            classic=classic,
            devmode=devmode,
            jailmode=jailmode,
            **kwargs,
        )

    def revert(
        self,
        name: str,
        revision: typing.Optional[str] = None,
        classic: typing.Optional[bool] = None,
        devmode: typing.Optional[bool] = None,
        jailmode: typing.Optional[bool] = None,
    ) -> dict:
        """Reverts a snap to its previous (or the given) revision."""
        return self._update_snap(
            SnapAction.Revert,
            name,
            revision=revision,
            classic=classic,
            devmode=devmode,
            jailmode=jailmode,
        )

    def enable(self, name: str) -> dict:
        return self._update_snap(SnapAction.Enable, name)

    def disable(self, name: str) -> dict:
        return self._update_snap(SnapAction.Disable, name)

    def switch(self, name: str, channel: str) -> dict:
        """Switches the channel a snap tracks without refreshing it."""
        return self._update_snap(SnapAction.Switch, name, channel=channel)

    def _update_snap(self, action: SnapAction, name: str, **kwargs) -> dict:
        data = {"action": str(action.value)}
        data.update(compact(**kwargs))

        return self._post(f"snaps/{name}", json=data)
