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

"""config.py

Connection settings shared by the client and its services.
"""
import os
import typing

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_SOCKET_PATH = "/run/snapd.socket"
DEFAULT_API_VERSION = "2"

_TRUTHY = ("1", "true", "yes", "on")


class ConnectionConfig(BaseModel):
    """How to reach the snapd daemon.

    The configuration is frozen once built; a client owns exactly one.
    """

    model_config = ConfigDict(frozen=True)

    socket_path: str = DEFAULT_SOCKET_PATH
    version: str = DEFAULT_API_VERSION
    allow_interaction: bool = False

    @field_validator("socket_path", mode="before")
    @classmethod
    def _coerce_path(cls, value):
        # Accept pathlib.Path as well as str
        return str(value)

    @field_validator("version", mode="before")
    @classmethod
    def _normalize_version(cls, value):
        version = str(value).strip()
        if version[:1].lower() == "v":
            version = version[1:]
        if not version:
            raise ValueError("API version must not be empty")
        return version

    @property
    def prefix(self) -> str:
        """The versioned path prefix, e.g. 'v2'."""
        return f"v{self.version}"

    @classmethod
    def from_env(
        cls, environ: typing.Optional[typing.Mapping[str, str]] = None, **overrides
    ) -> "ConnectionConfig":
        """Builds a configuration from the environment.

        SNAPD_SOCKET, SNAPD_API_VERSION and SNAPD_ALLOW_INTERACTION are
        consulted; anything unset falls back to the defaults. Keyword
        overrides that are not None win over the environment.

        :param environ: the mapping to read from, os.environ by default
        :param overrides: explicit field values
        :return: the connection configuration
        :rtype: ConnectionConfig
        """
        if environ is None:
            environ = os.environ

        values = {}
        if environ.get("SNAPD_SOCKET"):
            values["socket_path"] = environ["SNAPD_SOCKET"]
        if environ.get("SNAPD_API_VERSION"):
            values["version"] = environ["SNAPD_API_VERSION"]
        if environ.get("SNAPD_ALLOW_INTERACTION"):
            values["allow_interaction"] = (
                environ["SNAPD_ALLOW_INTERACTION"].lower() in _TRUTHY
            )

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
