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

from snapd_client.changes import Change, Status, TimeoutException
from snapd_client.client import Client
from snapd_client.config import ConnectionConfig
from snapd_client.service import (
    DaemonError,
    DecodeError,
    Form,
    Request,
    SnapdException,
    SnapdUnauthorizedException,
    TransportError,
)

__all__ = [
    "Change",
    "Client",
    "ConnectionConfig",
    "DaemonError",
    "DecodeError",
    "Form",
    "Request",
    "SnapdException",
    "SnapdUnauthorizedException",
    "Status",
    "TimeoutException",
    "TransportError",
]
