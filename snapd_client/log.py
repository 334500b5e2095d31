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

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

# Loggers of dependencies that are too chatty at DEBUG
NOISY_LOGGERS = ["urllib3", "requests_unixsocket"]


def setup_root_logging(verbose: bool = False, console: Optional[Console] = None):
    """Sets up the root logger for the command line client.

    Nothing is printed to the console unless verbose output was requested,
    in which case every record down to DEBUG goes through a RichHandler
    writing to stderr, so the JSON written to stdout stays parseable.

    :param verbose: whether to log to the console
    :type verbose: bool
    :param console: the rich console to log to, stderr by default
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    for namespace in NOISY_LOGGERS:
        logging.getLogger(namespace).setLevel(logging.WARNING)

    if verbose:
        handler = RichHandler(console=console or Console(stderr=True))
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(handler)


def setup_logging(logfile: Union[Path, str]) -> None:
    """Records all logging to the specified logfile as well.

    :param logfile: the file to record logging information to
    :type logfile: Path or str
    :return: None
    """
    handler = logging.FileHandler(str(logfile), mode="a")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s,%(msecs)d %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.getLogger().addHandler(handler)
