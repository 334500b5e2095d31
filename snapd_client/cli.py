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

"""Command line access to the snapd API.

Every command prints the response envelope returned by snapd as JSON, so
the output can be piped into other tools.
"""
import json
import logging
from pathlib import Path

import click
from rich.console import Console

from snapd_client import log
from snapd_client.changes import Status
from snapd_client.client import Client
from snapd_client.config import ConnectionConfig
from snapd_client.service import SnapdException

LOG = logging.getLogger(__name__)
console = Console()

# Update the help options to allow -h in addition to --help for
# triggering the help for various commands
CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

WAIT_FOR = [Status.DoneStatus, Status.ErrorStatus, Status.UndoneStatus]


class SnapdGroup(click.Group):
    """Turns snapd errors into a short message and a non-zero exit code."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except SnapdException as e:
            LOG.debug("Command failed", exc_info=True)
            raise click.ClickException(str(e) or type(e).__name__) from e


def _show(envelope) -> None:
    console.print_json(data=envelope)


def _finish(client: Client, envelope: dict, wait: bool, timeout: int) -> None:
    """Prints the envelope of an asynchronous action, or waits for it."""
    if not wait or not envelope.get("change"):
        _show(envelope)
        return

    change = client.changes.wait_until(envelope["change"], WAIT_FOR, timeout=timeout)
    _show(change.model_dump(mode="json", by_alias=True))
    if change.status != Status.DoneStatus:
        raise click.ClickException(
            change.err or f"change {change.id} ended in {change.status.value}"
        )


def _endpoint(value: str, kind: str) -> dict:
    """Parses 'snap:name' into the mapping snapd expects for plugs/slots."""
    snap, _, name = value.partition(":")
    endpoint = {"snap": snap}
    if name:
        endpoint[kind] = name
    return endpoint


wait_option = click.option(
    "--wait/--no-wait", default=False, help="Wait for the change to complete"
)
timeout_option = click.option(
    "--timeout", default=300, type=int, help="Seconds to wait for the change"
)


@click.group("snapd-client", cls=SnapdGroup, context_settings=CONTEXT_SETTINGS)
@click.option("--verbose", "-v", default=False, is_flag=True)
@click.option(
    "--log-file", type=click.Path(dir_okay=False), help="Also log to this file"
)
@click.option("--socket", "socket_path", help="Path of the snapd socket")
@click.option("--api-version", help="snapd API version, e.g. 2")
@click.option(
    "--allow-interaction",
    default=False,
    is_flag=True,
    help="Allow snapd to prompt for authorization",
)
@click.pass_context
def cli(ctx, verbose, log_file, socket_path, api_version, allow_interaction):
    """A small client for the snapd REST API."""
    log.setup_root_logging(verbose)
    if log_file:
        log.setup_logging(log_file)

    config = ConnectionConfig.from_env(
        socket_path=socket_path,
        version=api_version,
        allow_interaction=True if allow_interaction else None,
    )
    LOG.debug("Using %s", config)
    ctx.obj = Client(config)
    ctx.call_on_close(ctx.obj.close)


@cli.command("system-info")
@click.pass_obj
def system_info(client: Client) -> None:
    """Shows information about snapd and the system."""
    _show(client.system.info())


@cli.command("list")
@click.argument("snaps", nargs=-1)
@click.option("--all", "show_all", is_flag=True, help="Include disabled revisions")
@click.pass_obj
def list_snaps(client: Client, snaps, show_all: bool) -> None:
    """Lists installed snaps."""
    _show(client.snaps.list(list(snaps) or None, select="all" if show_all else None))


@cli.command()
@click.argument("snap", required=False)
@click.pass_obj
def info(client: Client, snap: str) -> None:
    """Shows details about the specified snap, or all installed snaps."""
    _show(client.snaps.info(snap))


@cli.command()
@click.argument("query")
@click.option("--section", help="Restrict the search to a store section")
@click.pass_obj
def find(client: Client, query: str, section: str) -> None:
    """Searches the store."""
    _show(client.snaps.find(query, section=section))


@cli.command()
@click.argument("snap")
@click.option("--channel", help="Channel to install from")
@click.option("--classic", is_flag=True, help="Install in classic mode")
@click.option("--devmode", is_flag=True, help="Install in developer mode")
@click.option("--jailmode", is_flag=True, help="Enforce confinement")
@click.option("--dangerous", is_flag=True, help="Allow unsigned local snaps")
@wait_option
@timeout_option
@click.pass_obj
def install(
    client: Client, snap, channel, classic, devmode, jailmode, dangerous, wait, timeout
):
    """Installs a snap from the store, or from a local .snap file."""
    path = Path(snap)
    if path.is_file():
        with path.open("rb") as payload:
            envelope = client.snaps.sideload(
                payload,
                filename=path.name,
                snap_path=str(path.resolve()),
                devmode=devmode,
                dangerous=dangerous,
                classic=classic,
                jailmode=jailmode,
            )
    else:
        envelope = client.snaps.install(
            snap,
            channel=channel,
            classic=classic or None,
            devmode=devmode or None,
            jailmode=jailmode or None,
        )
    _finish(client, envelope, wait, timeout)


@cli.command()
@click.argument("snap")
@click.option("--purge", is_flag=True, help="Do not keep a snapshot of the data")
@wait_option
@timeout_option
@click.pass_obj
def remove(client: Client, snap: str, purge: bool, wait: bool, timeout: int):
    """Removes the specified snap."""
    envelope = client.snaps.remove(snap, purge=purge or None)
    _finish(client, envelope, wait, timeout)


@cli.command()
@click.argument("snap")
@click.option("--channel", help="Channel to refresh to")
@wait_option
@timeout_option
@click.pass_obj
def refresh(client: Client, snap: str, channel: str, wait: bool, timeout: int):
    """Refreshes the specified snap."""
    envelope = client.snaps.refresh(snap, channel=channel)
    _finish(client, envelope, wait, timeout)


@cli.command()
@click.argument("snap")
@click.option("--revision", help="Revision to revert to")
@wait_option
@timeout_option
@click.pass_obj
def revert(client: Client, snap: str, revision: str, wait: bool, timeout: int):
    """Reverts the specified snap to a previous revision."""
    envelope = client.snaps.revert(snap, revision=revision)
    _finish(client, envelope, wait, timeout)


@cli.command()
@click.argument("snap")
@click.pass_obj
def enable(client: Client, snap: str) -> None:
    """Enables a disabled snap."""
    _show(client.snaps.enable(snap))


@cli.command()
@click.argument("snap")
@click.pass_obj
def disable(client: Client, snap: str) -> None:
    """Disables a snap."""
    _show(client.snaps.disable(snap))


@cli.command()
@click.argument("plug")
@click.argument("slot")
@click.pass_obj
def connect(client: Client, plug: str, slot: str) -> None:
    """Connects PLUG (snap:plug) to SLOT (snap:slot)."""
    _show(client.interfaces.connect(_endpoint(slot, "slot"), _endpoint(plug, "plug")))


@cli.command()
@click.argument("plug")
@click.argument("slot")
@click.pass_obj
def disconnect(client: Client, plug: str, slot: str) -> None:
    """Disconnects PLUG (snap:plug) from SLOT (snap:slot)."""
    _show(
        client.interfaces.disconnect(_endpoint(slot, "slot"), _endpoint(plug, "plug"))
    )


@cli.command()
@click.argument("names", nargs=-1)
@click.pass_obj
def services(client: Client, names) -> None:
    """Lists services, optionally of the given snaps only."""
    _show(client.apps.services(list(names) or None))


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--enable", is_flag=True, help="Also start the services at boot")
@click.pass_obj
def start(client: Client, names, enable: bool) -> None:
    """Starts services."""
    _show(client.apps.start(list(names), enable=enable or None))


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--disable", is_flag=True, help="Also stop starting them at boot")
@click.pass_obj
def stop(client: Client, names, disable: bool) -> None:
    """Stops services."""
    _show(client.apps.stop(list(names), disable=disable or None))


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--reload", is_flag=True, help="Reload instead of restarting")
@click.pass_obj
def restart(client: Client, names, reload: bool) -> None:
    """Restarts services."""
    _show(client.apps.restart(list(names), reload=reload or None))


@cli.command()
@click.argument("names", nargs=-1)
@click.option("-n", "lines", type=int, help="Number of entries, -1 for all")
@click.pass_obj
def logs(client: Client, names, lines) -> None:
    """Shows service logs."""
    _show(client.apps.logs(list(names) or None, n=lines))


@cli.command("get")
@click.argument("snap")
@click.argument("keys", nargs=-1)
@click.pass_obj
def get_conf(client: Client, snap: str, keys) -> None:
    """Shows snap configuration."""
    _show(client.conf.get(snap, list(keys) or None))


@cli.command("set")
@click.argument("snap")
@click.argument("assignments", nargs=-1, required=True)
@click.option("--typed", "-t", is_flag=True, help="Parse values as JSON")
@click.pass_obj
def set_conf(client: Client, snap: str, assignments, typed: bool) -> None:
    """Sets snap configuration from KEY=VALUE pairs."""
    conf = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key:
            raise click.BadParameter(
                f"invalid configuration {assignment!r} (want key=value)"
            )
        if typed:
            try:
                value = json.loads(value)
            except ValueError as e:
                raise click.BadParameter(f"{key}: {e}") from e
        conf[key] = value
    _show(client.conf.set(snap, conf))


@cli.command()
@click.argument("change_id", required=False)
@click.option("--all", "show_all", is_flag=True, help="Include finished changes")
@click.pass_obj
def changes(client: Client, change_id, show_all: bool) -> None:
    """Lists in-progress changes, or shows the given change."""
    _show(client.changes.changes(change_id, select="all" if show_all else None))


@cli.command()
@click.argument("change_id")
@timeout_option
@click.pass_obj
def wait(client: Client, change_id: str, timeout: int) -> None:
    """Waits for a change to complete."""
    _finish(client, {"change": change_id}, True, timeout)


@cli.command()
@click.argument("change_id")
@click.pass_obj
def abort(client: Client, change_id: str) -> None:
    """Aborts a change that is still in progress."""
    _show(client.changes.abort(change_id))


def main():
    cli()


if __name__ == "__main__":
    main()
