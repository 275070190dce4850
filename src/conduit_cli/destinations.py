from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import typer

from conduit_cli.common import load_settings, print_json
from conduit_client.api import ApiClient
from conduit_client.errors import ApiError
from conduit_common.models import Destination
from conduit_common.settings import Settings
from conduit_destinations.errors import (
    ActionPermissionError,
    UndoExpiredError,
    UnsupportedOperationError,
)
from conduit_destinations.logic import DestinationsLogic
from conduit_destinations.undo import UndoHandle

destinations_app = typer.Typer(help="List, pause, unpause and delete destinations.")

ConfigOption = typer.Option(None, "--config", "-c", help="Destinations YAML config file")


def make_client(settings: Settings) -> ApiClient:
    return ApiClient.from_settings(settings)


class EchoNotifier:
    """Prints notifications to the terminal and remembers the last undo offer."""

    def __init__(self) -> None:
        self.last_undo: Optional[UndoHandle] = None
        self.errors: List[str] = []

    def info(self, message: str, *, undo: Optional[UndoHandle] = None) -> None:
        if undo is not None:
            self.last_undo = undo
        typer.echo(message)

    def success(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.GREEN)

    def error(self, message: str) -> None:
        self.errors.append(message)
        typer.secho(message, fg=typer.colors.RED, err=True)


@asynccontextmanager
async def _mounted(settings: Settings, notifier: EchoNotifier) -> AsyncIterator[DestinationsLogic]:
    async with make_client(settings) as client:
        logic = DestinationsLogic(
            client,
            notifier=notifier,
            undo_window_seconds=settings.undo_window_seconds,
        )
        try:
            await logic.load_viewer()
        except ApiError as e:
            # without a viewer every mutation is refused, listing still works
            notifier.error(f"Could not load the current user: {e}")
        await logic.mount()
        yield logic


def _row(d: Destination) -> Dict[str, Any]:
    return {
        "key": d.key,
        "backend": d.backend.value,
        "id": d.id,
        "name": d.name,
        "description": d.description,
        "interval": d.interval,
        "status": "Active" if d.enabled else "Paused",
        "updated_at": d.updated_at,
    }


def _lookup(logic: DestinationsLogic, key: str) -> Destination:
    d = logic.find(key)
    if d is None:
        raise typer.BadParameter(f"No destination with key {key!r} (see `destinations list`)")
    return d


@destinations_app.command("list")
def list_cmd(
    config: Optional[Path] = ConfigOption,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
    enabled_only: bool = typer.Option(False, "--enabled-only", help="Only active destinations"),
) -> None:
    """
    List every destination, active ones first.
    """
    settings = load_settings(config)
    notifier = EchoNotifier()

    async def run() -> List[Dict[str, Any]]:
        async with _mounted(settings, notifier) as logic:
            return [
                _row(d) for d in logic.destinations if d.enabled or not enabled_only
            ]

    rows = asyncio.run(run())
    if as_json:
        print_json(rows)
        return
    if not rows:
        typer.echo("No destinations.")
        return
    width = max(len(r["key"]) for r in rows)
    for r in rows:
        typer.echo(f"{r['key']:<{width}}  {r['status']:<6}  {r['interval']:<16}  {r['name']}")


def _toggle(key: str, enabled: bool, config: Optional[Path]) -> None:
    settings = load_settings(config)
    notifier = EchoNotifier()

    async def run() -> bool:
        async with _mounted(settings, notifier) as logic:
            d = _lookup(logic, key)
            await logic.toggle(d, enabled)
            return logic.dispatcher.last_error is None

    try:
        ok = asyncio.run(run())
    except ActionPermissionError:
        raise typer.Exit(code=1)
    except UnsupportedOperationError as e:
        notifier.error(str(e))
        raise typer.Exit(code=1)
    if not ok:
        raise typer.Exit(code=1)
    typer.echo(f"{key}: {'active' if enabled else 'paused'}")


@destinations_app.command("enable")
def enable(
    key: str = typer.Argument(..., help="Destination key, e.g. plugin:7"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """
    Unpause a destination.
    """
    _toggle(key, True, config)


@destinations_app.command("disable")
def disable(
    key: str = typer.Argument(..., help="Destination key, e.g. plugin:7"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """
    Pause a destination.
    """
    _toggle(key, False, config)


@destinations_app.command("delete")
def delete(
    key: str = typer.Argument(..., help="Destination key, e.g. batch_export:<uuid>"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    undo: bool = typer.Option(False, "--undo", help="Restore right away (undoable backends only)"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """
    Delete a destination. Plugin and function destinations can be restored
    within the undo window; batch exports are deleted for good.
    """
    settings = load_settings(config)
    notifier = EchoNotifier()

    async def run() -> bool:
        async with _mounted(settings, notifier) as logic:
            d = _lookup(logic, key)
            if not yes:
                typer.confirm(f"Delete {d.name} ({d.key})?", abort=True)
            await logic.delete(d)
            if logic.dispatcher.last_error is not None:
                return False
            if undo:
                if notifier.last_undo is None:
                    notifier.error(f"{d.key} cannot be restored")
                    return False
                try:
                    await notifier.last_undo.undo()
                except UndoExpiredError as e:
                    notifier.error(str(e))
                    return False
                except ApiError:
                    # already reported by the undo handle
                    return False
            return True

    try:
        ok = asyncio.run(run())
    except ActionPermissionError:
        raise typer.Exit(code=1)
    if not ok:
        raise typer.Exit(code=1)
