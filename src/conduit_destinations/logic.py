"""
Destinations session: loads every backend, exposes the unified view, dispatches intents.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from conduit_client.api import ApiClient
from conduit_common.logging import setup_logging
from conduit_common.models import (
    BatchExportConfig,
    Destination,
    PluginConfig,
    Viewer,
)
from conduit_destinations.access import AccessPolicy
from conduit_destinations.aggregate import aggregate
from conduit_destinations.dispatcher import ActionDispatcher
from conduit_destinations.errors import LoadError
from conduit_destinations.loaders import DestinationLoaders, ResourceLoader
from conduit_destinations.notify import LoggingNotifier, Notifier
from conduit_destinations.telemetry import LoggingTelemetry, Telemetry
from conduit_destinations.undo import UndoableDelete

log = setup_logging("conduit.destinations")


class DestinationsLogic:
    """Owns the loaders for one project and derives the destination list from them.

    ``destinations`` is recomputed on every read from the current loader
    mappings and viewer, so it always reflects the latest state.
    """

    def __init__(
        self,
        client: ApiClient,
        *,
        viewer: Optional[Viewer] = None,
        access: Optional[AccessPolicy] = None,
        notifier: Optional[Notifier] = None,
        telemetry: Optional[Telemetry] = None,
        undo_window_seconds: float = 10.0,
        undoable: Optional[UndoableDelete] = None,
    ) -> None:
        self._client = client
        self.viewer = viewer
        self._access = access
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.telemetry: Telemetry = telemetry or LoggingTelemetry()
        self.loaders = DestinationLoaders(client)
        self.undoable = undoable or UndoableDelete(
            client, self.notifier, window_seconds=undo_window_seconds
        )
        self.dispatcher = ActionDispatcher(
            client,
            self.loaders,
            lambda: self.access,
            self.notifier,
            self.telemetry,
            self.undoable,
        )

    # -------------------------
    # Viewer / access
    # -------------------------
    @property
    def access(self) -> AccessPolicy:
        if self._access is not None:
            return self._access
        return AccessPolicy.for_viewer(self.viewer)

    def set_viewer(self, viewer: Optional[Viewer]) -> None:
        self.viewer = viewer

    def set_access(self, access: Optional[AccessPolicy]) -> None:
        """Pin an explicit policy; ``None`` goes back to deriving it from the viewer."""
        self._access = access

    async def load_viewer(self) -> Viewer:
        viewer = Viewer.from_api(await self._client.get_viewer())
        self.set_viewer(viewer)
        return viewer

    # -------------------------
    # Loading
    # -------------------------
    async def _settle(self, loader: ResourceLoader) -> None:
        try:
            await loader.load()
        except LoadError as e:
            log.error(f"load_error loader={loader.name} error={e.cause}")
            self.notifier.error(f"Failed to load {loader.name}: {e.cause}")

    async def _load_plugins_then_configs(self) -> None:
        # configs are backfilled from plugin metadata, which may still be empty
        await self._settle(self.loaders.plugins)
        await self._settle(self.loaders.plugin_configs)

    async def mount(self) -> None:
        """Load every collection; returns once all of them have settled."""
        await asyncio.gather(
            self._load_plugins_then_configs(),
            self._settle(self.loaders.batch_exports),
            self._settle(self.loaders.hog_function_templates),
            self._settle(self.loaders.hog_functions),
        )
        log.info(f"mounted destinations={len(self.destinations)}")

    @property
    def loading(self) -> bool:
        return self.loaders.loading

    # -------------------------
    # Derived view
    # -------------------------
    @property
    def destinations(self) -> List[Destination]:
        return aggregate(self.loaders.snapshot(), self.viewer)

    def find(self, key: str) -> Optional[Destination]:
        for d in self.destinations:
            if d.key == key:
                return d
        return None

    # -------------------------
    # Outside edits
    # -------------------------
    def update_plugin_config(self, plugin_config: PluginConfig) -> None:
        """Adopt a plugin config saved elsewhere (e.g. a configuration form)."""
        self.loaders.plugin_configs.set_item(plugin_config.id, plugin_config)

    def update_batch_export_config(self, batch_export: BatchExportConfig) -> None:
        self.loaders.batch_exports.set_item(batch_export.id, batch_export)

    # -------------------------
    # Intents
    # -------------------------
    async def toggle(self, destination: Destination, enabled: bool) -> None:
        await self.dispatcher.toggle(destination, enabled)

    async def delete(self, destination: Destination) -> None:
        await self.dispatcher.delete(destination)
