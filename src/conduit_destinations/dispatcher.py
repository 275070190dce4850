"""
Routes toggle/delete intents to the backend that owns the destination.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, NoReturn, Optional

from pydantic import ValidationError

from conduit_client.api import ApiClient
from conduit_client.errors import ApiError
from conduit_common.logging import setup_logging
from conduit_common.models import (
    BatchExportDestination,
    Destination,
    FunctionDestination,
    PipelineBackend,
    PluginConfig,
    PluginDestination,
)
from conduit_destinations.access import AccessPolicy
from conduit_destinations.errors import (
    ActionPermissionError,
    LoadError,
    RemoteOperationError,
    UnsupportedOperationError,
)
from conduit_destinations.loaders import DestinationLoaders, ResourceLoader
from conduit_destinations.notify import Notifier
from conduit_destinations.telemetry import (
    Telemetry,
    batch_export_event_properties,
    plugin_event_properties,
)
from conduit_destinations.undo import UndoableDelete, UndoCallback

log = setup_logging("conduit.dispatcher")

NO_TOGGLE_PERMISSION = "You do not have permission to toggle destinations."
NO_DELETE_PERMISSION = "You do not have permission to delete destinations."
ENABLE_REQUIRES_ADDON = "Data pipelines add-on is required for enabling new destinations."

Handler = Callable[..., Awaitable[None]]


class ActionDispatcher:
    """Applies toggle/delete to exactly one backend and reconciles its loader.

    Local mappings change only after the server has confirmed the call.
    Remote failures are logged and notified, never raised; permission
    refusals are notified and raised to the caller.
    """

    def __init__(
        self,
        client: ApiClient,
        loaders: DestinationLoaders,
        access: Callable[[], AccessPolicy],
        notifier: Notifier,
        telemetry: Telemetry,
        undoable: UndoableDelete,
    ) -> None:
        self._client = client
        self._loaders = loaders
        self._access = access
        self._notifier = notifier
        self._telemetry = telemetry
        self._undoable = undoable
        self.last_error: Optional[RemoteOperationError] = None

        self._toggle_handlers: Dict[PipelineBackend, Handler] = {
            PipelineBackend.PLUGIN: self._toggle_plugin,
            PipelineBackend.BATCH_EXPORT: self._toggle_batch_export,
        }
        self._delete_handlers: Dict[PipelineBackend, Handler] = {
            PipelineBackend.PLUGIN: self._delete_plugin,
            PipelineBackend.BATCH_EXPORT: self._delete_batch_export,
            PipelineBackend.HOG_FUNCTION: self._delete_hog_function,
        }

    # -------------------------
    # Intents
    # -------------------------
    async def toggle(self, destination: Destination, enabled: bool) -> None:
        handler = self._toggle_handlers.get(destination.backend)
        if handler is None:
            raise UnsupportedOperationError(
                f"{destination.backend.value} destinations cannot be toggled"
            )

        access = self._access()
        if not access.can_configure:
            self._reject(destination, NO_TOGGLE_PERMISSION)
        if enabled and not access.can_enable_new_destinations:
            self._reject(destination, ENABLE_REQUIRES_ADDON)

        # no short-circuit when already in the requested state
        await self._run("toggle", destination, handler(destination, enabled))

    async def delete(self, destination: Destination) -> None:
        handler = self._delete_handlers.get(destination.backend)
        if handler is None:
            raise UnsupportedOperationError(
                f"{destination.backend.value} destinations cannot be deleted"
            )
        if not self._access().can_configure:
            self._reject(destination, NO_DELETE_PERMISSION)

        await self._run("delete", destination, handler(destination))

    # -------------------------
    # Helpers
    # -------------------------
    def _reject(self, destination: Destination, message: str) -> NoReturn:
        log.warning(f"action_rejected key={destination.key} reason={message!r}")
        self._notifier.error(message)
        raise ActionPermissionError(message)

    async def _run(
        self, operation: str, destination: Destination, call: Awaitable[None]
    ) -> None:
        try:
            await call
        except (ApiError, ValidationError) as e:
            err = RemoteOperationError(destination.backend.value, operation, e)
            log.exception(f"{operation}_failed key={destination.key}")
            self._notifier.error(f"Failed to {operation} {destination.name}: {e}")
            # the mapping is untouched; the user can simply retry
            self.last_error = err
            return
        self.last_error = None

    def _reload_on_undo(self, loader: ResourceLoader) -> UndoCallback:
        async def callback(undo: bool) -> None:
            if not undo:
                return
            try:
                await loader.load()
            except LoadError as e:
                self._notifier.error(str(e))

        return callback

    # -------------------------
    # Plugin configs
    # -------------------------
    async def _toggle_plugin(self, destination: PluginDestination, enabled: bool) -> None:
        response = await self._client.update_plugin_config(
            destination.id, {"enabled": enabled}
        )
        # the server may fill in defaults, so its copy replaces ours wholesale
        updated = PluginConfig.model_validate(response)
        self._loaders.plugin_configs.set_item(destination.id, updated)

        plugin = self._loaders.plugins.items.get(updated.plugin) or destination.plugin
        self._telemetry.capture(
            f"plugin {'enabled' if enabled else 'disabled'}",
            plugin_event_properties(updated, plugin),
        )
        log.info(f"toggle_applied key={destination.key} enabled={enabled}")

    async def _delete_plugin(self, destination: PluginDestination) -> None:
        await self._undoable.delete(
            self._client.project_path("plugin_configs"),
            destination.id,
            destination.name,
            callback=self._reload_on_undo(self._loaders.plugin_configs),
        )
        self._loaders.plugin_configs.remove_item(destination.id)
        log.info(f"delete_applied key={destination.key} undoable=True")

    # -------------------------
    # Batch exports
    # -------------------------
    async def _toggle_batch_export(
        self, destination: BatchExportDestination, enabled: bool
    ) -> None:
        if enabled:
            await self._client.unpause_batch_export(destination.id)
        else:
            await self._client.pause_batch_export(destination.id)

        cached = self._loaders.batch_exports.items.get(destination.id) or destination.batch_export
        updated = cached.model_copy(update={"paused": not enabled})
        self._loaders.batch_exports.set_item(destination.id, updated)

        self._telemetry.capture(
            f"batch export {'enabled' if enabled else 'disabled'}",
            batch_export_event_properties(updated),
        )
        log.info(f"toggle_applied key={destination.key} enabled={enabled}")

    async def _delete_batch_export(self, destination: BatchExportDestination) -> None:
        await self._client.delete_batch_export(destination.id)
        self._loaders.batch_exports.remove_item(destination.id)
        log.info(f"delete_applied key={destination.key} undoable=False")

    # -------------------------
    # Functions
    # -------------------------
    async def _delete_hog_function(self, destination: FunctionDestination) -> None:
        await self._undoable.delete(
            self._client.project_path("hog_functions"),
            destination.hog_function.id,
            destination.name,
            callback=self._reload_on_undo(self._loaders.hog_functions),
        )
        self._loaders.hog_functions.remove_item(destination.hog_function.id)
        log.info(f"delete_applied key={destination.key} undoable=True")
