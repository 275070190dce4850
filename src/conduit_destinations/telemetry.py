from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from conduit_common.logging import setup_logging
from conduit_common.models import BatchExportConfig, PluginConfig, PluginInfo

log = setup_logging("conduit.telemetry")


@runtime_checkable
class Telemetry(Protocol):
    def capture(self, event: str, properties: Dict[str, Any]) -> None: ...


class LoggingTelemetry:
    def capture(self, event: str, properties: Dict[str, Any]) -> None:
        log.info(f"capture event={event!r} properties={properties}")


def plugin_event_properties(
    plugin_config: PluginConfig, plugin: Optional[PluginInfo]
) -> Dict[str, Any]:
    return {
        "plugin_id": plugin.id if plugin else plugin_config.plugin,
        "plugin_name": plugin.name if plugin else None,
        "plugin_config_id": plugin_config.id,
    }


def batch_export_event_properties(batch_export: BatchExportConfig) -> Dict[str, Any]:
    return {
        "batch_export_id": batch_export.id,
        "destination_type": batch_export.destination.type,
        "interval": batch_export.interval,
    }
