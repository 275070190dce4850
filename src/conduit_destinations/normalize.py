"""
Raw resource -> Destination. Pure: no I/O, same input gives the same output.
"""

from __future__ import annotations

from typing import Optional, Union

from conduit_common.models import (
    BatchExportConfig,
    BatchExportDestination,
    Destination,
    FunctionDestination,
    HogFunction,
    HogFunctionTemplate,
    PipelineBackend,
    PluginConfig,
    PluginDestination,
    PluginInfo,
    RawResource,
)

REALTIME = "realtime"
UNKNOWN_APP = "Unknown app"
UNNAMED_FUNCTION = "Unnamed function"


def _plugin_destination(
    config: PluginConfig, plugin: Optional[PluginInfo]
) -> PluginDestination:
    return PluginDestination(
        id=config.id,
        name=config.name or (plugin.name if plugin else None) or UNKNOWN_APP,
        description=config.description
        or (plugin.description if plugin else None)
        or "",
        enabled=bool(config.enabled),
        interval=REALTIME,
        updated_at=config.updated_at,
        filters=config.filters,
        plugin_config=config,
        plugin=plugin,
    )


def _batch_export_destination(batch_export: BatchExportConfig) -> BatchExportDestination:
    return BatchExportDestination(
        id=batch_export.id,
        name=batch_export.name,
        description=batch_export.description
        or f"{batch_export.destination.type} batch export",
        # the API stores the inverse
        enabled=not batch_export.paused,
        interval=batch_export.interval,
        updated_at=batch_export.last_updated_at or batch_export.created_at,
        filters=None,
        batch_export=batch_export,
    )


def _function_destination(
    function: HogFunction, template: Optional[HogFunctionTemplate]
) -> FunctionDestination:
    template = template or function.template
    return FunctionDestination(
        id=function.id,
        name=function.name or (template.name if template else None) or UNNAMED_FUNCTION,
        description=function.description
        or (template.description if template else None)
        or "",
        enabled=bool(function.enabled),
        interval=REALTIME,
        updated_at=function.updated_at or function.created_at,
        filters=function.filters,
        hog_function=function,
        icon_url=function.icon_url or (template.icon_url if template else None),
    )


def _expect(raw: RawResource, model: type, backend: PipelineBackend) -> None:
    if not isinstance(raw, model):
        raise TypeError(
            f"{backend.value} destinations are built from {model.__name__}, "
            f"got {type(raw).__name__}"
        )


def normalize(
    raw: RawResource,
    backend: Union[PipelineBackend, str],
    *,
    plugin: Optional[PluginInfo] = None,
    template: Optional[HogFunctionTemplate] = None,
) -> Destination:
    """Convert one raw resource into its ``Destination`` variant.

    ``plugin`` and ``template`` are the static metadata used to fill in a
    missing name, description or icon; either may be absent.
    """
    backend = PipelineBackend(backend)
    if backend is PipelineBackend.PLUGIN:
        _expect(raw, PluginConfig, backend)
        return _plugin_destination(raw, plugin)  # type: ignore[arg-type]
    if backend is PipelineBackend.BATCH_EXPORT:
        _expect(raw, BatchExportConfig, backend)
        return _batch_export_destination(raw)  # type: ignore[arg-type]
    _expect(raw, HogFunction, backend)
    return _function_destination(raw, template)  # type: ignore[arg-type]
