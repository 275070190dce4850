from __future__ import annotations

from typing import List, Optional, Tuple

from conduit_common.models import (
    BatchExportConfig,
    Destination,
    HogFunctionTemplate,
    PipelineBackend,
    RawResource,
    Viewer,
)
from conduit_destinations.loaders import DestinationSources
from conduit_destinations.normalize import normalize

# Internal delivery routes (migrations) only visible while impersonating.
PRIVILEGED_BATCH_EXPORT_TYPES = frozenset({"HTTP"})


def is_batch_export_visible(batch_export: BatchExportConfig, viewer: Optional[Viewer]) -> bool:
    if batch_export.destination.type not in PRIVILEGED_BATCH_EXPORT_TYPES:
        return True
    return bool(viewer and viewer.is_impersonated)


def _template_for(
    sources: DestinationSources, template_id: Optional[str]
) -> Optional[HogFunctionTemplate]:
    if template_id is None:
        return None
    return sources.hog_function_templates.get(template_id)


def aggregate(sources: DestinationSources, viewer: Optional[Viewer]) -> List[Destination]:
    """Build the unified destination list, enabled destinations first.

    Concatenation order is functions, plugin configs, batch exports; the
    sort is stable so that order survives within each enabled group.
    """
    raw: List[Tuple[RawResource, PipelineBackend]] = []
    raw.extend((f, PipelineBackend.HOG_FUNCTION) for f in sources.hog_functions.values())
    raw.extend((c, PipelineBackend.PLUGIN) for c in sources.plugin_configs.values())
    raw.extend(
        (b, PipelineBackend.BATCH_EXPORT)
        for b in sources.batch_exports.values()
        if is_batch_export_visible(b, viewer)
    )

    destinations: List[Destination] = []
    for resource, backend in raw:
        if backend is PipelineBackend.PLUGIN:
            d = normalize(resource, backend, plugin=sources.plugins.get(resource.plugin))
        elif backend is PipelineBackend.HOG_FUNCTION:
            template_id = resource.template.id if resource.template else None
            d = normalize(resource, backend, template=_template_for(sources, template_id))
        else:
            d = normalize(resource, backend)
        destinations.append(d)

    return sorted(destinations, key=lambda d: not d.enabled)
