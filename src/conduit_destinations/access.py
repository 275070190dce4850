from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from conduit_common.models import Viewer

# Organization plugin access levels: none=0, config=3, install=6, root=9
PLUGINS_ACCESS_LEVEL_CONFIG = 3
DATA_PIPELINES_FEATURE = "data_pipelines"


@dataclass(frozen=True)
class AccessPolicy:
    """What the current viewer is allowed to do to destinations."""

    can_configure: bool = False
    can_enable_new_destinations: bool = False

    @classmethod
    def for_viewer(cls, viewer: Optional[Viewer]) -> "AccessPolicy":
        if viewer is None:
            return cls()
        can_configure = (
            viewer.is_staff or viewer.plugins_access_level >= PLUGINS_ACCESS_LEVEL_CONFIG
        )
        can_enable = (
            viewer.is_impersonated or DATA_PIPELINES_FEATURE in viewer.available_features
        )
        return cls(can_configure=can_configure, can_enable_new_destinations=can_enable)
