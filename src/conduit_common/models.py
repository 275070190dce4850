from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PipelineBackend(str, Enum):
    PLUGIN = "plugin"
    BATCH_EXPORT = "batch_export"
    HOG_FUNCTION = "hog_function"


class Resource(BaseModel):
    """A raw API resource. Fields we don't model are kept as extras."""

    model_config = ConfigDict(extra="allow")


class PluginInfo(Resource):
    id: int
    name: Optional[str] = None
    description: Optional[str] = None
    icon_url: Optional[str] = None
    url: Optional[str] = None
    plugin_type: Optional[str] = None


class PluginConfig(Resource):
    id: int
    plugin: int
    enabled: bool = False
    name: Optional[str] = None
    description: Optional[str] = None
    order: int = 0
    config: Dict[str, Any] = Field(default_factory=dict)
    filters: Optional[Dict[str, Any]] = None
    updated_at: Optional[datetime] = None
    deleted: bool = False


class BatchExportService(Resource):
    type: str
    config: Dict[str, Any] = Field(default_factory=dict)


class BatchExportConfig(Resource):
    id: str
    name: str
    interval: str = "hour"
    paused: bool = False
    destination: BatchExportService
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


class HogFunctionTemplate(Resource):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    icon_url: Optional[str] = None
    status: Optional[str] = None


class HogFunction(Resource):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    enabled: bool = False
    icon_url: Optional[str] = None
    template: Optional[HogFunctionTemplate] = None
    filters: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted: bool = False


RawResource = Union[PluginConfig, BatchExportConfig, HogFunction]


class Viewer(BaseModel):
    """The signed-in user, reduced to what access decisions need."""

    uuid: Optional[str] = None
    email: Optional[str] = None
    is_impersonated: bool = False
    is_staff: bool = False
    plugins_access_level: int = 0
    available_features: List[str] = Field(default_factory=list)
    team_id: Optional[int] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Viewer":
        """Build a viewer from the ``users/@me`` payload."""
        org = payload.get("organization") or {}
        features = [
            f["key"] if isinstance(f, dict) else str(f)
            for f in org.get("available_product_features") or []
        ]
        team = payload.get("team") or {}
        return cls(
            uuid=payload.get("uuid"),
            email=payload.get("email"),
            is_impersonated=bool(payload.get("is_impersonated")),
            is_staff=bool(payload.get("is_staff")),
            plugins_access_level=int(org.get("plugins_access_level") or 0),
            available_features=features,
            team_id=team.get("id"),
        )


class _DestinationBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    backend: PipelineBackend
    id: Union[int, str]
    name: str
    description: str = ""
    enabled: bool
    interval: str
    updated_at: Optional[datetime] = None
    filters: Optional[Dict[str, Any]] = None

    @property
    def key(self) -> str:
        """Identifier unique across backends, e.g. ``plugin:7``."""
        return f"{self.backend.value}:{self.id}"


class PluginDestination(_DestinationBase):
    backend: Literal[PipelineBackend.PLUGIN] = PipelineBackend.PLUGIN
    id: int
    plugin_config: PluginConfig
    plugin: Optional[PluginInfo] = None


class BatchExportDestination(_DestinationBase):
    backend: Literal[PipelineBackend.BATCH_EXPORT] = PipelineBackend.BATCH_EXPORT
    id: str
    batch_export: BatchExportConfig

    @property
    def service(self) -> BatchExportService:
        return self.batch_export.destination


class FunctionDestination(_DestinationBase):
    backend: Literal[PipelineBackend.HOG_FUNCTION] = PipelineBackend.HOG_FUNCTION
    id: str
    hog_function: HogFunction
    icon_url: Optional[str] = None


Destination = Annotated[
    Union[PluginDestination, BatchExportDestination, FunctionDestination],
    Field(discriminator="backend"),
]
