"""
Resource loaders. Each one owns the cached mapping for a single collection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from conduit_client.api import ApiClient
from conduit_client.errors import ApiError
from conduit_common.logging import setup_logging
from conduit_common.models import (
    BatchExportConfig,
    HogFunction,
    HogFunctionTemplate,
    PluginConfig,
    PluginInfo,
)
from conduit_destinations.errors import LoadError

log = setup_logging("conduit.loaders")

K = TypeVar("K")
R = TypeVar("R", bound=BaseModel)


class ResourceLoader(ABC, Generic[K, R]):
    """Fetches one remote collection and keeps it as ``{id: resource}``.

    ``load()`` swaps in a whole new mapping on success and leaves the
    previous one untouched on failure. ``set_item``/``remove_item`` are the
    only other writers; both replace the mapping rather than mutate it, so a
    snapshot taken by a reader never changes underneath it.
    """

    name: str = "resources"
    model: Type[R]

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._items: Dict[K, R] = {}
        self._in_flight = 0
        self.loaded = False
        self.error: Optional[LoadError] = None

    @property
    def items(self) -> Mapping[K, R]:
        return self._items

    @property
    def loading(self) -> bool:
        # loads may overlap (e.g. an undo reload during mount)
        return self._in_flight > 0

    @abstractmethod
    async def fetch(self) -> List[Dict[str, Any]]:
        """Return the raw, fully paginated collection."""
        raise NotImplementedError

    def _key(self, item: R) -> K:
        return item.id  # type: ignore[attr-defined]

    def build(self, rows: List[Dict[str, Any]]) -> Dict[K, R]:
        out: Dict[K, R] = {}
        for row in rows:
            item = self.model.model_validate(row)
            out[self._key(item)] = item
        return out

    async def load(self) -> Dict[K, R]:
        self._in_flight += 1
        try:
            rows = await self.fetch()
            items = self.build(rows)
        except (ApiError, ValidationError) as e:
            self.error = LoadError(self.name, e)
            log.warning(f"load_failed loader={self.name} error={e}")
            raise self.error from e
        finally:
            self._in_flight -= 1

        self._items = items
        self.loaded = True
        self.error = None
        log.info(f"loaded loader={self.name} count={len(items)}")
        return items

    def set_item(self, key: K, item: R) -> None:
        self._items = {**self._items, key: item}

    def remove_item(self, key: K) -> None:
        items = dict(self._items)
        items.pop(key, None)
        self._items = items


class PluginsLoader(ResourceLoader[int, PluginInfo]):
    name = "plugins"
    model = PluginInfo

    async def fetch(self) -> List[Dict[str, Any]]:
        return await self._client.list_plugins()


class PluginConfigsLoader(ResourceLoader[int, PluginConfig]):
    """Plugin configs, with name/description backfilled from plugin metadata."""

    name = "plugin configs"
    model = PluginConfig

    def __init__(self, client: ApiClient, plugins: PluginsLoader) -> None:
        super().__init__(client)
        self._plugins = plugins

    async def fetch(self) -> List[Dict[str, Any]]:
        return await self._client.list_plugin_configs()

    def build(self, rows: List[Dict[str, Any]]) -> Dict[int, PluginConfig]:
        plugins = self._plugins.items
        out: Dict[int, PluginConfig] = {}
        for config in super().build(rows).values():
            plugin = plugins.get(config.plugin)
            # the backfilled name is what gets saved if this config is saved later
            out[config.id] = config.model_copy(
                update={
                    "name": config.name or (plugin.name if plugin else None) or "Unknown app",
                    "description": config.description
                    or (plugin.description if plugin else None),
                }
            )
        return out


class BatchExportsLoader(ResourceLoader[str, BatchExportConfig]):
    name = "batch exports"
    model = BatchExportConfig

    async def fetch(self) -> List[Dict[str, Any]]:
        return await self._client.list_batch_exports()


class HogFunctionTemplatesLoader(ResourceLoader[str, HogFunctionTemplate]):
    name = "function templates"
    model = HogFunctionTemplate

    async def fetch(self) -> List[Dict[str, Any]]:
        return await self._client.list_hog_function_templates()


class HogFunctionsLoader(ResourceLoader[str, HogFunction]):
    name = "functions"
    model = HogFunction

    async def fetch(self) -> List[Dict[str, Any]]:
        return await self._client.list_hog_functions()


@dataclass(frozen=True)
class DestinationSources:
    """A read-only snapshot of every loader's mapping."""

    plugins: Mapping[int, PluginInfo]
    plugin_configs: Mapping[int, PluginConfig]
    batch_exports: Mapping[str, BatchExportConfig]
    hog_functions: Mapping[str, HogFunction]
    hog_function_templates: Mapping[str, HogFunctionTemplate]


class DestinationLoaders:
    """The five loaders backing the destinations view."""

    def __init__(self, client: ApiClient) -> None:
        self.plugins = PluginsLoader(client)
        self.plugin_configs = PluginConfigsLoader(client, self.plugins)
        self.batch_exports = BatchExportsLoader(client)
        self.hog_function_templates = HogFunctionTemplatesLoader(client)
        self.hog_functions = HogFunctionsLoader(client)

    def all(self) -> List[ResourceLoader[Any, Any]]:
        return [
            self.plugins,
            self.plugin_configs,
            self.batch_exports,
            self.hog_function_templates,
            self.hog_functions,
        ]

    @property
    def loading(self) -> bool:
        return any(loader.loading for loader in self.all())

    def snapshot(self) -> DestinationSources:
        return DestinationSources(
            plugins=self.plugins.items,
            plugin_configs=self.plugin_configs.items,
            batch_exports=self.batch_exports.items,
            hog_functions=self.hog_functions.items,
            hog_function_templates=self.hog_function_templates.items,
        )
