"""
Async REST client for the destination-related API collections.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

import httpx

from conduit_client.errors import ApiError
from conduit_common.logging import setup_logging
from conduit_common.settings import Settings

log = setup_logging("conduit.client")

ResourceId = Union[int, str]


def _error_detail(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text.strip() or r.reason_phrase
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)


class ApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` that speaks the project API."""

    def __init__(
        self,
        base_url: str,
        *,
        project_id: str = "@current",
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.project_id = str(project_id)
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "ApiClient":
        return cls(
            settings.api_url,
            project_id=settings.project_id,
            token=settings.api_token,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def project_path(self, suffix: str) -> str:
        return f"api/projects/{self.project_id}/{suffix.strip('/')}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            r = await self._client.request(method, url, json=json_body, params=params)
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {url} failed: {e}", url=url) from e

        if r.is_error:
            raise ApiError(
                f"{method} {url} failed: {_error_detail(r)}",
                status_code=r.status_code,
                url=url,
            )

        # pause/unpause and delete may answer with an empty body
        if not r.content.strip():
            return None
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(
                f"{method} {url} returned invalid JSON", status_code=r.status_code, url=url
            ) from e

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", url, params=params)

    async def create(self, url: str, data: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("POST", url, json_body=data or {})

    async def update(self, url: str, data: Dict[str, Any]) -> Any:
        return await self._request("PATCH", url, json_body=data)

    async def delete(self, url: str) -> Any:
        return await self._request("DELETE", url)

    async def load_paginated_results(
        self, url: str, params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Follow ``next`` links until the collection is drained."""
        results: List[Dict[str, Any]] = []
        next_url: Optional[str] = url
        page_params = params
        pages = 0
        while next_url:
            page = await self.get(next_url, params=page_params)
            pages += 1
            # the next link already carries the query string
            page_params = None
            if isinstance(page, list):
                results.extend(page)
                break
            if not isinstance(page, dict):
                raise ApiError(f"GET {next_url} returned an unexpected page", url=next_url)
            results.extend(page.get("results") or [])
            next_url = page.get("next")
        log.debug(f"paginated_load url={url} pages={pages} results={len(results)}")
        return results

    # -------------------------
    # Collections
    # -------------------------
    async def list_plugins(self) -> List[Dict[str, Any]]:
        return await self.load_paginated_results(
            "api/organizations/@current/pipeline_destinations/"
        )

    async def list_plugin_configs(self) -> List[Dict[str, Any]]:
        return await self.load_paginated_results(
            self.project_path("pipeline_destination_configs") + "/"
        )

    async def list_batch_exports(self) -> List[Dict[str, Any]]:
        return await self.load_paginated_results(
            self.project_path("batch_exports") + "/"
        )

    async def list_hog_functions(self) -> List[Dict[str, Any]]:
        return await self.load_paginated_results(
            self.project_path("hog_functions") + "/", params={"type": "destination"}
        )

    async def list_hog_function_templates(self) -> List[Dict[str, Any]]:
        return await self.load_paginated_results(
            self.project_path("hog_function_templates") + "/"
        )

    async def get_viewer(self) -> Dict[str, Any]:
        return await self.get("api/users/@me/")

    # -------------------------
    # Mutations
    # -------------------------
    async def update_plugin_config(
        self, plugin_config_id: ResourceId, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.update(f"api/plugin_config/{plugin_config_id}/", data)

    async def pause_batch_export(self, batch_export_id: ResourceId) -> Any:
        return await self.create(
            self.project_path(f"batch_exports/{batch_export_id}/pause") + "/"
        )

    async def unpause_batch_export(self, batch_export_id: ResourceId) -> Any:
        return await self.create(
            self.project_path(f"batch_exports/{batch_export_id}/unpause") + "/"
        )

    async def delete_batch_export(self, batch_export_id: ResourceId) -> Any:
        return await self.delete(
            self.project_path(f"batch_exports/{batch_export_id}") + "/"
        )
