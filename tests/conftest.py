"""Shared fixtures: an in-memory API behind httpx.MockTransport plus recording fakes."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from conduit_client.api import ApiClient
from conduit_destinations.access import AccessPolicy
from conduit_destinations.logic import DestinationsLogic
from conduit_destinations.undo import UndoableDelete

BASE_URL = "http://testserver"
PROJECT_ID = "1"
SERVER_NOW = "2026-01-02T03:04:05Z"


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def plugin(id: int, name: str = "Webhook", description: str = "Send to a webhook") -> Dict[str, Any]:
    return {"id": id, "name": name, "description": description, "icon_url": f"/icons/{id}.png"}


def plugin_config(
    id: int,
    plugin: int,
    *,
    enabled: bool = True,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "id": id,
        "plugin": plugin,
        "enabled": enabled,
        "name": name,
        "description": description,
        "order": 0,
        "config": {"url": "https://example.com/hook"},
        "updated_at": "2025-12-01T00:00:00Z",
    }


def batch_export(
    id: str, name: str = "Nightly S3", *, paused: bool = False, type: str = "S3", interval: str = "day"
) -> Dict[str, Any]:
    return {
        "id": id,
        "name": name,
        "interval": interval,
        "paused": paused,
        "destination": {"type": type, "config": {"bucket_name": "events"}},
        "created_at": "2025-11-01T00:00:00Z",
    }


def hog_function(
    id: str, name: Optional[str] = "Slack alert", *, enabled: bool = True, template_id: Optional[str] = None
) -> Dict[str, Any]:
    return {
        "id": id,
        "name": name,
        "description": None,
        "enabled": enabled,
        "icon_url": None,
        "template": {"id": template_id} if template_id else None,
        "created_at": "2025-10-01T00:00:00Z",
        "updated_at": "2025-10-02T00:00:00Z",
    }


def template(id: str, name: str = "Slack", description: str = "Post to Slack") -> Dict[str, Any]:
    return {"id": id, "name": name, "description": description, "icon_url": "/static/slack.png"}


VIEWER = {
    "uuid": "u-1",
    "email": "dev@example.com",
    "is_impersonated": False,
    "is_staff": False,
    "organization": {
        "plugins_access_level": 9,
        "available_product_features": [{"key": "data_pipelines"}],
    },
    "team": {"id": 1},
}


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


class FakeBackend:
    """Enough of the REST API to drive loaders and the dispatcher end to end."""

    def __init__(self) -> None:
        self.plugins: Dict[int, Dict[str, Any]] = {}
        self.plugin_configs: Dict[int, Dict[str, Any]] = {}
        self.batch_exports: Dict[str, Dict[str, Any]] = {}
        self.hog_functions: Dict[str, Dict[str, Any]] = {}
        self.templates: Dict[str, Dict[str, Any]] = {}
        self.viewer: Dict[str, Any] = json.loads(json.dumps(VIEWER))
        self.page_size = 100
        # path fragment (optionally "METHOD /path") -> status code to answer with
        self.failures: Dict[str, int] = {}
        self.requests: List[Tuple[str, str, Any]] = []

    # helpers for assertions
    def calls(self, method: Optional[str] = None) -> List[Tuple[str, str, Any]]:
        return [r for r in self.requests if method is None or r[0] == method]

    def mutations(self) -> List[Tuple[str, str, Any]]:
        return [r for r in self.requests if r[0] != "GET"]

    def _page(self, request: httpx.Request, items: List[Dict[str, Any]]) -> httpx.Response:
        offset = int(request.url.params.get("offset", "0"))
        chunk = items[offset : offset + self.page_size]
        nxt = None
        if offset + self.page_size < len(items):
            nxt = str(request.url.copy_merge_params({"offset": offset + self.page_size}))
        return httpx.Response(200, json={"results": chunk, "next": nxt})

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        method = request.method
        body = json.loads(request.content) if request.content else None
        self.requests.append((method, path, body))

        for fragment, status in self.failures.items():
            if fragment in path or fragment in f"{method} {path}":
                return httpx.Response(status, json={"detail": "simulated failure"})

        p = f"/api/projects/{PROJECT_ID}"

        if method == "GET":
            if path == "/api/organizations/@current/pipeline_destinations/":
                return self._page(request, list(self.plugins.values()))
            if path == f"{p}/pipeline_destination_configs/":
                rows = [c for c in self.plugin_configs.values() if not c.get("deleted")]
                return self._page(request, rows)
            if path == f"{p}/batch_exports/":
                return self._page(request, list(self.batch_exports.values()))
            if path == f"{p}/hog_functions/":
                rows = [f for f in self.hog_functions.values() if not f.get("deleted")]
                return self._page(request, rows)
            if path == f"{p}/hog_function_templates/":
                return self._page(request, list(self.templates.values()))
            if path == "/api/users/@me/":
                return httpx.Response(200, json=self.viewer)

        m = re.fullmatch(r"/api/plugin_config/(\d+)/", path)
        if m and method == "PATCH":
            row = self.plugin_configs[int(m.group(1))]
            row.update(body or {})
            row["updated_at"] = SERVER_NOW
            return httpx.Response(200, json=row)

        m = re.fullmatch(rf"{p}/(plugin_configs|hog_functions)/([^/]+)/", path)
        if m and method == "PATCH":
            store = self.plugin_configs if m.group(1) == "plugin_configs" else self.hog_functions
            key: Any = int(m.group(2)) if m.group(1) == "plugin_configs" else m.group(2)
            row = store[key]
            row.update(body or {})
            row["updated_at"] = SERVER_NOW
            return httpx.Response(200, json=row)

        m = re.fullmatch(rf"{p}/batch_exports/([^/]+)/(pause|unpause)/", path)
        if m and method == "POST":
            self.batch_exports[m.group(1)]["paused"] = m.group(2) == "pause"
            return httpx.Response(200, json={"paused": m.group(2) == "pause"})

        m = re.fullmatch(rf"{p}/batch_exports/([^/]+)/", path)
        if m and method == "DELETE":
            del self.batch_exports[m.group(1)]
            return httpx.Response(204)

        return httpx.Response(404, json={"detail": "Not found."})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingNotifier:
    def __init__(self) -> None:
        self.infos: List[str] = []
        self.successes: List[str] = []
        self.errors: List[str] = []
        self.undo_handles: List[Any] = []

    def info(self, message: str, *, undo: Any = None) -> None:
        self.infos.append(message)
        if undo is not None:
            self.undo_handles.append(undo)

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class RecordingTelemetry:
    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def capture(self, event: str, properties: Dict[str, Any]) -> None:
        self.events.append((event, properties))


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def backend() -> FakeBackend:
    b = FakeBackend()
    b.plugins = {1: plugin(1, "Webhook"), 2: plugin(2, "Customer.io", "Sync people")}
    b.plugin_configs = {
        7: plugin_config(7, 1, enabled=False, name="Team webhook"),
        8: plugin_config(8, 2, enabled=True),
    }
    b.batch_exports = {
        "be1": batch_export("be1", "Nightly S3"),
        "be2": batch_export("be2", "Warehouse", paused=True, type="Snowflake", interval="hour"),
    }
    b.templates = {"template-slack": template("template-slack")}
    b.hog_functions = {
        "42": hog_function("42", "Slack alert"),
        "43": hog_function("43", None, enabled=False, template_id="template-slack"),
    }
    return b


@pytest.fixture
async def client(backend: FakeBackend):
    c = ApiClient(BASE_URL, project_id=PROJECT_ID, token="phx_test", transport=backend.transport())
    yield c
    await c.aclose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def telemetry() -> RecordingTelemetry:
    return RecordingTelemetry()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def logic(client, notifier, telemetry, clock) -> DestinationsLogic:
    return DestinationsLogic(
        client,
        access=AccessPolicy(can_configure=True, can_enable_new_destinations=True),
        notifier=notifier,
        telemetry=telemetry,
        undoable=UndoableDelete(client, notifier, window_seconds=10.0, clock=clock),
    )


@pytest.fixture
async def mounted(logic: DestinationsLogic) -> DestinationsLogic:
    await logic.mount()
    return logic
