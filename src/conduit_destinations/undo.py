"""
Undoable delete: soft-delete now, allow a restore until the window closes.
"""

from __future__ import annotations

import inspect
import time
from typing import Awaitable, Callable, Optional, Union

from conduit_client.api import ApiClient, ResourceId
from conduit_client.errors import ApiError
from conduit_common.logging import setup_logging
from conduit_destinations.errors import UndoExpiredError
from conduit_destinations.notify import Notifier

log = setup_logging("conduit.undo")

UndoCallback = Callable[[bool], Union[None, Awaitable[None]]]
Clock = Callable[[], float]


async def _invoke(callback: Optional[UndoCallback], undo: bool) -> None:
    if callback is None:
        return
    result = callback(undo)
    if inspect.isawaitable(result):
        await result


class UndoHandle:
    """One pending deletion that may still be reverted."""

    def __init__(
        self,
        owner: "UndoableDelete",
        endpoint: str,
        object_id: ResourceId,
        name: str,
        callback: Optional[UndoCallback],
        expires_at: float,
    ) -> None:
        self._owner = owner
        self.endpoint = endpoint
        self.object_id = object_id
        self.name = name
        self._callback = callback
        self.expires_at = expires_at
        self.undone = False

    @property
    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._owner.clock())

    @property
    def expired(self) -> bool:
        return self._owner.clock() >= self.expires_at

    async def undo(self) -> None:
        if self.undone:
            raise UndoExpiredError(f"{self.name} was already restored")
        if self.expired:
            raise UndoExpiredError(f"undo window for {self.name} has closed")
        await self._owner.restore(self)
        self.undone = True
        await _invoke(self._callback, True)


class UndoableDelete:
    """Soft-deletes objects through ``PATCH {deleted: true}`` and hands out undo handles."""

    def __init__(
        self,
        client: ApiClient,
        notifier: Notifier,
        *,
        window_seconds: float = 10.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self._client = client
        self._notifier = notifier
        self.window_seconds = window_seconds
        self.clock = clock

    async def delete(
        self,
        endpoint: str,
        object_id: ResourceId,
        name: Optional[str],
        callback: Optional[UndoCallback] = None,
    ) -> UndoHandle:
        label = name or "Unnamed"
        await self._client.update(f"{endpoint}/{object_id}/", {"deleted": True})
        await _invoke(callback, False)
        handle = UndoHandle(
            self, endpoint, object_id, label, callback, self.clock() + self.window_seconds
        )
        log.info(f"soft_deleted endpoint={endpoint} id={object_id}")
        self._notifier.info(f"{label} has been deleted", undo=handle)
        return handle

    async def restore(self, handle: UndoHandle) -> None:
        try:
            await self._client.update(
                f"{handle.endpoint}/{handle.object_id}/", {"deleted": False}
            )
        except ApiError as e:
            log.exception(f"restore_failed endpoint={handle.endpoint} id={handle.object_id}")
            self._notifier.error(f"Failed to restore {handle.name}: {e}")
            raise
        log.info(f"restored endpoint={handle.endpoint} id={handle.object_id}")
        self._notifier.success(f"{handle.name} has been restored")
