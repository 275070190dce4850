"""
User-facing notification side channel.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

from conduit_common.logging import setup_logging

if TYPE_CHECKING:
    from conduit_destinations.undo import UndoHandle

log = setup_logging("conduit.notify")


@runtime_checkable
class Notifier(Protocol):
    def info(self, message: str, *, undo: Optional["UndoHandle"] = None) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Default notifier: messages go to the log."""

    def info(self, message: str, *, undo: Optional["UndoHandle"] = None) -> None:
        if undo is not None:
            log.info(f"{message} (undo available for {undo.remaining:.0f}s)")
        else:
            log.info(message)

    def success(self, message: str) -> None:
        log.info(message)

    def error(self, message: str) -> None:
        log.error(message)
