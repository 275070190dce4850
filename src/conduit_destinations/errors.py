from __future__ import annotations

from typing import Optional


class DestinationsError(Exception):
    """Base class for destination aggregation and dispatch errors."""


class LoadError(DestinationsError):
    """A loader could not fetch its collection; its cached mapping is unchanged."""

    def __init__(self, loader: str, cause: Optional[BaseException] = None) -> None:
        self.loader = loader
        self.cause = cause
        super().__init__(f"failed to load {loader}: {cause}")


class ActionPermissionError(DestinationsError):
    """A toggle/delete intent was refused before any remote call was made."""


class RemoteOperationError(DestinationsError):
    """A toggle/delete remote call failed after its preconditions passed."""

    def __init__(self, backend: str, operation: str, cause: BaseException) -> None:
        self.backend = backend
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} on {backend} destination failed: {cause}")


class UnsupportedOperationError(DestinationsError):
    """An intent has no handler for the destination's backend."""


class UndoExpiredError(DestinationsError):
    """The undo window has closed, or the deletion was already undone."""
