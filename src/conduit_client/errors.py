from __future__ import annotations

from typing import Optional


class ApiError(Exception):
    """A request to the remote API failed (transport error or non-2xx status)."""

    def __init__(
        self, message: str, *, status_code: Optional[int] = None, url: str = ""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"{base} (status={self.status_code})"
        return base
