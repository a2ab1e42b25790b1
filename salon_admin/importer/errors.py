"""Error types raised while talking to the salon API."""

from __future__ import annotations


class SalonApiError(RuntimeError):
    """Base error for salon API failures; the message is shown to the admin."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MalformedResponseError(SalonApiError, ValueError):
    """Raised when a backend payload does not match the import contract."""
