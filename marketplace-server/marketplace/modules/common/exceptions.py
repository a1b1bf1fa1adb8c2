"""Base error types shared by every domain module."""

from __future__ import annotations

from typing import Any


class MarketplaceError(Exception):
    """Base class for typed domain errors.

    ``code`` is a stable machine readable identifier and ``retryable`` tells
    the caller whether repeating the same request may succeed.
    """

    code = "marketplace_error"
    retryable = False

    def __init__(self, message: str | None = None, **context: Any) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.context = context

    @property
    def detail(self) -> str:
        return str(self)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "detail": self.detail, "retryable": self.retryable, **self.context}


class PersistenceUnavailable(MarketplaceError):
    """The storage backend could not be reached."""

    code = "persistence_unavailable"
    retryable = True


class ConcurrencyConflict(MarketplaceError):
    """Concurrent updates kept conflicting; the request is safe to retry."""

    code = "concurrency_conflict"
    retryable = True
