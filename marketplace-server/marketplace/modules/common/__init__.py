"""Shared building blocks for domain modules."""

from .exceptions import ConcurrencyConflict, MarketplaceError, PersistenceUnavailable
from .transactions import StaleWrite, run_atomic

__all__ = [
    "ConcurrencyConflict",
    "MarketplaceError",
    "PersistenceUnavailable",
    "StaleWrite",
    "run_atomic",
]
