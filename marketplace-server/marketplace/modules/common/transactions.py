"""Unit-of-work helper running a coroutine inside one database transaction.

Each attempt opens a fresh session and a single transaction. Leaving the
``async with`` block by any exception (including task cancellation) rolls the
transaction back, so a failed or interrupted attempt never leaves partial rows
behind.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .exceptions import ConcurrencyConflict, PersistenceUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StaleWrite(Exception):
    """An optimistic write matched no row because another writer got there first."""


UNIQUE_VIOLATION_MARKERS = ("unique constraint", "duplicate key", "duplicate entry")


def is_unique_violation(exc: IntegrityError) -> bool:
    """True for a lost insert race; CHECK, NOT NULL and foreign key failures are not."""
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    message = str(exc.orig).lower()
    return any(marker in message for marker in UNIQUE_VIOLATION_MARKERS)


async def run_atomic(
    session_factory: async_sessionmaker[AsyncSession],
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    operation: str,
    max_attempts: int = 1,
    backoff_seconds: float = 0.0,
) -> T:
    """Run ``work`` in a transaction, retrying lost optimistic races.

    ``StaleWrite`` and unique-key violations restart the whole attempt after a
    jittered pause; once ``max_attempts`` is spent ``ConcurrencyConflict`` is
    raised. Connectivity failures become ``PersistenceUnavailable``. Domain
    errors and other integrity failures raised by ``work`` propagate untouched
    after the rollback.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            async with session_factory() as session:
                async with session.begin():
                    return await work(session)
        except (StaleWrite, IntegrityError) as exc:
            if isinstance(exc, IntegrityError) and not is_unique_violation(exc):
                raise
            logger.warning(
                "%s lost a concurrent write (attempt %s/%s): %s",
                operation,
                attempt,
                max_attempts,
                exc.__class__.__name__,
            )
        except (OperationalError, InterfaceError) as exc:
            logger.error("%s failed, storage unavailable: %s", operation, exc)
            raise PersistenceUnavailable(f"{operation} could not reach storage") from exc

        if attempt < max_attempts and backoff_seconds > 0:
            await asyncio.sleep(backoff_seconds * attempt * (0.5 + random.random()))

    raise ConcurrencyConflict(f"{operation} conflicted with concurrent updates", attempts=max_attempts)


__all__ = ["StaleWrite", "is_unique_violation", "run_atomic"]
