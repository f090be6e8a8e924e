"""
Retry of transient storage failures. Only wrap idempotent operations here
(automatic assignment, read queries): week submission and review are never
retried blindly.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and bool(getattr(exc, "connection_invalidated", False))


async def run_with_retry(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
) -> T:
    """Run operation, rolling back and retrying with exponential backoff on transient errors."""
    attempts = attempts or settings.db_retry_attempts
    delay = settings.db_retry_base_delay if base_delay is None else base_delay
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except DBAPIError as exc:
            if not is_transient(exc) or attempt >= attempts:
                raise
            await db.rollback()
            wait = delay * (2 ** (attempt - 1))
            logger.warning(
                "Transient storage error (attempt %d/%d), retrying in %.2fs: %s",
                attempt, attempts, wait, exc,
            )
            await asyncio.sleep(wait)
