"""
QR Menu Order Service - Optimistic locking retry decorator

Orders carry a version_id column. Every status write or delete is an
UPDATE/DELETE ... WHERE version_id = <version we read>. A zero row count means
another request committed first: the caller raises StaleDataError, its
transaction rolls back (undoing any stock movements) and the whole unit of
work is re-run against the freshly committed state.
"""
import asyncio
import random
import functools
import logging

from qrmenu.core.config import get_settings
from qrmenu.core.errors import DomainError

settings = get_settings()
logger = logging.getLogger(__name__)


class StaleDataError(Exception):
    """Raised when an optimistic lock conflict is detected:
    the version_id in the DB changed between our read and write,
    meaning another concurrent transaction won the race.
    """
    pass


class ConcurrentUpdateError(DomainError):
    """Conflict that persisted through every retry."""

    status_code = 409


def with_optimistic_retry(max_retries: int | None = None):
    """
    Decorator for async functions that perform optimistic-lock DB writes.
    On StaleDataError, retries with exponential backoff + jitter.
    The wrapped function must open its own transaction so each attempt
    starts from a clean read.

    Usage:
        @with_optimistic_retry()
        async def request_transition(db, ...):
            async with db.begin():
                ...
    """
    _max = max_retries or settings.OPT_LOCK_MAX_RETRIES

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, _max + 1):
                try:
                    return await func(*args, **kwargs)
                except StaleDataError as exc:
                    if attempt == _max:
                        logger.error(
                            "Optimistic lock conflict unresolved after %d retries for %s",
                            _max, func.__name__,
                        )
                        raise ConcurrentUpdateError(
                            "The order was modified concurrently. Please reload and retry."
                        ) from exc
                    # Exponential backoff: base * 2^attempt + jitter
                    base_delay = settings.OPT_LOCK_BASE_DELAY_MS / 1000.0
                    max_delay = settings.OPT_LOCK_MAX_DELAY_MS / 1000.0
                    jitter = random.uniform(0, settings.OPT_LOCK_JITTER_MS / 1000.0)
                    delay = min(base_delay * (2 ** attempt), max_delay) + jitter
                    logger.warning(
                        "StaleDataError on attempt %d/%d for %s, retrying in %.3fs",
                        attempt, _max, func.__name__, delay,
                    )
                    await asyncio.sleep(delay)
        return wrapper
    return decorator
