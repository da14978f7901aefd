"""
Retry with exponential backoff for SQLite lock contention.

A second process holding the write lock makes sqlite raise
"database is locked". The append is a single transaction that either
commits or rolls back, so retrying it is safe.
"""

import sqlite3
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from supply_ledger.kernel.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def is_lock_error(error: BaseException) -> bool:
    """True for the OperationalError sqlite raises while another writer holds the lock"""
    return isinstance(error, sqlite3.OperationalError) and "locked" in str(error).lower()


def retry_on_sqlite_lock(
    max_attempts: int = 3,
    min_wait_ms: int = 100,
    max_wait_ms: int = 1000,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry decorator for sqlite3.OperationalError "database is locked".

    Other operational errors (missing table, disk I/O) propagate at once.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        min_wait_ms: Minimum wait between attempts in milliseconds
        max_wait_ms: Maximum wait between attempts in milliseconds

    Example:
        @retry_on_sqlite_lock()
        def append(...):
            conn.execute(...)
    """
    return retry(
        retry=retry_if_exception(is_lock_error),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=min_wait_ms / 1000.0,
            max=max_wait_ms / 1000.0,
        ),
        before_sleep=lambda retry_state: logger.warning(
            "SQLite lock detected, retrying",
            attempt=retry_state.attempt_number,
            exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        ),
        reraise=True,
    )
