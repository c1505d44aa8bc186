"""
Stealth Reader - Database Retry Logic
Backoff for reading-list writes that collide with another reader process.

Two hosts can share one reading list (two windows, one database file). SQLite
serializes their writers; the loser sees "database is locked" once the busy
timeout runs out. Those errors are retried with exponential backoff. Any other
error is a real failure and propagates on the first attempt.
"""

import sqlite3
import time
from functools import wraps
from typing import Callable, TypeVar

import config
from core.logger import log_warning, log_error

T = TypeVar('T')

LOCK_ERROR_MARKERS = ("locked", "busy")


class DatabaseRetryExhausted(Exception):
    """Every attempt hit a locked database."""

    def __init__(self, attempts: int, last_error: sqlite3.OperationalError):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Database still locked after {attempts} attempts: {last_error}")


def is_lock_error(error: sqlite3.Error) -> bool:
    """True for contention errors that are worth retrying."""
    if not isinstance(error, sqlite3.OperationalError):
        return False
    message = str(error).lower()
    return any(marker in message for marker in LOCK_ERROR_MARKERS)


def db_retry(
    max_retries: int = config.DB_MAX_RETRIES,
    initial_delay: float = config.DB_RETRY_INITIAL_DELAY,
    backoff_multiplier: float = config.DB_RETRY_BACKOFF_MULTIPLIER,
    max_delay: float = config.DB_RETRY_MAX_DELAY,
):
    """
    Decorator for retrying a database call while the file is locked.

    Args:
        max_retries: Retries after the first attempt
        initial_delay: Seconds to wait before the first retry
        backoff_multiplier: Growth factor for each following wait
        max_delay: Upper bound on a single wait

    Raises (from the wrapped call):
        DatabaseRetryExhausted: If every attempt failed on a lock
        sqlite3.Error: Any non-lock failure, unchanged
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delay = initial_delay
            attempts = max_retries + 1

            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except sqlite3.OperationalError as e:
                    if not is_lock_error(e):
                        raise
                    if attempt == attempts:
                        log_error(f"{func.__name__}: database still locked after {attempts} attempts")
                        raise DatabaseRetryExhausted(attempts, e) from e

                    log_warning(
                        f"{func.__name__}: database locked (attempt {attempt}/{attempts}), "
                        f"retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    delay = min(delay * backoff_multiplier, max_delay)

        return wrapper
    return decorator
