"""
Concurrency helpers shared by the stock-mutating services.

Writers serialize on the stock rows: PostgreSQL through SELECT ... FOR UPDATE,
SQLite (which ignores FOR UPDATE) through BEGIN IMMEDIATE on the whole file.
"""
import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """Apply row-level locking for critical operations."""
    return query.with_for_update()


def begin_write(session):
    """Take the write lock up front on SQLite so validation reads cannot go stale."""
    if session.get_bind().dialect.name == 'sqlite':
        session.execute(text('BEGIN IMMEDIATE'))


def run_with_retry(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, lock timeouts, serialization
    failures) and StaleDataError. Every retry starts from a rolled-back session.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            session.rollback()
            if attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            logger.warning(f"Concurrent write conflict (attempt {attempt + 1}/{attempts}), retrying in {delay:.2f}s: {exc}")
            time.sleep(delay)
