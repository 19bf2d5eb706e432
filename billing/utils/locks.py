"""Named exclusive locks scoped to a database transaction.

PostgreSQL gets a transaction-level advisory lock, which the server drops on
commit or rollback; ``lock_timeout`` bounds the wait. Other dialects (SQLite
in development and tests) fall back to a mutex per key from the app's
:class:`NamedLocks` registry, held until the ``with`` block exits, so the
block must enclose the commit.
"""
from contextlib import contextmanager
import logging
import threading

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from billing.services.exceptions import StorageError
from models import db

logger = logging.getLogger(__name__)


class NamedLocks:
    """Mutex per key, created on first use. One instance per app."""

    def __init__(self):
        self._guard = threading.Lock()
        self._mutexes = {}

    def get(self, key) -> threading.Lock:
        with self._guard:
            return self._mutexes.setdefault(key, threading.Lock())


def _pg_lock(key: int, timeout: float):
    try:
        # SET cannot take bind parameters; the value is formatted from a float.
        db.session.execute(text(f"SET LOCAL lock_timeout = '{int(timeout * 1000)}ms'"))
        db.session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": key})
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Failed to acquire advisory lock %s: %s", key, e)
        raise StorageError("Failed to acquire lock") from e


@contextmanager
def advisory_lock(key: int, timeout: float = 30.0):
    if db.engine.dialect.name == "postgresql":
        _pg_lock(key, timeout)
        yield
        return

    mutex = current_app.extensions["named_locks"].get(key)
    if not mutex.acquire(timeout=timeout):
        logger.error("Timed out waiting for lock %s", key)
        raise StorageError("Failed to acquire lock")
    try:
        yield
    finally:
        mutex.release()
