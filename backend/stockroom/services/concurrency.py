# Overview: Transaction scope, row locking and retry helpers for stock mutations.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


class StoreError(Exception):
    """Store unavailable or a write failed after validation passed (500-level)."""


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; write_transaction() takes
    the database write lock there instead.
    """
    return query.with_for_update()


@contextmanager
def write_transaction():
    """
    All-or-nothing unit for a read-modify-write.

    Commits when the block exits normally and rolls back on any exception,
    which is then re-raised unchanged. On SQLite the transaction opens with
    BEGIN IMMEDIATE so concurrent writers serialize before their reads.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_store_operation(func, *, description: str, attempts: int = 3):
    """
    run_with_retry, with any remaining store failure surfaced as StoreError.

    Domain errors raised by func pass through untouched.
    """
    try:
        return run_with_retry(func, attempts=attempts)
    except SQLAlchemyError as exc:
        raise StoreError(f"{description} failed") from exc
