# Overview: Transaction boundaries and locking for balance-changing operations.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    Locked rows are re-read from the database even if already in the session.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; User.version_id covers it there.
    """
    return query.with_for_update().populate_existing()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB unit of work with retry on concurrency-related failures.

    `func` must do all of its reads, writes and the commit itself so a retry
    starts from fresh state. Retries on OperationalError (deadlocks, locks)
    and StaleDataError (optimistic version conflicts). Any other exception
    rolls the session back and propagates.
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
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc
