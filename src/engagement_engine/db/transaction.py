# src/engagement_engine/db/transaction.py
"""Transaction helpers shared by the services."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from engagement_engine.core.errors import StoreUnavailableError


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Commit everything staged in the block, or nothing.

    Store outages surface as ``StoreUnavailableError`` so callers can retry;
    any other exception is re-raised unchanged after the rollback.
    """
    try:
        yield db
        db.commit()
    except OperationalError as exc:
        db.rollback()
        raise StoreUnavailableError(str(exc.orig or exc)) from exc
    except BaseException:
        db.rollback()
        raise
