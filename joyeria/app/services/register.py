"""Cash-register row: the lock shared by every ledger write.

Ledger writes take the register row ``FOR UPDATE`` and bump its revision;
a closing takes it ``FOR UPDATE NOWAIT`` so that a second closing (or a
closing racing a long write) fails fast with RetryableError instead of
queueing. SQLite ignores row locks and serialises writers itself; a writer
that finds the database busy gets RetryableError as well.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from joyeria.app.core.config import settings
from joyeria.app.core.exceptions import FatalError, RetryableError
from joyeria.app.models.register import CashRegister

logger = logging.getLogger(__name__)

# SQLSTATE lock_not_available, raised by FOR UPDATE NOWAIT on a held row
LOCK_NOT_AVAILABLE = "55P03"
SQLITE_BUSY = 5


def _register_query(db: Session) -> Query:
    return db.query(CashRegister).filter(CashRegister.name == settings.REGISTER_NAME)


def find_register(db: Session) -> CashRegister | None:
    return _register_query(db).first()


def get_register(db: Session) -> CashRegister:
    """Return the register row, creating it on first use."""
    register = _register_query(db).first()
    if register is None:
        register = CashRegister(name=settings.REGISTER_NAME, revision=0)
        db.add(register)
        db.flush()
    return register


def lock_register_for_write(db: Session) -> CashRegister:
    register = _register_query(db).with_for_update().first()
    if register is None:
        register = get_register(db)
    register.revision += 1
    return register


def _is_lock_conflict(exc: OperationalError) -> bool:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == LOCK_NOT_AVAILABLE:
        return True
    # extended result codes keep the primary code in the low byte
    return ((getattr(orig, "sqlite_errorcode", None) or 0) & 0xFF) == SQLITE_BUSY


def lock_register_for_closing(db: Session) -> CashRegister:
    """Take the register row without waiting.

    Only a held lock becomes RetryableError; any other OperationalError
    (lost connection, refused login) propagates to ``ledger_write``.
    """
    try:
        register = _register_query(db).with_for_update(nowait=True).first()
    except OperationalError as exc:
        if not _is_lock_conflict(exc):
            raise
        raise RetryableError(
            "The cash register is busy with another closing; try again shortly"
        ) from exc
    if register is None:
        register = get_register(db)
    register.revision += 1
    return register


@contextmanager
def ledger_write(
    db: Session, operation: str, *, exclusive: bool = False
) -> Iterator[CashRegister]:
    """Run one ledger write as a single transaction.

    Locks the register, yields it, and commits when the block finishes.
    Any exception rolls everything back. Lock conflicts are re-raised as
    RetryableError and other database errors as FatalError.
    """
    try:
        register = (
            lock_register_for_closing(db) if exclusive else lock_register_for_write(db)
        )
        yield register
        db.commit()
    except Exception as exc:
        db.rollback()
        if isinstance(exc, OperationalError) and _is_lock_conflict(exc):
            logger.warning("%s rejected: cash register is locked", operation)
            raise RetryableError(
                "The cash register is busy with a closing; try again shortly"
            ) from exc
        if isinstance(exc, SQLAlchemyError):
            logger.exception("%s failed, transaction rolled back", operation)
            raise FatalError(f"{operation} failed; no changes were saved") from exc
        raise
