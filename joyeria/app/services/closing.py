"""Cash-register closing ("cierre de caja").

A closing moves the open period into the archive in one transaction:

1. lock the register row exclusively (contention -> RetryableError)
2. snapshot the open period with the same aggregation as the day summary
3. write the ``CashClosing`` record from the snapshot
4. archive every day-ledger sale and stamp open abonos and extra incomes
5. advance the register to a new period

If any step fails nothing is kept: no closing row, no archived sale, no
stamped abono.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from joyeria.app.core.cache import SimpleCache
from joyeria.app.core.clock import clock
from joyeria.app.core.exceptions import NotFoundError, ValidationError
from joyeria.app.models.extra_income import ExtraIncome
from joyeria.app.models.receivable import Abono
from joyeria.app.models.register import CashClosing
from joyeria.app.models.sales import LedgerStatus, Sale
from joyeria.app.services.audit import log_action
from joyeria.app.services.day_summary import compute_day_summary
from joyeria.app.services.register import ledger_write

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = (
    "total_sales",
    "total_income",
    "total_discounts",
    "sales_cash",
    "sales_card",
    "sales_transfer",
    "total_abonos",
    "abonos_amount",
    "abonos_cash",
    "abonos_card",
    "abonos_transfer",
    "total_extra_incomes",
    "extra_incomes_amount",
    "extra_incomes_cash",
    "extra_incomes_card",
    "extra_incomes_transfer",
    "combined_cash",
    "combined_card",
    "combined_transfer",
    "combined_total",
)


def _archive_sale(db: Session, sale: Sale, closing: CashClosing, now: datetime) -> None:
    sale.ledger_status = LedgerStatus.ARCHIVED
    sale.closing_id = closing.id
    sale.archived_at = now


def close_register(
    db: Session,
    user_id: UUID | None,
    username: str | None = None,
    notes: str | None = None,
    cache: SimpleCache | None = None,
) -> CashClosing:
    """Close the open period and return the new closing record.

    Raises ValidationError when the period has no sales, abonos or extra
    incomes, and RetryableError when another closing holds the register.
    """
    with ledger_write(db, "close_register", exclusive=True) as register:
        summary = compute_day_summary(db)
        if not (
            summary["total_sales"]
            or summary["total_abonos"]
            or summary["total_extra_incomes"]
        ):
            logger.warning("Closing rejected: nothing recorded since the last closing")
            raise ValidationError("There is nothing to close since the last closing")

        now = clock.now()
        closing = CashClosing(
            register_id=register.id,
            period_start=register.current_period_start or now,
            closed_at=now,
            user_id=user_id,
            username=username,
            notes=notes,
            **{field: summary[field] for field in SNAPSHOT_FIELDS},
        )
        db.add(closing)
        db.flush()
        closing_id = closing.id

        # ── Move the day ledger into the archive ─────────────────────────
        pending = (
            db.query(Sale)
            .filter(Sale.ledger_status == LedgerStatus.PENDING_CLOSE)
            .order_by(Sale.created_at, Sale.id)
            .all()
        )
        for sale in pending:
            _archive_sale(db, sale, closing, now)
        db.flush()

        db.execute(
            update(Abono)
            .where(Abono.closing_id.is_(None))
            .values(closing_id=closing_id)
            .execution_options(synchronize_session=False)
        )
        db.execute(
            update(ExtraIncome)
            .where(ExtraIncome.closing_id.is_(None))
            .values(closing_id=closing_id)
            .execution_options(synchronize_session=False)
        )

        register.current_period_start = now
        register.last_closing_id = closing_id

        log_action(
            db,
            user_id=user_id,
            action="REGISTER_CLOSED",
            resource_type="cash_closings",
            resource_id=str(closing_id),
            changes={
                "sales_archived": len(pending),
                "total_abonos": summary["total_abonos"],
                "total_extra_incomes": summary["total_extra_incomes"],
                "combined_total": str(summary["combined_total"]),
            },
        )

    if cache is not None:
        cache.clear()

    logger.info(
        "Register closed by %s: closing %s, %d sales archived, combined total %s",
        username or user_id,
        closing_id,
        summary["total_sales"],
        summary["combined_total"],
    )
    return db.get(CashClosing, closing_id)


# ─── History ─────────────────────────────────────────────────────────────────


def list_closings(
    db: Session,
    date_from: date | None = None,
    date_to: date | None = None,
    username: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """Closing history, newest first. Dates are store-local days."""
    if page < 1 or per_page < 1:
        raise ValidationError("page and per_page must be positive")

    query = db.query(CashClosing)
    if date_from is not None:
        query = query.filter(CashClosing.closed_at >= clock.day_bounds(date_from)[0])
    if date_to is not None:
        query = query.filter(CashClosing.closed_at < clock.day_bounds(date_to)[1])
    if username:
        query = query.filter(CashClosing.username == username)

    total = query.count()
    closings = (
        query.order_by(CashClosing.closed_at.desc(), CashClosing.id)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return {
        "items": closings,
        "total": total,
        "page": page,
        "per_page": per_page,
        "total_pages": math.ceil(total / per_page),
    }


def get_closing(db: Session, closing_id: UUID) -> dict:
    """Closing record together with the sales it archived."""
    closing = db.get(CashClosing, closing_id)
    if closing is None:
        raise NotFoundError(f"Closing {closing_id} not found")

    sales = (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.closing_id == closing_id)
        .order_by(Sale.created_at, Sale.id)
        .all()
    )
    detail = {column.key: getattr(closing, column.key) for column in CashClosing.__table__.columns}
    detail["sales"] = sales
    return detail
