"""Read-only aggregate of the open cash-register period.

The open period is everything not yet stamped by a closing: day-ledger
sales (``PENDING_CLOSE``), plus abonos and extra incomes with no
``closing_id``. Credit sales never appear here; the money they bring in is
counted when their abonos are paid.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from joyeria.app.core.cache import SimpleCache
from joyeria.app.models.extra_income import ExtraIncome
from joyeria.app.models.receivable import Abono
from joyeria.app.models.sales import LedgerStatus, PaymentMethod, Sale, SaleType
from joyeria.app.services.register import find_register
from joyeria.app.services.sale_lines import ZERO, money

logger = logging.getLogger(__name__)


def _by_method(rows: list[tuple[PaymentMethod, Decimal | None]]) -> dict[PaymentMethod, Decimal]:
    totals = {method: ZERO for method in PaymentMethod}
    for method, amount in rows:
        totals[method] = money(amount or ZERO)
    return totals


def compute_day_summary(db: Session) -> dict[str, Any]:
    """Aggregate the open period straight from the database."""
    register = find_register(db)

    # ── Day-ledger sales ─────────────────────────────────────────────────
    day_sales = (
        Sale.ledger_status == LedgerStatus.PENDING_CLOSE,
        Sale.sale_type == SaleType.CONTADO,
    )
    total_sales, total_income, total_discounts, sales_cash, sales_card, sales_transfer = (
        db.query(
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.total), 0),
            func.coalesce(func.sum(Sale.discount), 0),
            func.coalesce(func.sum(Sale.cash_amount), 0),
            func.coalesce(func.sum(Sale.card_amount), 0),
            func.coalesce(func.sum(Sale.transfer_amount), 0),
        )
        .filter(*day_sales)
        .one()
    )
    sales_by_method = {method.value: 0 for method in PaymentMethod}
    for method, count in (
        db.query(Sale.payment_method, func.count(Sale.id))
        .filter(*day_sales)
        .group_by(Sale.payment_method)
        .all()
    ):
        sales_by_method[method.value] = count

    # ── Abonos ───────────────────────────────────────────────────────────
    total_abonos, abonos_amount = (
        db.query(func.count(Abono.id), func.coalesce(func.sum(Abono.amount), 0))
        .filter(Abono.closing_id.is_(None))
        .one()
    )
    abonos = _by_method(
        db.query(Abono.payment_method, func.sum(Abono.amount))
        .filter(Abono.closing_id.is_(None))
        .group_by(Abono.payment_method)
        .all()
    )

    # ── Extra incomes ────────────────────────────────────────────────────
    total_extra, extra_amount = (
        db.query(func.count(ExtraIncome.id), func.coalesce(func.sum(ExtraIncome.amount), 0))
        .filter(ExtraIncome.closing_id.is_(None))
        .one()
    )
    extras = _by_method(
        db.query(ExtraIncome.payment_method, func.sum(ExtraIncome.amount))
        .filter(ExtraIncome.closing_id.is_(None))
        .group_by(ExtraIncome.payment_method)
        .all()
    )

    summary: dict[str, Any] = {
        "period_start": register.current_period_start if register else None,
        "revision": register.revision if register else 0,
        "total_sales": total_sales,
        "total_income": money(total_income),
        "total_discounts": money(total_discounts),
        "sales_cash": money(sales_cash),
        "sales_card": money(sales_card),
        "sales_transfer": money(sales_transfer),
        "sales_by_method": sales_by_method,
        "total_abonos": total_abonos,
        "abonos_amount": money(abonos_amount),
        "abonos_cash": abonos[PaymentMethod.CASH],
        "abonos_card": abonos[PaymentMethod.CARD],
        "abonos_transfer": abonos[PaymentMethod.TRANSFER],
        "total_extra_incomes": total_extra,
        "extra_incomes_amount": money(extra_amount),
        "extra_incomes_cash": extras[PaymentMethod.CASH],
        "extra_incomes_card": extras[PaymentMethod.CARD],
        "extra_incomes_transfer": extras[PaymentMethod.TRANSFER],
    }
    summary["combined_cash"] = (
        summary["sales_cash"] + summary["abonos_cash"] + summary["extra_incomes_cash"]
    )
    summary["combined_card"] = (
        summary["sales_card"] + summary["abonos_card"] + summary["extra_incomes_card"]
    )
    summary["combined_transfer"] = (
        summary["sales_transfer"]
        + summary["abonos_transfer"]
        + summary["extra_incomes_transfer"]
    )
    summary["combined_total"] = (
        summary["total_income"] + summary["abonos_amount"] + summary["extra_incomes_amount"]
    )
    return summary


def _copy(summary: dict[str, Any]) -> dict[str, Any]:
    result = dict(summary)
    result["sales_by_method"] = dict(summary["sales_by_method"])
    return result


def get_day_summary(db: Session, cache: SimpleCache | None = None) -> dict[str, Any]:
    """Return the open-period summary, memoised per ledger revision.

    Every ledger write bumps the register revision, so a cached entry is
    never served after the ledgers change.
    """
    if cache is None:
        return compute_day_summary(db)

    register = find_register(db)
    key = (
        "day_summary",
        register.id if register else None,
        register.revision if register else 0,
    )
    cached = cache.get(key)
    if cached is not None:
        return _copy(cached)

    summary = compute_day_summary(db)
    cache.set(key, summary)
    logger.debug("Day summary cached at revision %s", key[2])
    return _copy(summary)
