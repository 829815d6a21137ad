from __future__ import annotations

import logging
import math
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from joyeria.app.core.clock import clock
from joyeria.app.core.exceptions import NotFoundError, ValidationError
from joyeria.app.models.extra_income import ExtraIncome, ExtraIncomeType
from joyeria.app.models.sales import PaymentMethod
from joyeria.app.services.audit import log_action
from joyeria.app.services.register import ledger_write
from joyeria.app.services.sale_lines import ZERO, money, positive_cents

logger = logging.getLogger(__name__)

SINGLE_METHODS = (PaymentMethod.CASH, PaymentMethod.CARD, PaymentMethod.TRANSFER)


def record_extra_income(
    db: Session,
    income_type: ExtraIncomeType | str,
    amount: Decimal,
    payment_method: PaymentMethod | str,
    description: str,
    user_id: UUID,
    notes: str | None = None,
    username: str | None = None,
) -> ExtraIncome:
    """Record money entering the register outside of a sale.

    The income belongs to the open period until the next closing stamps it.
    """
    try:
        income_type = ExtraIncomeType(income_type)
        method = PaymentMethod(payment_method)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    if method == PaymentMethod.MIXED:
        raise ValidationError("Extra incomes must use a single payment method")
    amount = positive_cents(amount, "Amount")
    if not description or not description.strip():
        raise ValidationError("A description is required")

    with ledger_write(db, "record_extra_income"):
        income = ExtraIncome(
            income_type=income_type,
            amount=amount,
            payment_method=method,
            description=description.strip(),
            notes=notes,
            user_id=user_id,
            username=username,
        )
        db.add(income)
        db.flush()

        log_action(
            db,
            user_id=user_id,
            action="EXTRA_INCOME_RECORDED",
            resource_type="extra_incomes",
            resource_id=str(income.id),
            changes={
                "income_type": income_type.value,
                "amount": str(income.amount),
                "payment_method": method.value,
            },
        )

    logger.info("Extra income %s recorded: %s %s", income.id, income_type.value, income.amount)
    return income


# ─── Queries ─────────────────────────────────────────────────────────────────


def _date_filters(date_from: date | None, date_to: date | None) -> list:
    if date_from is not None and date_to is not None and date_from > date_to:
        raise ValidationError("date_from must not be after date_to")
    filters = []
    if date_from is not None:
        filters.append(ExtraIncome.created_at >= clock.day_bounds(date_from)[0])
    if date_to is not None:
        filters.append(ExtraIncome.created_at < clock.day_bounds(date_to)[1])
    return filters


def list_extra_incomes(
    db: Session,
    income_type: ExtraIncomeType | None = None,
    closed: bool | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    page: int = 1,
    per_page: int = 50,
) -> dict:
    """Extra incomes, newest first.

    ``closed=False`` keeps the open period only, ``closed=True`` the ones a
    closing already stamped. Dates are store-local days, both ends inclusive.
    """
    if page < 1 or per_page < 1:
        raise ValidationError("page and per_page must be positive")

    query = db.query(ExtraIncome).filter(*_date_filters(date_from, date_to))
    if income_type is not None:
        query = query.filter(ExtraIncome.income_type == income_type)
    if closed is True:
        query = query.filter(ExtraIncome.closing_id.isnot(None))
    elif closed is False:
        query = query.filter(ExtraIncome.closing_id.is_(None))

    total = query.count()
    incomes = (
        query.order_by(ExtraIncome.created_at.desc(), ExtraIncome.id)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return {
        "items": incomes,
        "total": total,
        "page": page,
        "per_page": per_page,
        "total_pages": math.ceil(total / per_page),
    }


def get_extra_income(db: Session, income_id: UUID) -> ExtraIncome:
    income = db.get(ExtraIncome, income_id)
    if income is None:
        raise NotFoundError(f"Extra income {income_id} not found")
    return income


def get_extra_incomes_summary(
    db: Session, date_from: date | None = None, date_to: date | None = None
) -> dict:
    """Count and amount of extra incomes, overall, by type and by payment method."""
    filters = _date_filters(date_from, date_to)

    total_count, total_amount = (
        db.query(func.count(ExtraIncome.id), func.coalesce(func.sum(ExtraIncome.amount), 0))
        .filter(*filters)
        .one()
    )
    by_type = {
        income_type: (count, amount)
        for income_type, count, amount in db.query(
            ExtraIncome.income_type, func.count(ExtraIncome.id), func.sum(ExtraIncome.amount)
        )
        .filter(*filters)
        .group_by(ExtraIncome.income_type)
        .all()
    }
    by_method = {
        method: (count, amount)
        for method, count, amount in db.query(
            ExtraIncome.payment_method, func.count(ExtraIncome.id), func.sum(ExtraIncome.amount)
        )
        .filter(*filters)
        .group_by(ExtraIncome.payment_method)
        .all()
    }

    def bucket(row: tuple[int, Decimal | None] | None) -> dict:
        count, amount = row or (0, None)
        return {"count": count, "amount": money(amount or ZERO)}

    return {
        "total_count": total_count,
        "total_amount": money(total_amount),
        "by_type": {t.value: bucket(by_type.get(t)) for t in ExtraIncomeType},
        "by_payment_method": {m.value: bucket(by_method.get(m)) for m in SINGLE_METHODS},
    }
