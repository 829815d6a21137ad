"""Receivable ledger: credit sales, abonos and the receivables portfolio.

A credit sale goes straight to the archive (``ARCHIVED``, no payment
method) together with an ``AccountReceivable`` holding its whole total.
Abonos reduce the pending balance and belong to the open cash-register
period, so they are counted by the day summary and stamped by the next
closing.
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from joyeria.app.core.clock import clock
from joyeria.app.core.config import settings
from joyeria.app.core.exceptions import NotFoundError, OverpaymentError, ValidationError
from joyeria.app.models.receivable import Abono, AccountReceivable, ReceivableStatus
from joyeria.app.models.sales import LedgerStatus, PaymentMethod, Sale, SaleType
from joyeria.app.schemas.sales import SaleLineIn
from joyeria.app.services.audit import log_action
from joyeria.app.services.customers import get_customer
from joyeria.app.services.register import ledger_write
from joyeria.app.services.sale_lines import (
    ZERO,
    compute_totals,
    money,
    positive_cents,
    price_lines,
    write_lines,
)

logger = logging.getLogger(__name__)

ABONO_METHODS = (PaymentMethod.CASH, PaymentMethod.CARD, PaymentMethod.TRANSFER)


def record_credit_sale(
    db: Session,
    items: list[SaleLineIn],
    customer_id: UUID,
    user_id: UUID,
    due_date: date | None = None,
    discount: Decimal = ZERO,
    notes: str | None = None,
    username: str | None = None,
) -> dict:
    """Create an archived credit sale and its receivable in one transaction.

    The due date defaults to today plus the customer's payment terms.
    """
    if customer_id is None:
        raise ValidationError("Credit sales require a customer")
    customer = get_customer(db, customer_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found")

    today = clock.today()
    if due_date is None:
        terms = customer.payment_terms_days
        if terms is None:
            terms = settings.DEFAULT_PAYMENT_TERMS_DAYS
        due_date = today + timedelta(days=terms)
    elif due_date < today:
        raise ValidationError(f"Due date {due_date.isoformat()} is in the past")

    lines = price_lines(db, items)
    subtotal, discount, total = compute_totals(lines, discount)

    with ledger_write(db, "record_credit_sale"):
        sale = Sale(
            user_id=user_id,
            customer_id=customer.id,
            sale_type=SaleType.CREDITO,
            payment_method=None,
            subtotal=subtotal,
            discount=discount,
            total=total,
            cash_amount=ZERO,
            card_amount=ZERO,
            transfer_amount=ZERO,
            notes=notes,
            ledger_status=LedgerStatus.ARCHIVED,
            archived_at=clock.now(),
        )
        db.add(sale)
        db.flush()
        sale_id = sale.id

        write_lines(db, sale, lines, username)

        receivable = AccountReceivable(
            sale_id=sale_id,
            customer_id=customer.id,
            total_amount=total,
            amount_paid=ZERO,
            pending_balance=total,
            status=ReceivableStatus.PAGADA if total == 0 else ReceivableStatus.PENDIENTE,
            due_date=due_date,
        )
        db.add(receivable)
        db.flush()
        receivable_id = receivable.id

        log_action(
            db,
            user_id=user_id,
            action="CREDIT_SALE_RECORDED",
            resource_type="accounts_receivable",
            resource_id=str(receivable_id),
            changes={
                "sale_id": str(sale_id),
                "customer": customer.name,
                "total_amount": str(total),
                "due_date": due_date.isoformat(),
                "item_count": len(lines),
            },
        )

    logger.info(
        "Credit sale %s recorded for customer %s: %s due %s",
        sale_id,
        customer_id,
        total,
        due_date,
    )
    return {
        "sale_id": sale_id,
        "sale_type": SaleType.CREDITO,
        "subtotal": subtotal,
        "discount": discount,
        "total": total,
        "change": None,
        "receivable_id": receivable_id,
        "due_date": due_date,
    }


def record_abono(
    db: Session,
    receivable_id: UUID,
    amount: Decimal,
    payment_method: PaymentMethod | str,
    user_id: UUID,
    notes: str | None = None,
    username: str | None = None,
) -> dict:
    """Apply a partial payment to a receivable.

    The whole amount is applied or nothing is: an abono larger than the
    pending balance raises OverpaymentError.
    """
    amount = positive_cents(amount, "Abono amount")
    try:
        method = PaymentMethod(payment_method)
    except ValueError as exc:
        raise ValidationError(f"Unknown payment method '{payment_method}'") from exc
    if method not in ABONO_METHODS:
        raise ValidationError("Abonos must be paid with a single payment method")

    with ledger_write(db, "record_abono"):
        receivable = (
            db.query(AccountReceivable)
            .filter(AccountReceivable.id == receivable_id)
            .with_for_update()
            .first()
        )
        if receivable is None:
            raise NotFoundError(f"Receivable {receivable_id} not found")

        pending = Decimal(str(receivable.pending_balance))
        if receivable.status == ReceivableStatus.PAGADA or pending <= 0:
            logger.warning("Abono rejected: receivable %s already settled", receivable_id)
            raise OverpaymentError(f"Receivable {receivable_id} is already settled")
        if amount > pending:
            logger.warning(
                "Abono rejected: %s exceeds pending balance %s of %s",
                amount,
                pending,
                receivable_id,
            )
            raise OverpaymentError(
                f"Abono ({amount}) exceeds the pending balance ({pending})"
            )

        new_pending = pending - amount
        receivable.pending_balance = new_pending
        receivable.amount_paid = Decimal(str(receivable.amount_paid)) + amount
        if new_pending == 0:
            receivable.status = ReceivableStatus.PAGADA
        status = receivable.status

        abono = Abono(
            receivable_id=receivable.id,
            amount=amount,
            payment_method=method,
            notes=notes,
            username=username,
        )
        db.add(abono)
        db.flush()
        abono_id = abono.id

        log_action(
            db,
            user_id=user_id,
            action="ABONO_RECORDED",
            resource_type="abonos",
            resource_id=str(abono_id),
            changes={
                "receivable_id": str(receivable_id),
                "amount": str(amount),
                "payment_method": method.value,
                "new_pending_balance": str(new_pending),
            },
        )

    logger.info(
        "Abono %s of %s applied to receivable %s (pending %s)",
        abono_id,
        amount,
        receivable_id,
        new_pending,
    )
    return {
        "abono_id": abono_id,
        "new_pending_balance": new_pending,
        "status": status,
    }


# ─── Queries ─────────────────────────────────────────────────────────────────


def _is_overdue(receivable: AccountReceivable, today: date) -> bool:
    return (
        receivable.status == ReceivableStatus.PENDIENTE
        and receivable.due_date is not None
        and receivable.due_date < today
    )


def _receivable_row(receivable: AccountReceivable, today: date) -> dict:
    return {
        "id": receivable.id,
        "sale_id": receivable.sale_id,
        "customer_id": receivable.customer_id,
        "customer_name": receivable.customer.name if receivable.customer else None,
        "total_amount": receivable.total_amount,
        "amount_paid": receivable.amount_paid,
        "pending_balance": receivable.pending_balance,
        "status": receivable.status,
        "due_date": receivable.due_date,
        "created_at": receivable.created_at,
        "is_overdue": _is_overdue(receivable, today),
    }


def list_receivables(
    db: Session,
    status: ReceivableStatus | None = None,
    customer_id: UUID | None = None,
    overdue_only: bool = False,
    page: int = 1,
    per_page: int = 50,
) -> dict:
    if page < 1 or per_page < 1:
        raise ValidationError("page and per_page must be positive")

    today = clock.today()
    query = db.query(AccountReceivable)
    if status is not None:
        query = query.filter(AccountReceivable.status == status)
    if customer_id is not None:
        query = query.filter(AccountReceivable.customer_id == customer_id)
    if overdue_only:
        query = query.filter(
            AccountReceivable.status == ReceivableStatus.PENDIENTE,
            AccountReceivable.due_date < today,
        )

    total = query.count()
    receivables = (
        query.options(joinedload(AccountReceivable.customer))
        .order_by(AccountReceivable.created_at.desc(), AccountReceivable.id)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return {
        "items": [_receivable_row(r, today) for r in receivables],
        "total": total,
        "page": page,
        "per_page": per_page,
        "total_pages": math.ceil(total / per_page),
    }


def get_receivable_detail(db: Session, receivable_id: UUID) -> dict:
    """Receivable with its abonos and the originating sale."""
    receivable = (
        db.query(AccountReceivable)
        .options(
            joinedload(AccountReceivable.customer),
            selectinload(AccountReceivable.abonos),
            joinedload(AccountReceivable.sale).selectinload(Sale.items),
        )
        .filter(AccountReceivable.id == receivable_id)
        .first()
    )
    if receivable is None:
        raise NotFoundError(f"Receivable {receivable_id} not found")

    row = _receivable_row(receivable, clock.today())
    row["abonos"] = list(receivable.abonos)
    row["sale"] = receivable.sale
    return row


def list_customer_receivables(
    db: Session, customer_id: UUID, include_settled: bool = True
) -> list[dict]:
    if get_customer(db, customer_id) is None:
        raise NotFoundError(f"Customer {customer_id} not found")

    query = (
        db.query(AccountReceivable)
        .options(joinedload(AccountReceivable.customer))
        .filter(AccountReceivable.customer_id == customer_id)
    )
    if not include_settled:
        query = query.filter(AccountReceivable.status == ReceivableStatus.PENDIENTE)

    today = clock.today()
    return [
        _receivable_row(r, today)
        for r in query.order_by(AccountReceivable.due_date, AccountReceivable.id).all()
    ]


def get_receivables_summary(db: Session) -> dict:
    """Portfolio totals; overdue is judged against the store-local date."""
    today = clock.today()

    pending_count, total_receivable = (
        db.query(
            func.count(AccountReceivable.id),
            func.coalesce(func.sum(AccountReceivable.pending_balance), 0),
        )
        .filter(AccountReceivable.status == ReceivableStatus.PENDIENTE)
        .one()
    )
    settled_count = (
        db.query(func.count(AccountReceivable.id))
        .filter(AccountReceivable.status == ReceivableStatus.PAGADA)
        .scalar()
    )
    total_collected = db.query(
        func.coalesce(func.sum(AccountReceivable.amount_paid), 0)
    ).scalar()
    overdue_count, overdue_amount = (
        db.query(
            func.count(AccountReceivable.id),
            func.coalesce(func.sum(AccountReceivable.pending_balance), 0),
        )
        .filter(
            AccountReceivable.status == ReceivableStatus.PENDIENTE,
            AccountReceivable.due_date < today,
        )
        .one()
    )

    return {
        "pending_count": pending_count,
        "settled_count": settled_count or 0,
        "total_receivable": money(total_receivable),
        "total_collected": money(total_collected),
        "overdue_count": overdue_count,
        "overdue_amount": money(overdue_amount),
    }
