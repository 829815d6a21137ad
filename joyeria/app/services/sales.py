"""Day-ledger writer: cash sales ("ventas de contado") and sale queries.

Cash sales land in the open period with ``ledger_status = PENDING_CLOSE``
and stay there until the next cash-register closing archives them. Credit
sales are routed to the receivable ledger and never enter the day ledger.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from joyeria.app.core.clock import clock
from joyeria.app.core.exceptions import NotFoundError, ValidationError
from joyeria.app.models.sales import LedgerStatus, PaymentMethod, Sale, SaleType
from joyeria.app.schemas.sales import SaleLineIn
from joyeria.app.services.audit import log_action
from joyeria.app.services.customers import customer_exists
from joyeria.app.services.receivables import record_credit_sale
from joyeria.app.services.register import ledger_write
from joyeria.app.services.sale_lines import ZERO, compute_totals, money, price_lines, write_lines

logger = logging.getLogger(__name__)

SINGLE_METHOD_COLUMN: dict[PaymentMethod, str] = {
    PaymentMethod.CASH: "cash_amount",
    PaymentMethod.CARD: "card_amount",
    PaymentMethod.TRANSFER: "transfer_amount",
}


def _coerce_method(payment_method: PaymentMethod | str | None) -> PaymentMethod:
    if payment_method is None:
        raise ValidationError("payment_method is required for cash sales")
    try:
        return PaymentMethod(payment_method)
    except ValueError as exc:
        raise ValidationError(f"Unknown payment method '{payment_method}'") from exc


def _split_payment(
    method: PaymentMethod,
    total: Decimal,
    cash_amount: Decimal | None,
    card_amount: Decimal | None,
    transfer_amount: Decimal | None,
) -> dict[str, Decimal]:
    """Per-method amounts for the sale; they always sum to ``total``."""
    split = {"cash_amount": ZERO, "card_amount": ZERO, "transfer_amount": ZERO}
    if method != PaymentMethod.MIXED:
        split[SINGLE_METHOD_COLUMN[method]] = total
        return split

    if cash_amount is None and card_amount is None and transfer_amount is None:
        raise ValidationError(
            "Mixed payments require the cash, card and transfer amounts"
        )
    split = {
        "cash_amount": money(cash_amount or ZERO),
        "card_amount": money(card_amount or ZERO),
        "transfer_amount": money(transfer_amount or ZERO),
    }
    if any(amount < 0 for amount in split.values()):
        raise ValidationError("Payment amounts cannot be negative")
    paid = sum(split.values(), ZERO)
    if paid != total:
        raise ValidationError(
            f"Payment total ({paid}) does not match sale total ({total})"
        )
    return split


def _cash_change(
    method: PaymentMethod, cash_due: Decimal, cash_received: Decimal | None
) -> tuple[Decimal | None, Decimal | None]:
    """Return ``(cash_received, change)`` for the cash part of the payment."""
    if cash_received is None or method not in (PaymentMethod.CASH, PaymentMethod.MIXED):
        return None, None
    cash_received = money(cash_received)
    if cash_received < cash_due:
        raise ValidationError(
            f"Cash received ({cash_received}) is less than the amount due in cash ({cash_due})"
        )
    return cash_received, cash_received - cash_due


def record_sale(
    db: Session,
    items: list[SaleLineIn],
    payment_method: PaymentMethod | str | None,
    user_id: UUID,
    discount: Decimal = ZERO,
    cash_received: Decimal | None = None,
    sale_type: SaleType | str | None = None,
    customer_id: UUID | None = None,
    due_date: date | None = None,
    cash_amount: Decimal | None = None,
    card_amount: Decimal | None = None,
    transfer_amount: Decimal | None = None,
    notes: str | None = None,
    username: str | None = None,
) -> dict:
    """Record a sale.

    Contado sales are written to the day ledger in one transaction: the
    sale, its items, one inventory movement per jewel line and the stock
    decrements. Credito sales are handed to ``record_credit_sale``. An
    unspecified sale type is Contado.
    """
    try:
        sale_type = SaleType.CONTADO if sale_type is None else SaleType(sale_type)
    except ValueError as exc:
        raise ValidationError(f"Unknown sale type '{sale_type}'") from exc

    if sale_type == SaleType.CREDITO:
        if customer_id is None:
            raise ValidationError("Credit sales require a customer")
        return record_credit_sale(
            db,
            items=items,
            customer_id=customer_id,
            user_id=user_id,
            due_date=due_date,
            discount=discount,
            notes=notes,
            username=username,
        )

    method = _coerce_method(payment_method)
    if customer_id is not None and not customer_exists(db, customer_id):
        raise NotFoundError(f"Customer {customer_id} not found")

    # ── Price the cart and settle the payment up-front ───────────────────
    lines = price_lines(db, items)
    subtotal, discount, total = compute_totals(lines, discount)
    split = _split_payment(method, total, cash_amount, card_amount, transfer_amount)
    cash_received, change = _cash_change(method, split["cash_amount"], cash_received)

    # ── One transaction: sale, items, movements, stock ───────────────────
    with ledger_write(db, "record_sale"):
        sale = Sale(
            user_id=user_id,
            customer_id=customer_id,
            sale_type=SaleType.CONTADO,
            payment_method=method,
            subtotal=subtotal,
            discount=discount,
            total=total,
            cash_received=cash_received,
            change=change,
            notes=notes,
            ledger_status=LedgerStatus.PENDING_CLOSE,
            **split,
        )
        db.add(sale)
        db.flush()
        sale_id = sale.id

        write_lines(db, sale, lines, username)

        log_action(
            db,
            user_id=user_id,
            action="SALE_RECORDED",
            resource_type="sales",
            resource_id=str(sale_id),
            changes={
                "payment_method": method.value,
                "total": str(total),
                "discount": str(discount),
                "item_count": len(lines),
            },
        )

    logger.info(
        "Sale %s recorded: %s %s (%d items)", sale_id, method.value, total, len(lines)
    )
    return {
        "sale_id": sale_id,
        "sale_type": SaleType.CONTADO,
        "subtotal": subtotal,
        "discount": discount,
        "total": total,
        "change": change,
        "receivable_id": None,
    }


# ─── Queries ─────────────────────────────────────────────────────────────────


def list_day_sales(db: Session) -> list[Sale]:
    """Sales of the open period, oldest first, with their items."""
    return (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.ledger_status == LedgerStatus.PENDING_CLOSE)
        .order_by(Sale.created_at, Sale.id)
        .all()
    )


def get_sale_detail(db: Session, sale_id: UUID) -> Sale:
    sale = (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.id == sale_id)
        .first()
    )
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found")
    return sale


def list_sales(
    db: Session,
    date_from: date | None = None,
    date_to: date | None = None,
    payment_method: PaymentMethod | None = None,
    sale_type: SaleType | None = None,
    ledger_status: LedgerStatus | None = None,
    user_id: UUID | None = None,
    customer_id: UUID | None = None,
    page: int = 1,
    per_page: int = 50,
) -> dict:
    """Browse every sale, archived or still in the day ledger.

    Dates are store-local calendar days, both ends inclusive.
    """
    if page < 1 or per_page < 1:
        raise ValidationError("page and per_page must be positive")

    query = db.query(Sale)
    if date_from is not None:
        query = query.filter(Sale.created_at >= clock.day_bounds(date_from)[0])
    if date_to is not None:
        query = query.filter(Sale.created_at < clock.day_bounds(date_to)[1])
    if payment_method is not None:
        query = query.filter(Sale.payment_method == payment_method)
    if sale_type is not None:
        query = query.filter(Sale.sale_type == sale_type)
    if ledger_status is not None:
        query = query.filter(Sale.ledger_status == ledger_status)
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)
    if customer_id is not None:
        query = query.filter(Sale.customer_id == customer_id)

    total = query.count()
    sales = (
        query.options(selectinload(Sale.items))
        .order_by(Sale.created_at.desc(), Sale.id)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return {
        "items": sales,
        "total": total,
        "page": page,
        "per_page": per_page,
        "total_pages": math.ceil(total / per_page),
    }


def get_sales_summary(
    db: Session, date_from: date | None = None, date_to: date | None = None
) -> dict:
    """Count, income and average sale over store-local days, both ends inclusive.

    Covers every sale like ``list_sales`` does; credit sales are counted and
    reported separately in ``credit_sales``.
    """
    if date_from is not None and date_to is not None and date_from > date_to:
        raise ValidationError("date_from must not be after date_to")

    filters = []
    if date_from is not None:
        filters.append(Sale.created_at >= clock.day_bounds(date_from)[0])
    if date_to is not None:
        filters.append(Sale.created_at < clock.day_bounds(date_to)[1])

    total_sales, income = (
        db.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total), 0))
        .filter(*filters)
        .one()
    )
    by_method = dict(
        db.query(Sale.payment_method, func.count(Sale.id))
        .filter(*filters, Sale.payment_method.isnot(None))
        .group_by(Sale.payment_method)
        .all()
    )
    credit_sales = (
        db.query(func.count(Sale.id))
        .filter(*filters, Sale.sale_type == SaleType.CREDITO)
        .scalar()
    )

    income = money(income)
    return {
        "date_from": date_from,
        "date_to": date_to,
        "total_sales": total_sales,
        "total_income": income,
        "average_sale": money(income / total_sales) if total_sales else money(ZERO),
        "sales_by_method": {m.value: by_method.get(m, 0) for m in PaymentMethod},
        "credit_sales": credit_sales or 0,
    }
