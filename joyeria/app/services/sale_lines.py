"""Cart pricing shared by cash and credit sales."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy.orm import Session

from joyeria.app.core.exceptions import StockError, ValidationError
from joyeria.app.models.inventory import Jewel
from joyeria.app.models.sales import Sale, SaleItem
from joyeria.app.schemas.sales import SaleLineIn
from joyeria.app.services.inventory import decrement_stock

Q = Decimal("0.01")
ZERO = Decimal("0")


def money(value: Decimal | int | str | float) -> Decimal:
    return Decimal(str(value)).quantize(Q, rounding=ROUND_HALF_UP)


def positive_cents(value: Decimal | int | str | float | None, label: str) -> Decimal:
    """Return ``value`` as an amount of whole cents greater than zero.

    Sub-cent amounts are rejected rather than rounded.
    """
    if value is None:
        raise ValidationError(f"{label} must be greater than zero")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(f"{label} is not a valid amount") from exc
    if not amount.is_finite():
        raise ValidationError(f"{label} is not a valid amount")
    if amount != amount.quantize(Q):
        raise ValidationError(f"{label} cannot have more than two decimals")
    if amount <= 0:
        raise ValidationError(f"{label} must be greater than zero")
    return amount.quantize(Q)


@dataclass
class PricedLine:
    jewel: Jewel | None
    description: str | None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


def price_lines(db: Session, items: list[SaleLineIn]) -> list[PricedLine]:
    """Validate the cart and price each line.

    Inventory lines default to the jewel's sale price. Stock is checked here
    against the aggregated quantity per jewel; the authoritative check is
    the conditional decrement in ``write_lines``.
    """
    if not items:
        raise ValidationError("Cart must contain at least one item")

    lines: list[PricedLine] = []
    requested: dict[UUID, int] = defaultdict(int)
    for item in items:
        if item.quantity is None or item.quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        if item.unit_price is not None and item.unit_price < 0:
            raise ValidationError("Unit price cannot be negative")

        if item.jewel_id is None:
            description = (item.description or "").strip()
            if not description:
                raise ValidationError("Each item needs a jewel_id or a description")
            if item.unit_price is None:
                raise ValidationError(f"Item '{description}' needs an explicit unit price")
            unit_price = money(item.unit_price)
            lines.append(
                PricedLine(
                    jewel=None,
                    description=description,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    subtotal=money(unit_price * item.quantity),
                )
            )
            continue

        jewel = db.query(Jewel).filter(Jewel.id == item.jewel_id).first()
        if jewel is None:
            raise ValidationError(f"Jewel {item.jewel_id} not found")
        if not jewel.is_active:
            raise ValidationError(f"Jewel '{jewel.name}' is not available for sale")

        requested[jewel.id] += item.quantity
        if jewel.current_stock < requested[jewel.id]:
            raise StockError(
                f"Insufficient stock for '{jewel.name}': "
                f"{jewel.current_stock} available, {requested[jewel.id]} requested"
            )

        unit_price = money(
            item.unit_price if item.unit_price is not None else jewel.sale_price
        )
        lines.append(
            PricedLine(
                jewel=jewel,
                description=item.description,
                quantity=item.quantity,
                unit_price=unit_price,
                subtotal=money(unit_price * item.quantity),
            )
        )
    return lines


def compute_totals(
    lines: list[PricedLine], discount: Decimal | None
) -> tuple[Decimal, Decimal, Decimal]:
    """Return ``(subtotal, discount, total)``."""
    subtotal = money(sum((line.subtotal for line in lines), ZERO))
    discount = money(discount or ZERO)
    if discount < 0:
        raise ValidationError("Discount cannot be negative")
    if discount > subtotal:
        raise ValidationError(
            f"Discount ({discount}) cannot exceed the sale subtotal ({subtotal})"
        )
    return subtotal, discount, subtotal - discount


def write_lines(
    db: Session, sale: Sale, lines: list[PricedLine], username: str | None
) -> None:
    """Add the sale's items and take inventory lines out of stock.

    Does NOT commit.
    """
    for position, line in enumerate(lines):
        db.add(
            SaleItem(
                sale_id=sale.id,
                position=position,
                jewel_id=line.jewel.id if line.jewel else None,
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line.subtotal,
            )
        )
        if line.jewel is not None:
            decrement_stock(
                db,
                line.jewel,
                line.quantity,
                sale_id=sale.id,
                username=username,
                reason=f"Venta {sale.id}",
            )
