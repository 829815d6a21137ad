"""Inventory store used by the sale writers.

Stock is decremented with a conditional UPDATE so that two concurrent sales
of the last unit cannot both succeed, whatever each request read earlier.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from joyeria.app.core.exceptions import NotFoundError, StockError
from joyeria.app.models.inventory import InventoryMovement, Jewel, MovementType

logger = logging.getLogger(__name__)


def get_stock(db: Session, jewel_id: UUID) -> int:
    stock = db.scalar(select(Jewel.current_stock).where(Jewel.id == jewel_id))
    if stock is None:
        raise NotFoundError(f"Jewel {jewel_id} not found")
    return stock


def decrement_stock(
    db: Session,
    jewel: Jewel,
    quantity: int,
    *,
    sale_id: UUID | None = None,
    username: str | None = None,
    reason: str | None = None,
) -> InventoryMovement:
    """Take *quantity* units out of stock and record the movement.

    Raises StockError when fewer than *quantity* units remain. Does NOT
    commit.
    """
    result = db.execute(
        update(Jewel)
        .where(Jewel.id == jewel.id, Jewel.current_stock >= quantity)
        .values(current_stock=Jewel.current_stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        available = get_stock(db, jewel.id)
        logger.warning(
            "Stock guard rejected %s x%d (available %d)", jewel.code, quantity, available
        )
        raise StockError(
            f"Insufficient stock for '{jewel.name}': "
            f"{available} available, {quantity} requested"
        )

    db.expire(jewel, ["current_stock"])
    stock_after = jewel.current_stock

    movement = InventoryMovement(
        jewel_id=jewel.id,
        movement_type=MovementType.SALIDA,
        quantity=-quantity,
        stock_before=stock_after + quantity,
        stock_after=stock_after,
        reason=reason,
        sale_id=sale_id,
        username=username,
    )
    db.add(movement)
    return movement
