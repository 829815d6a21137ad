from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from joyeria.app.core.database import Base


class MovementType(str, enum.Enum):
    ENTRADA = "Entrada"
    SALIDA = "Salida"
    AJUSTE = "Ajuste"


class Jewel(Base):
    """Inventory item ("joya").

    ``current_stock`` is only decremented through
    ``services.inventory.decrement_stock`` so every change leaves an
    ``InventoryMovement`` behind.
    """

    __tablename__ = "jewels"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sale_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), nullable=False
    )
    cost_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), nullable=False, default=Decimal("0")
    )
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("sale_price >= 0", name="ck_jewel_sale_price_non_negative"),
        CheckConstraint("current_stock >= 0", name="ck_jewel_stock_non_negative"),
        Index("ix_jewels_code", "code"),
        Index("ix_jewels_category", "category"),
    )


class InventoryMovement(Base):
    """One stock change. ``quantity`` is a signed delta (negative for sales)."""

    __tablename__ = "inventory_movements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    jewel_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("jewels.id"), nullable=False
    )
    movement_type: Mapped[MovementType] = mapped_column(
        Enum(MovementType), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_before: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    sale_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("sales.id"), nullable=True
    )
    username: Mapped[str | None] = mapped_column(String(150), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    jewel: Mapped[Jewel] = relationship()

    __table_args__ = (
        CheckConstraint("quantity != 0", name="ck_movement_quantity_non_zero"),
        Index("ix_inv_mov_jewel", "jewel_id"),
        Index("ix_inv_mov_sale", "sale_id"),
        Index("ix_inv_mov_created_at", "created_at"),
    )
