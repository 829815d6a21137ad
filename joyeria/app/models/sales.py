from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
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


class PaymentMethod(str, enum.Enum):
    CASH = "Efectivo"
    CARD = "Tarjeta"
    TRANSFER = "Transferencia"
    MIXED = "Mixto"


class SaleType(str, enum.Enum):
    CONTADO = "Contado"
    CREDITO = "Credito"


class LedgerStatus(str, enum.Enum):
    """Which ledger a sale lives in.

    PENDING_CLOSE rows form today's register; closing flips them to ARCHIVED
    and stamps ``closing_id``. Credit sales are ARCHIVED from creation.
    """

    PENDING_CLOSE = "PENDING_CLOSE"
    ARCHIVED = "ARCHIVED"


class Sale(Base):
    __tablename__ = "sales"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("customers.id"), nullable=True
    )
    sale_type: Mapped[SaleType] = mapped_column(
        Enum(SaleType), nullable=False, default=SaleType.CONTADO
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(PaymentMethod), nullable=True
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), nullable=False, default=Decimal("0")
    )
    total: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2), nullable=False)
    cash_received: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=14, scale=2), nullable=True
    )
    change: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=14, scale=2), nullable=True
    )
    cash_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), nullable=False, default=Decimal("0")
    )
    card_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), nullable=False, default=Decimal("0")
    )
    transfer_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), nullable=False, default=Decimal("0")
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    ledger_status: Mapped[LedgerStatus] = mapped_column(
        Enum(LedgerStatus), nullable=False, default=LedgerStatus.PENDING_CLOSE
    )
    closing_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("cash_closings.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    items: Mapped[list[SaleItem]] = relationship(
        back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.position"
    )
    user: Mapped["User"] = relationship()  # noqa: F821
    customer: Mapped["Customer | None"] = relationship()  # noqa: F821

    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_sale_total_non_negative"),
        CheckConstraint("discount >= 0", name="ck_sale_discount_non_negative"),
        Index("ix_sales_ledger_status", "ledger_status"),
        Index("ix_sales_closing", "closing_id"),
        Index("ix_sales_customer", "customer_id"),
        Index("ix_sales_created_at", "created_at"),
    )


class SaleItem(Base):
    """Line item. Either ``jewel_id`` or ``description`` ("Otros") is set."""

    __tablename__ = "sale_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sale_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("sales.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    jewel_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("jewels.id"), nullable=True
    )
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2), nullable=False)

    sale: Mapped[Sale] = relationship(back_populates="items")
    jewel: Mapped["Jewel | None"] = relationship()  # noqa: F821

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sale_item_qty_positive"),
        CheckConstraint(
            "jewel_id IS NOT NULL OR description IS NOT NULL",
            name="ck_sale_item_jewel_or_description",
        ),
        Index("ix_sale_items_sale", "sale_id"),
    )
