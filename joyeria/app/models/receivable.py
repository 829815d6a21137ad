from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from joyeria.app.core.database import Base
from joyeria.app.models.sales import PaymentMethod


class ReceivableStatus(str, enum.Enum):
    PENDIENTE = "Pendiente"
    PAGADA = "Pagada"


class AccountReceivable(Base):
    """Open balance created by a credit sale ("cuenta por cobrar")."""

    __tablename__ = "accounts_receivable"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sale_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sales.id"), nullable=False, unique=True
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("customers.id"), nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), nullable=False
    )
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), nullable=False, default=Decimal("0")
    )
    pending_balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), nullable=False
    )
    status: Mapped[ReceivableStatus] = mapped_column(
        Enum(ReceivableStatus), nullable=False, default=ReceivableStatus.PENDIENTE
    )
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    sale: Mapped["Sale"] = relationship()  # noqa: F821
    customer: Mapped["Customer"] = relationship()  # noqa: F821
    abonos: Mapped[list[Abono]] = relationship(
        back_populates="receivable", order_by="Abono.created_at"
    )

    __table_args__ = (
        CheckConstraint("pending_balance >= 0", name="ck_receivable_pending_non_negative"),
        CheckConstraint("amount_paid >= 0", name="ck_receivable_paid_non_negative"),
        Index("ix_receivables_customer", "customer_id"),
        Index("ix_receivables_status", "status"),
        Index("ix_receivables_due_date", "due_date"),
    )


class Abono(Base):
    """Partial payment against a receivable. Immutable once written."""

    __tablename__ = "abonos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    receivable_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts_receivable.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2), nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    username: Mapped[str | None] = mapped_column(String(150), nullable=True)
    closing_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("cash_closings.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    receivable: Mapped[AccountReceivable] = relationship(back_populates="abonos")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_abono_amount_positive"),
        Index("ix_abonos_receivable", "receivable_id"),
        Index("ix_abonos_closing", "closing_id"),
    )
