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
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from joyeria.app.core.database import Base
from joyeria.app.models.sales import PaymentMethod


class ExtraIncomeType(str, enum.Enum):
    FONDO_CAJA = "Fondo de Caja"
    PRESTAMO = "Prestamo"
    DEVOLUCION = "Devolucion"
    OTROS = "Otros"


class ExtraIncome(Base):
    """Money entering the register outside of a sale ("ingreso extra")."""

    __tablename__ = "extra_incomes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    income_type: Mapped[ExtraIncomeType] = mapped_column(
        Enum(ExtraIncomeType), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2), nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod), nullable=False
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    username: Mapped[str | None] = mapped_column(String(150), nullable=True)
    closing_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("cash_closings.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_extra_income_amount_positive"),
        Index("ix_extra_incomes_closing", "closing_id"),
        Index("ix_extra_incomes_created_at", "created_at"),
    )
