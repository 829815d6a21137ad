from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from joyeria.app.core.database import Base

MONEY = Numeric(precision=14, scale=2)


class CashRegister(Base):
    """The store's cash register ("caja").

    Its row is the mutex between closings and ledger writes, and
    ``revision`` changes on every write to the open period.
    """

    __tablename__ = "cash_registers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_period_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    last_closing_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)


class CashClosing(Base):
    """Immutable snapshot written by a cash-register closing ("cierre de caja")."""

    __tablename__ = "cash_closings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    register_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cash_registers.id"), nullable=False
    )
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    closed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    username: Mapped[str | None] = mapped_column(String(150), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    total_sales: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_income: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_discounts: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    sales_cash: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    sales_card: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    sales_transfer: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    total_abonos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    abonos_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    abonos_cash: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    abonos_card: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    abonos_transfer: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    total_extra_incomes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    extra_incomes_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    extra_incomes_cash: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    extra_incomes_card: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    extra_incomes_transfer: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    combined_cash: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    combined_card: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    combined_transfer: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    combined_total: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    __table_args__ = (
        Index("ix_cash_closings_closed_at", "closed_at"),
        Index("ix_cash_closings_username", "username"),
    )
