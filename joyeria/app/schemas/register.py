from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from joyeria.app.schemas.sales import SaleOut


# ─── Day summary ─────────────────────────────────────────────────────────────


class DaySummaryOut(BaseModel):
    period_start: datetime | None
    revision: int

    total_sales: int
    total_income: Decimal
    total_discounts: Decimal
    sales_cash: Decimal
    sales_card: Decimal
    sales_transfer: Decimal
    sales_by_method: dict[str, int]

    total_abonos: int
    abonos_amount: Decimal
    abonos_cash: Decimal
    abonos_card: Decimal
    abonos_transfer: Decimal

    total_extra_incomes: int
    extra_incomes_amount: Decimal
    extra_incomes_cash: Decimal
    extra_incomes_card: Decimal
    extra_incomes_transfer: Decimal

    combined_cash: Decimal
    combined_card: Decimal
    combined_transfer: Decimal
    combined_total: Decimal


# ─── Closing ─────────────────────────────────────────────────────────────────


class CloseRegisterRequest(BaseModel):
    notes: str | None = None


class ClosingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    period_start: datetime
    closed_at: datetime
    user_id: UUID | None
    username: str | None
    notes: str | None

    total_sales: int
    total_income: Decimal
    total_discounts: Decimal
    sales_cash: Decimal
    sales_card: Decimal
    sales_transfer: Decimal

    total_abonos: int
    abonos_amount: Decimal
    abonos_cash: Decimal
    abonos_card: Decimal
    abonos_transfer: Decimal

    total_extra_incomes: int
    extra_incomes_amount: Decimal
    extra_incomes_cash: Decimal
    extra_incomes_card: Decimal
    extra_incomes_transfer: Decimal

    combined_cash: Decimal
    combined_card: Decimal
    combined_transfer: Decimal
    combined_total: Decimal


class ClosingDetailOut(ClosingOut):
    sales: list[SaleOut] = []


class ClosingPageOut(BaseModel):
    items: list[ClosingOut]
    total: int
    page: int
    per_page: int
    total_pages: int
