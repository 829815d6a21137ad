from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from joyeria.app.models.sales import LedgerStatus, PaymentMethod, SaleType


# ─── Request ──────────────────────────────────────────────────────────────────


class SaleLineIn(BaseModel):
    """One cart line: a jewel from inventory, or a free-text item ("Otros").

    Quantities, prices and the jewel-or-description rule are checked in
    ``services.sale_lines.price_lines``.
    """

    jewel_id: UUID | None = None
    description: str | None = None
    quantity: int
    unit_price: Decimal | None = None


class SaleCreate(BaseModel):
    items: list[SaleLineIn]
    payment_method: PaymentMethod | None = None
    sale_type: SaleType | None = None
    discount: Decimal = Decimal("0")
    cash_received: Decimal | None = None
    customer_id: UUID | None = None
    due_date: date | None = None
    cash_amount: Decimal | None = None
    card_amount: Decimal | None = None
    transfer_amount: Decimal | None = None
    notes: str | None = None


# ─── Response ─────────────────────────────────────────────────────────────────


class SaleCreateOut(BaseModel):
    sale_id: UUID
    sale_type: SaleType
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    change: Decimal | None = None
    receivable_id: UUID | None = None


class SaleItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    jewel_id: UUID | None
    description: str | None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class SaleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    customer_id: UUID | None
    sale_type: SaleType
    payment_method: PaymentMethod | None
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    cash_received: Decimal | None
    change: Decimal | None
    cash_amount: Decimal
    card_amount: Decimal
    transfer_amount: Decimal
    notes: str | None
    ledger_status: LedgerStatus
    closing_id: UUID | None
    created_at: datetime | None
    archived_at: datetime | None
    items: list[SaleItemOut] = []


class SalePageOut(BaseModel):
    items: list[SaleOut]
    total: int
    page: int
    per_page: int
    total_pages: int


class SalesSummaryOut(BaseModel):
    date_from: date | None
    date_to: date | None
    total_sales: int
    total_income: Decimal
    average_sale: Decimal
    sales_by_method: dict[str, int]
    credit_sales: int
