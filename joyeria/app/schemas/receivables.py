from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from joyeria.app.models.receivable import ReceivableStatus
from joyeria.app.models.sales import PaymentMethod
from joyeria.app.schemas.sales import SaleOut


class AbonoCreate(BaseModel):
    amount: Decimal
    payment_method: PaymentMethod
    notes: str | None = None


class AbonoResultOut(BaseModel):
    abono_id: UUID
    new_pending_balance: Decimal
    status: ReceivableStatus


class AbonoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: Decimal
    payment_method: PaymentMethod
    notes: str | None
    username: str | None
    closing_id: UUID | None
    created_at: datetime | None


class ReceivableOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sale_id: UUID
    customer_id: UUID
    customer_name: str | None = None
    total_amount: Decimal
    amount_paid: Decimal
    pending_balance: Decimal
    status: ReceivableStatus
    due_date: date | None
    created_at: datetime | None
    is_overdue: bool = False


class ReceivableDetailOut(ReceivableOut):
    abonos: list[AbonoOut] = []
    sale: SaleOut | None = None


class ReceivablePageOut(BaseModel):
    items: list[ReceivableOut]
    total: int
    page: int
    per_page: int
    total_pages: int


class ReceivablesSummaryOut(BaseModel):
    pending_count: int
    settled_count: int
    total_receivable: Decimal
    total_collected: Decimal
    overdue_count: int
    overdue_amount: Decimal
