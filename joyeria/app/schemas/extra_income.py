from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from joyeria.app.models.extra_income import ExtraIncomeType
from joyeria.app.models.sales import PaymentMethod


class ExtraIncomeCreate(BaseModel):
    income_type: ExtraIncomeType
    amount: Decimal
    payment_method: PaymentMethod
    description: str = Field(max_length=255)
    notes: str | None = None


class ExtraIncomeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    income_type: ExtraIncomeType
    amount: Decimal
    payment_method: PaymentMethod
    description: str
    notes: str | None
    username: str | None
    closing_id: UUID | None
    created_at: datetime | None


class ExtraIncomePageOut(BaseModel):
    items: list[ExtraIncomeOut]
    total: int
    page: int
    per_page: int
    total_pages: int


class AmountBucketOut(BaseModel):
    count: int
    amount: Decimal


class ExtraIncomesSummaryOut(BaseModel):
    total_count: int
    total_amount: Decimal
    by_type: dict[str, AmountBucketOut]
    by_payment_method: dict[str, AmountBucketOut]
