from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from joyeria.app.api.permission_deps import require_permission
from joyeria.app.core.database import get_db
from joyeria.app.core.exceptions import POSError
from joyeria.app.models.extra_income import ExtraIncomeType
from joyeria.app.models.user import User
from joyeria.app.schemas.extra_income import (
    ExtraIncomeCreate,
    ExtraIncomeOut,
    ExtraIncomePageOut,
    ExtraIncomesSummaryOut,
)
from joyeria.app.services.extra_income import (
    get_extra_income,
    get_extra_incomes_summary,
    list_extra_incomes,
    record_extra_income,
)

router = APIRouter()


@router.post("", response_model=ExtraIncomeOut, status_code=201)
def create_extra_income(
    body: ExtraIncomeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("extra_income:write")),
):
    try:
        return record_extra_income(
            db,
            income_type=body.income_type,
            amount=body.amount,
            payment_method=body.payment_method,
            description=body.description,
            user_id=current_user.id,
            notes=body.notes,
            username=current_user.username,
        )
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))


@router.get("", response_model=ExtraIncomePageOut)
def browse_extra_incomes(
    income_type: ExtraIncomeType | None = Query(None),
    closed: bool | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("extra_income:read")),
) -> dict:
    try:
        return list_extra_incomes(
            db,
            income_type=income_type,
            closed=closed,
            date_from=date_from,
            date_to=date_to,
            page=page,
            per_page=per_page,
        )
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))


@router.get("/summary", response_model=ExtraIncomesSummaryOut)
def extra_incomes_summary(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("extra_income:read")),
) -> dict:
    try:
        return get_extra_incomes_summary(db, date_from=date_from, date_to=date_to)
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))


@router.get("/{income_id}", response_model=ExtraIncomeOut)
def extra_income_detail(
    income_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("extra_income:read")),
):
    try:
        return get_extra_income(db, income_id)
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))
