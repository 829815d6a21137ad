from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from joyeria.app.api.permission_deps import require_permission
from joyeria.app.core.clock import clock
from joyeria.app.core.database import get_db
from joyeria.app.core.exceptions import POSError
from joyeria.app.models.sales import LedgerStatus, PaymentMethod, SaleType
from joyeria.app.models.user import User
from joyeria.app.schemas.sales import (
    SaleCreate,
    SaleCreateOut,
    SaleOut,
    SalePageOut,
    SalesSummaryOut,
)
from joyeria.app.services.sales import (
    get_sale_detail,
    get_sales_summary,
    list_day_sales,
    list_sales,
    record_sale,
)

router = APIRouter()


@router.post("", response_model=SaleCreateOut, status_code=201)
def create_sale(
    body: SaleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("sale:write")),
) -> dict:
    try:
        return record_sale(
            db,
            items=body.items,
            payment_method=body.payment_method,
            user_id=current_user.id,
            discount=body.discount,
            cash_received=body.cash_received,
            sale_type=body.sale_type,
            customer_id=body.customer_id,
            due_date=body.due_date,
            cash_amount=body.cash_amount,
            card_amount=body.card_amount,
            transfer_amount=body.transfer_amount,
            notes=body.notes,
            username=current_user.username,
        )
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))


@router.get("/day", response_model=list[SaleOut])
def day_sales(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("sale:read")),
) -> list:
    return list_day_sales(db)


@router.get("", response_model=SalePageOut)
def browse_sales(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    payment_method: PaymentMethod | None = Query(None),
    sale_type: SaleType | None = Query(None),
    ledger_status: LedgerStatus | None = Query(None),
    user_id: UUID | None = Query(None),
    customer_id: UUID | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("sale:history")),
) -> dict:
    return list_sales(
        db,
        date_from=date_from,
        date_to=date_to,
        payment_method=payment_method,
        sale_type=sale_type,
        ledger_status=ledger_status,
        user_id=user_id,
        customer_id=customer_id,
        page=page,
        per_page=per_page,
    )


@router.get("/summary/day", response_model=SalesSummaryOut)
def day_sales_summary(
    day: date | None = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("sale:read")),
) -> dict:
    day = day or clock.today()
    return get_sales_summary(db, date_from=day, date_to=day)


@router.get("/summary", response_model=SalesSummaryOut)
def period_sales_summary(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("sale:history")),
) -> dict:
    try:
        return get_sales_summary(db, date_from=date_from, date_to=date_to)
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))


@router.get("/{sale_id}", response_model=SaleOut)
def sale_detail(
    sale_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("sale:read")),
):
    try:
        return get_sale_detail(db, sale_id)
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))
