from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from joyeria.app.api.permission_deps import require_permission
from joyeria.app.core.database import get_db
from joyeria.app.core.exceptions import POSError
from joyeria.app.models.receivable import ReceivableStatus
from joyeria.app.models.user import User
from joyeria.app.schemas.receivables import (
    AbonoCreate,
    AbonoResultOut,
    ReceivableDetailOut,
    ReceivableOut,
    ReceivablePageOut,
    ReceivablesSummaryOut,
)
from joyeria.app.services.receivables import (
    get_receivable_detail,
    get_receivables_summary,
    list_customer_receivables,
    list_receivables,
    record_abono,
)

router = APIRouter()


@router.get("", response_model=ReceivablePageOut)
def browse_receivables(
    status_filter: ReceivableStatus | None = Query(None, alias="status"),
    customer_id: UUID | None = Query(None),
    overdue: bool = Query(False),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("receivable:read")),
) -> dict:
    return list_receivables(
        db,
        status=status_filter,
        customer_id=customer_id,
        overdue_only=overdue,
        page=page,
        per_page=per_page,
    )


@router.get("/summary", response_model=ReceivablesSummaryOut)
def receivables_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("receivable:read")),
) -> dict:
    return get_receivables_summary(db)


@router.get("/customer/{customer_id}", response_model=list[ReceivableOut])
def customer_receivables(
    customer_id: UUID,
    include_settled: bool = Query(True),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("receivable:read")),
) -> list[dict]:
    try:
        return list_customer_receivables(db, customer_id, include_settled=include_settled)
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))


@router.get("/{receivable_id}", response_model=ReceivableDetailOut)
def receivable_detail(
    receivable_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("receivable:read")),
) -> dict:
    try:
        return get_receivable_detail(db, receivable_id)
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))


@router.post("/{receivable_id}/abonos", response_model=AbonoResultOut, status_code=201)
def create_abono(
    receivable_id: UUID,
    body: AbonoCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("receivable:write")),
) -> dict:
    try:
        return record_abono(
            db,
            receivable_id=receivable_id,
            amount=body.amount,
            payment_method=body.payment_method,
            user_id=current_user.id,
            notes=body.notes,
            username=current_user.username,
        )
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))
