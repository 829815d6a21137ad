from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from joyeria.app.api.deps import get_summary_cache
from joyeria.app.api.permission_deps import require_permission
from joyeria.app.core.cache import SimpleCache
from joyeria.app.core.database import get_db
from joyeria.app.core.exceptions import POSError
from joyeria.app.models.user import User
from joyeria.app.schemas.register import (
    CloseRegisterRequest,
    ClosingDetailOut,
    ClosingOut,
    ClosingPageOut,
    DaySummaryOut,
)
from joyeria.app.services.closing import close_register, get_closing, list_closings
from joyeria.app.services.day_summary import get_day_summary

router = APIRouter()


@router.get("/day-summary", response_model=DaySummaryOut)
def day_summary(
    db: Session = Depends(get_db),
    cache: SimpleCache = Depends(get_summary_cache),
    current_user: User = Depends(require_permission("register:read")),
) -> dict:
    return get_day_summary(db, cache=cache)


@router.post("/close", response_model=ClosingOut, status_code=201)
def close(
    body: CloseRegisterRequest | None = None,
    db: Session = Depends(get_db),
    cache: SimpleCache = Depends(get_summary_cache),
    current_user: User = Depends(require_permission("register:close")),
):
    try:
        return close_register(
            db,
            user_id=current_user.id,
            username=current_user.username,
            notes=body.notes if body else None,
            cache=cache,
        )
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))


@router.get("/closings", response_model=ClosingPageOut)
def closing_history(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    username: str | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("register:history")),
) -> dict:
    return list_closings(
        db,
        date_from=date_from,
        date_to=date_to,
        username=username,
        page=page,
        per_page=per_page,
    )


@router.get("/closings/{closing_id}", response_model=ClosingDetailOut)
def closing_detail(
    closing_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("register:history")),
) -> dict:
    try:
        return get_closing(db, closing_id)
    except POSError as e:
        raise HTTPException(status_code=e.http_status, detail=str(e))
