from fastapi import APIRouter

from joyeria.app.api.v1.endpoints import (
    auth,
    extra_incomes,
    receivables,
    register,
    sales,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(receivables.router, prefix="/receivables", tags=["receivables"])
api_router.include_router(extra_incomes.router, prefix="/extra-incomes", tags=["extra-incomes"])
api_router.include_router(register.router, prefix="/register", tags=["register"])
