"""Role-based permission dependencies.

Usage in endpoints::

    @router.post("/close")
    def close(
        db: Session = Depends(get_db),
        current_user: User = Depends(require_permission("register:close")),
    ):
        ...
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, status

from joyeria.app.api.deps import get_current_user
from joyeria.app.models.user import RoleEnum, User

CASHIER_PERMISSIONS = frozenset(
    {
        "sale:write",
        "sale:read",
        "receivable:write",
        "receivable:read",
        "extra_income:write",
        "extra_income:read",
        "register:read",
        "register:close",
    }
)

ROLE_PERMISSIONS: dict[RoleEnum, frozenset[str]] = {
    RoleEnum.CASHIER: CASHIER_PERMISSIONS,
    RoleEnum.ADMIN: CASHIER_PERMISSIONS | {"sale:history", "register:history"},
}


def require_permission(*permission_codes: str):
    """FastAPI dependency factory: the user's role must grant **all** codes.

    Returns the authenticated ``User``.
    """

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        granted = ROLE_PERMISSIONS.get(current_user.role, frozenset())
        missing = set(permission_codes) - granted
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permissions: {', '.join(sorted(missing))}",
            )
        return current_user

    return _checker
