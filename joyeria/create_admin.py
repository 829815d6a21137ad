"""One-time script to create an admin user.

Usage:
    python -m joyeria.create_admin
"""

from __future__ import annotations

import getpass

from sqlalchemy import func

from joyeria.app.core.database import SessionLocal
from joyeria.app.core.security import get_password_hash

# Import all models so SQLAlchemy resolves relationships
import joyeria.app.models.audit  # noqa: F401
import joyeria.app.models.customer  # noqa: F401
import joyeria.app.models.inventory  # noqa: F401
import joyeria.app.models.register  # noqa: F401
import joyeria.app.models.sales  # noqa: F401

from joyeria.app.models.user import RoleEnum, User


def main() -> None:
    username = input("Username [admin]: ").strip() or "admin"
    full_name = input("Full name (optional): ").strip() or None
    password = getpass.getpass("Password: ")
    if not password:
        print("Error: password cannot be empty.")
        return

    db = SessionLocal()
    try:
        existing = db.query(User).filter(
            func.lower(User.username) == username.lower()
        ).first()
        if existing:
            existing.hashed_password = get_password_hash(password)
            existing.is_active = True
            existing.role = RoleEnum.ADMIN
            db.commit()
            print("Admin user already exists, password reset.")
            print(f"  ID:       {existing.id}")
            print(f"  Username: {existing.username}")
            return

        user = User(
            username=username,
            full_name=full_name,
            hashed_password=get_password_hash(password),
            role=RoleEnum.ADMIN,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        print("Admin user created successfully!")
        print(f"  ID:       {user.id}")
        print(f"  Username: {username}")
        print("  Role:     ADMIN")
    finally:
        db.close()


if __name__ == "__main__":
    main()
