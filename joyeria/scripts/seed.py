"""Seed a development database with users, demo jewels and customers.

Usage:
    python -m joyeria.scripts.seed
"""

from __future__ import annotations

from decimal import Decimal

from joyeria.app.core.database import SessionLocal
from joyeria.app.core.security import get_password_hash
from joyeria.app.models.customer import Customer
from joyeria.app.models.inventory import Jewel
from joyeria.app.models.user import RoleEnum, User
from joyeria.app.services.register import get_register

import joyeria.app.models.audit  # noqa: F401
import joyeria.app.models.sales  # noqa: F401

USERS: list[tuple[str, str, RoleEnum]] = [
    ("admin", "Administrador", RoleEnum.ADMIN),
    ("caja", "Cajero principal", RoleEnum.CASHIER),
]

JEWELS: list[tuple[str, str, str, Decimal, Decimal, int]] = [
    # code, name, category, sale price, cost price, stock
    ("AN-001", "Anillo oro 14k", "Anillos", Decimal("185000"), Decimal("120000"), 4),
    ("AN-002", "Anillo plata 925", "Anillos", Decimal("32000"), Decimal("15000"), 12),
    ("CA-001", "Cadena oro 18k 50cm", "Cadenas", Decimal("240000"), Decimal("165000"), 3),
    ("AR-001", "Aretes perla", "Aretes", Decimal("45000"), Decimal("22000"), 8),
    ("PU-001", "Pulsera plata tejida", "Pulseras", Decimal("28000"), Decimal("12000"), 10),
]

CUSTOMERS: list[tuple[str, str, str, int]] = [
    # name, cedula, phone, payment terms (days)
    ("Maria Solano", "1-1111-1111", "8888-1111", 30),
    ("Carlos Jimenez", "2-2222-2222", "8888-2222", 15),
]

DEV_PASSWORD = "Joyeria2026!"


def seed() -> None:
    db = SessionLocal()
    try:
        # ── Users ──────────────────────────────────────────────────────
        for username, full_name, role in USERS:
            if db.query(User).filter_by(username=username).first():
                continue
            db.add(
                User(
                    username=username,
                    full_name=full_name,
                    hashed_password=get_password_hash(DEV_PASSWORD),
                    role=role,
                )
            )
            print(f"Created user: {username} ({role.value})")

        # ── Jewels ─────────────────────────────────────────────────────
        for code, name, category, sale_price, cost_price, stock in JEWELS:
            if db.query(Jewel).filter_by(code=code).first():
                continue
            db.add(
                Jewel(
                    code=code,
                    name=name,
                    category=category,
                    sale_price=sale_price,
                    cost_price=cost_price,
                    current_stock=stock,
                    min_stock=1,
                )
            )
            print(f"Created jewel {code} - {name}")

        # ── Customers ──────────────────────────────────────────────────
        for name, cedula, phone, terms in CUSTOMERS:
            if db.query(Customer).filter_by(cedula=cedula).first():
                continue
            db.add(Customer(name=name, cedula=cedula, phone=phone, payment_terms_days=terms))
            print(f"Created customer: {name}")

        register = get_register(db)
        print(f"Cash register: {register.name}")

        db.commit()
        print("Seed complete.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
