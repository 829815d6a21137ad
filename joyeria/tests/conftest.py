"""Shared test fixtures.

Each test gets a brand-new in-memory SQLite database, so services are free
to commit and roll back exactly as they do in production.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from joyeria.app.core.database import Base, get_db
from joyeria.app.core.security import create_access_token, get_password_hash
from joyeria.app.main import app
from joyeria.app.models.customer import Customer
from joyeria.app.models.inventory import Jewel
from joyeria.app.models.register import CashRegister
from joyeria.app.models.user import RoleEnum, User
from joyeria.app.schemas.sales import SaleLineIn
from joyeria.app.services.register import get_register


# ─── Fresh database per test ──────────────────────────────────────────────────


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()

    yield session

    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the per-test session."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.state.summary_cache.clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def cash_register(db: Session) -> CashRegister:
    register = get_register(db)
    db.commit()
    return register


# ─── Auth helpers ─────────────────────────────────────────────────────────────


@pytest.fixture()
def admin_user(db: Session) -> User:
    user = User(
        username="test_admin",
        full_name="Test Admin",
        hashed_password=get_password_hash("pass"),
        role=RoleEnum.ADMIN,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def cashier_user(db: Session) -> User:
    user = User(
        username="test_cashier",
        hashed_password=get_password_hash("pass"),
        role=RoleEnum.CASHIER,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def admin_token(admin_user: User) -> str:
    return create_access_token(subject=str(admin_user.id))


@pytest.fixture()
def cashier_token(cashier_user: User) -> str:
    return create_access_token(subject=str(cashier_user.id))


def auth(token: str) -> dict[str, str]:
    """Return Authorization header dict."""
    return {"Authorization": f"Bearer {token}"}


def line(jewel: Jewel | None = None, quantity: int = 1, **kwargs) -> SaleLineIn:
    """Build a cart line for service-level calls."""
    return SaleLineIn(jewel_id=jewel.id if jewel else None, quantity=quantity, **kwargs)


# ─── Inventory fixtures ───────────────────────────────────────────────────────


def _jewel(db: Session, code: str, name: str, price: str, stock: int) -> Jewel:
    jewel = Jewel(
        code=code,
        name=name,
        category="Test",
        sale_price=Decimal(price),
        cost_price=Decimal("1.00"),
        current_stock=stock,
        min_stock=0,
    )
    db.add(jewel)
    db.commit()
    return jewel


@pytest.fixture()
def ring(db: Session) -> Jewel:
    return _jewel(db, "AN-T01", "Test Ring", "5000.00", 10)


@pytest.fixture()
def chain(db: Session) -> Jewel:
    return _jewel(db, "CA-T01", "Test Chain", "3000.00", 10)


@pytest.fixture()
def last_unit(db: Session) -> Jewel:
    return _jewel(db, "AR-T01", "Last Earrings", "1000.00", 1)


# ─── Customer fixture ─────────────────────────────────────────────────────────


@pytest.fixture()
def customer(db: Session) -> Customer:
    c = Customer(
        name="Test Customer",
        cedula="1-0000-0001",
        phone="8888-0000",
        payment_terms_days=30,
    )
    db.add(c)
    db.commit()
    return c
