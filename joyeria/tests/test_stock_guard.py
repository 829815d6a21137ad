"""Two sessions racing for the last unit of a jewel."""
from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from joyeria.app.core.database import Base
from joyeria.app.core.exceptions import StockError
from joyeria.app.models.inventory import InventoryMovement, Jewel
from joyeria.app.models.sales import PaymentMethod, Sale
from joyeria.app.models.user import RoleEnum, User
from joyeria.app.services.register import get_register
from joyeria.app.services.sales import record_sale
from joyeria.tests.conftest import line


def test_last_unit_sold_once(tmp_path: Path) -> None:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    make_session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    with make_session() as setup:
        user = User(username="caja", hashed_password="x", role=RoleEnum.CASHIER)
        jewel = Jewel(code="U-1", name="Unique Ring", sale_price=Decimal("1000"), current_stock=1)
        setup.add_all([user, jewel])
        get_register(setup)
        setup.commit()
        user_id, jewel_id = user.id, jewel.id

    session_a = make_session()
    session_b = make_session()
    try:
        # Both tills see one unit in stock before either sells
        jewel_a = session_a.get(Jewel, jewel_id)
        jewel_b = session_b.get(Jewel, jewel_id)
        assert jewel_a.current_stock == jewel_b.current_stock == 1

        record_sale(
            session_a, items=[line(jewel_a)], payment_method=PaymentMethod.CASH, user_id=user_id
        )
        with pytest.raises(StockError, match="0 available"):
            record_sale(
                session_b,
                items=[line(jewel_b)],
                payment_method=PaymentMethod.CARD,
                user_id=user_id,
            )
    finally:
        session_a.close()
        session_b.close()

    with make_session() as check:
        assert check.get(Jewel, jewel_id).current_stock == 0
        assert check.query(Sale).count() == 1
        assert check.query(InventoryMovement).count() == 1

    engine.dispose()
