"""Tests for the open-period day summary."""
from __future__ import annotations

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from joyeria.app.core.cache import SimpleCache
from joyeria.app.models.customer import Customer
from joyeria.app.models.inventory import Jewel
from joyeria.app.models.register import CashRegister
from joyeria.app.models.sales import PaymentMethod
from joyeria.app.models.user import User
from joyeria.app.services.day_summary import get_day_summary
from joyeria.app.services.extra_income import record_extra_income
from joyeria.app.services.receivables import record_abono, record_credit_sale
from joyeria.app.services.sales import record_sale
from joyeria.tests.conftest import auth, line

ZERO = Decimal("0")


class TestDaySummary:
    def test_empty_period(self, db: Session, cash_register: CashRegister) -> None:
        summary = get_day_summary(db)
        assert summary["total_sales"] == 0
        assert summary["combined_total"] == ZERO
        assert summary["sales_by_method"] == {
            "Efectivo": 0,
            "Tarjeta": 0,
            "Transferencia": 0,
            "Mixto": 0,
        }

    def test_credit_sale_excluded(
        self,
        db: Session,
        admin_user: User,
        customer: Customer,
        ring: Jewel,
    ) -> None:
        record_credit_sale(
            db,
            items=[line(ring, 2)],
            customer_id=customer.id,
            user_id=admin_user.id,
        )
        record_sale(
            db,
            items=[line(description="Limpieza", unit_price=Decimal("2000"))],
            payment_method=PaymentMethod.CASH,
            user_id=admin_user.id,
        )

        summary = get_day_summary(db)
        assert summary["total_sales"] == 1
        assert summary["total_income"] == Decimal("2000.00")
        assert summary["combined_total"] == Decimal("2000.00")

    def test_combines_sales_abonos_and_extra_incomes(
        self,
        db: Session,
        admin_user: User,
        customer: Customer,
        ring: Jewel,
        chain: Jewel,
    ) -> None:
        record_sale(
            db,
            items=[line(ring)],
            payment_method=PaymentMethod.CASH,
            user_id=admin_user.id,
            discount=Decimal("200"),
        )
        record_sale(
            db,
            items=[line(chain)],
            payment_method=PaymentMethod.MIXED,
            user_id=admin_user.id,
            cash_amount=Decimal("1000"),
            card_amount=Decimal("1500"),
            transfer_amount=Decimal("500"),
        )
        credit = record_credit_sale(
            db, items=[line(ring)], customer_id=customer.id, user_id=admin_user.id
        )
        record_abono(db, credit["receivable_id"], Decimal("700"), "Tarjeta", admin_user.id)
        record_extra_income(
            db,
            income_type="Fondo de Caja",
            amount=Decimal("10000"),
            payment_method="Efectivo",
            description="Fondo inicial",
            user_id=admin_user.id,
        )

        summary = get_day_summary(db)
        assert summary["total_sales"] == 2
        assert summary["total_income"] == Decimal("7800.00")
        assert summary["total_discounts"] == Decimal("200.00")
        assert summary["sales_cash"] == Decimal("5800.00")
        assert summary["sales_card"] == Decimal("1500.00")
        assert summary["sales_transfer"] == Decimal("500.00")
        assert summary["sales_by_method"]["Efectivo"] == 1
        assert summary["sales_by_method"]["Mixto"] == 1

        assert summary["total_abonos"] == 1
        assert summary["abonos_amount"] == Decimal("700.00")
        assert summary["abonos_card"] == Decimal("700.00")

        assert summary["total_extra_incomes"] == 1
        assert summary["extra_incomes_cash"] == Decimal("10000.00")

        assert summary["combined_cash"] == Decimal("15800.00")
        assert summary["combined_card"] == Decimal("2200.00")
        assert summary["combined_transfer"] == Decimal("500.00")
        assert summary["combined_total"] == Decimal("18500.00")
        assert (
            summary["combined_cash"] + summary["combined_card"] + summary["combined_transfer"]
            == summary["combined_total"]
        )

    def test_idempotent(self, db: Session, admin_user: User, ring: Jewel) -> None:
        record_sale(db, items=[line(ring)], payment_method="Efectivo", user_id=admin_user.id)
        assert get_day_summary(db) == get_day_summary(db)


class TestSummaryCache:
    def test_cached_result_reused_until_a_write(
        self, db: Session, admin_user: User, ring: Jewel
    ) -> None:
        cache = SimpleCache(max_entries=4, ttl_seconds=60)
        record_sale(db, items=[line(ring)], payment_method="Efectivo", user_id=admin_user.id)

        first = get_day_summary(db, cache=cache)
        second = get_day_summary(db, cache=cache)
        assert first == second
        assert cache.hits == 1

        record_sale(db, items=[line(ring)], payment_method="Tarjeta", user_id=admin_user.id)
        third = get_day_summary(db, cache=cache)
        assert third["total_sales"] == 2
        assert third["revision"] > first["revision"]

    def test_returned_summary_is_a_copy(
        self, db: Session, admin_user: User, ring: Jewel
    ) -> None:
        cache = SimpleCache()
        record_sale(db, items=[line(ring)], payment_method="Efectivo", user_id=admin_user.id)

        summary = get_day_summary(db, cache=cache)
        summary["total_sales"] = 99
        summary["sales_by_method"]["Efectivo"] = 99

        again = get_day_summary(db, cache=cache)
        assert again["total_sales"] == 1
        assert again["sales_by_method"]["Efectivo"] == 1

    def test_credit_sale_invalidates_without_changing_totals(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        cache = SimpleCache()
        before = get_day_summary(db, cache=cache)
        record_credit_sale(db, items=[line(ring)], customer_id=customer.id, user_id=admin_user.id)
        after = get_day_summary(db, cache=cache)
        assert after["revision"] != before["revision"]
        assert after["total_income"] == before["total_income"]


class TestDaySummaryAPI:
    def test_day_summary_endpoint(
        self, client: TestClient, cashier_token: str, ring: Jewel
    ) -> None:
        client.post(
            "/api/v1/sales",
            json={
                "items": [{"jewel_id": str(ring.id), "quantity": 1}],
                "payment_method": "Efectivo",
            },
            headers=auth(cashier_token),
        )
        first = client.get("/api/v1/register/day-summary", headers=auth(cashier_token))
        second = client.get("/api/v1/register/day-summary", headers=auth(cashier_token))
        assert first.status_code == 200
        assert first.json() == second.json()
        assert first.json()["total_sales"] == 1
        assert Decimal(first.json()["combined_total"]) == Decimal("5000")
