"""Tests for credit sales, abonos and the receivables portfolio."""
from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func
from sqlalchemy.orm import Session

from joyeria.app.core.clock import clock
from joyeria.app.core.exceptions import NotFoundError, OverpaymentError, ValidationError
from joyeria.app.models.customer import Customer
from joyeria.app.models.inventory import Jewel
from joyeria.app.models.receivable import Abono, AccountReceivable, ReceivableStatus
from joyeria.app.models.sales import LedgerStatus, PaymentMethod, Sale, SaleType
from joyeria.app.models.user import User
from joyeria.app.services.receivables import (
    get_receivable_detail,
    get_receivables_summary,
    list_customer_receivables,
    list_receivables,
    record_abono,
    record_credit_sale,
)
from joyeria.app.services.sales import record_sale
from joyeria.tests.conftest import auth, line

ZERO = Decimal("0")


def _credit_sale(db: Session, user: User, customer: Customer, jewel: Jewel, qty: int = 1) -> dict:
    return record_credit_sale(
        db, items=[line(jewel, qty)], customer_id=customer.id, user_id=user.id
    )


def _assert_balance_invariant(db: Session, receivable_id: uuid.UUID) -> None:
    receivable = db.get(AccountReceivable, receivable_id)
    db.refresh(receivable)
    paid = (
        db.query(func.coalesce(func.sum(Abono.amount), 0))
        .filter(Abono.receivable_id == receivable_id)
        .scalar()
    )
    assert receivable.pending_balance == receivable.total_amount - Decimal(str(paid))
    assert receivable.amount_paid == Decimal(str(paid))
    assert receivable.pending_balance >= 0


# ─── Credit sales ────────────────────────────────────────────────────────────


class TestCreditSale:
    def test_credit_sale_goes_to_archive(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        result = _credit_sale(db, admin_user, customer, ring, qty=2)

        sale = db.get(Sale, result["sale_id"])
        assert sale.ledger_status == LedgerStatus.ARCHIVED
        assert sale.sale_type == SaleType.CREDITO
        assert sale.payment_method is None
        assert sale.cash_amount == sale.card_amount == sale.transfer_amount == ZERO
        assert sale.archived_at is not None

        receivable = db.get(AccountReceivable, result["receivable_id"])
        assert receivable.total_amount == Decimal("10000.00")
        assert receivable.pending_balance == Decimal("10000.00")
        assert receivable.amount_paid == ZERO
        assert receivable.status == ReceivableStatus.PENDIENTE

    def test_zero_total_credit_sale_is_settled(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        result = record_credit_sale(
            db,
            items=[line(ring)],
            customer_id=customer.id,
            user_id=admin_user.id,
            discount=Decimal("5000"),
        )
        assert result["total"] == ZERO

        receivable = db.get(AccountReceivable, result["receivable_id"])
        assert receivable.pending_balance == ZERO
        assert receivable.status == ReceivableStatus.PAGADA
        assert get_receivables_summary(db)["pending_count"] == 0

    def test_credit_sale_decrements_stock(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        _credit_sale(db, admin_user, customer, ring, qty=4)
        db.refresh(ring)
        assert ring.current_stock == 6

    def test_default_due_date_uses_payment_terms(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        result = _credit_sale(db, admin_user, customer, ring)
        assert result["due_date"] == clock.today() + timedelta(days=30)

    def test_explicit_due_date(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        due = clock.today() + timedelta(days=7)
        result = record_credit_sale(
            db,
            items=[line(ring)],
            customer_id=customer.id,
            user_id=admin_user.id,
            due_date=due,
        )
        assert db.get(AccountReceivable, result["receivable_id"]).due_date == due

    def test_past_due_date_rejected(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        with pytest.raises(ValidationError, match="in the past"):
            record_credit_sale(
                db,
                items=[line(ring)],
                customer_id=customer.id,
                user_id=admin_user.id,
                due_date=clock.today() - timedelta(days=1),
            )

    def test_unknown_customer(self, db: Session, admin_user: User, ring: Jewel) -> None:
        with pytest.raises(NotFoundError):
            record_credit_sale(
                db, items=[line(ring)], customer_id=uuid.uuid4(), user_id=admin_user.id
            )

    def test_record_sale_routes_credito(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        result = record_sale(
            db,
            items=[line(ring)],
            payment_method=None,
            user_id=admin_user.id,
            sale_type="Credito",
            customer_id=customer.id,
        )
        assert result["receivable_id"] is not None
        assert db.query(AccountReceivable).count() == 1

    def test_credito_without_customer(
        self, db: Session, admin_user: User, ring: Jewel
    ) -> None:
        with pytest.raises(ValidationError, match="require a customer"):
            record_sale(
                db,
                items=[line(ring)],
                payment_method=None,
                user_id=admin_user.id,
                sale_type=SaleType.CREDITO,
            )


# ─── Abonos ──────────────────────────────────────────────────────────────────


class TestAbono:
    def test_partial_then_full_payment(
        self, db: Session, admin_user: User, customer: Customer, chain: Jewel
    ) -> None:
        receivable_id = _credit_sale(db, admin_user, customer, chain)["receivable_id"]

        first = record_abono(
            db, receivable_id, Decimal("1000"), PaymentMethod.CASH, admin_user.id
        )
        assert first["new_pending_balance"] == Decimal("2000.00")
        assert first["status"] == ReceivableStatus.PENDIENTE
        _assert_balance_invariant(db, receivable_id)

        second = record_abono(
            db, receivable_id, Decimal("2000"), "Transferencia", admin_user.id, notes="saldo"
        )
        assert second["new_pending_balance"] == ZERO
        assert second["status"] == ReceivableStatus.PAGADA
        _assert_balance_invariant(db, receivable_id)

        # settled receivables are kept for history
        assert db.get(AccountReceivable, receivable_id) is not None

    def test_overpayment_rejected_without_partial_application(
        self, db: Session, admin_user: User, customer: Customer
    ) -> None:
        result = record_credit_sale(
            db,
            items=[line(description="Grabado", unit_price=Decimal("100"))],
            customer_id=customer.id,
            user_id=admin_user.id,
        )
        receivable_id = result["receivable_id"]

        with pytest.raises(OverpaymentError, match="exceeds the pending balance"):
            record_abono(db, receivable_id, Decimal("150"), "Efectivo", admin_user.id)

        receivable = db.get(AccountReceivable, receivable_id)
        db.refresh(receivable)
        assert receivable.pending_balance == Decimal("100.00")
        assert db.query(Abono).count() == 0

    def test_settled_receivable_rejects_abono(
        self, db: Session, admin_user: User, customer: Customer, last_unit: Jewel
    ) -> None:
        receivable_id = _credit_sale(db, admin_user, customer, last_unit)["receivable_id"]
        record_abono(db, receivable_id, Decimal("1000"), "Efectivo", admin_user.id)

        with pytest.raises(OverpaymentError, match="already settled"):
            record_abono(db, receivable_id, Decimal("1"), "Efectivo", admin_user.id)

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    def test_non_positive_amount(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel, amount: Decimal
    ) -> None:
        receivable_id = _credit_sale(db, admin_user, customer, ring)["receivable_id"]
        with pytest.raises(ValidationError):
            record_abono(db, receivable_id, amount, "Efectivo", admin_user.id)

    def test_mixed_method_rejected(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        receivable_id = _credit_sale(db, admin_user, customer, ring)["receivable_id"]
        with pytest.raises(ValidationError, match="single payment method"):
            record_abono(db, receivable_id, Decimal("10"), PaymentMethod.MIXED, admin_user.id)

    @pytest.mark.parametrize("amount", [Decimal("0.001"), Decimal("0.004"), Decimal("10.555")])
    def test_sub_cent_amount_rejected(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel, amount: Decimal
    ) -> None:
        receivable_id = _credit_sale(db, admin_user, customer, ring)["receivable_id"]
        with pytest.raises(ValidationError, match="two decimals"):
            record_abono(db, receivable_id, amount, "Efectivo", admin_user.id)

        assert db.query(Abono).count() == 0
        _assert_balance_invariant(db, receivable_id)

    def test_unknown_receivable(self, db: Session, admin_user: User) -> None:
        with pytest.raises(NotFoundError):
            record_abono(db, uuid.uuid4(), Decimal("10"), "Efectivo", admin_user.id)

    def test_abono_belongs_to_open_period(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        receivable_id = _credit_sale(db, admin_user, customer, ring)["receivable_id"]
        result = record_abono(
            db, receivable_id, Decimal("500"), "Tarjeta", admin_user.id, username="test_admin"
        )
        abono = db.get(Abono, result["abono_id"])
        assert abono.closing_id is None
        assert abono.username == "test_admin"


# ─── Portfolio queries ───────────────────────────────────────────────────────


class TestReceivableQueries:
    def test_detail_includes_abonos_and_sale(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel
    ) -> None:
        receivable_id = _credit_sale(db, admin_user, customer, ring)["receivable_id"]
        record_abono(db, receivable_id, Decimal("500"), "Efectivo", admin_user.id)

        detail = get_receivable_detail(db, receivable_id)
        assert detail["customer_name"] == "Test Customer"
        assert len(detail["abonos"]) == 1
        assert detail["sale"].sale_type == SaleType.CREDITO
        assert len(detail["sale"].items) == 1

    def test_list_filters(
        self, db: Session, admin_user: User, customer: Customer, ring: Jewel, last_unit: Jewel
    ) -> None:
        _credit_sale(db, admin_user, customer, ring)
        settled = _credit_sale(db, admin_user, customer, last_unit)["receivable_id"]
        record_abono(db, settled, Decimal("1000"), "Efectivo", admin_user.id)

        assert list_receivables(db)["total"] == 2
        pending = list_receivables(db, status=ReceivableStatus.PENDIENTE)
        assert pending["total"] == 1
        assert pending["items"][0]["pending_balance"] == Decimal("5000.00")

        by_customer = list_customer_receivables(db, customer.id, include_settled=False)
        assert len(by_customer) == 1

    def test_customer_receivables_unknown_customer(self, db: Session) -> None:
        with pytest.raises(NotFoundError):
            list_customer_receivables(db, uuid.uuid4())

    def test_summary_and_overdue(
        self,
        db: Session,
        admin_user: User,
        customer: Customer,
        ring: Jewel,
        chain: Jewel,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        first = _credit_sale(db, admin_user, customer, ring)["receivable_id"]
        _credit_sale(db, admin_user, customer, chain)
        record_abono(db, first, Decimal("1000"), "Efectivo", admin_user.id)

        summary = get_receivables_summary(db)
        assert summary["pending_count"] == 2
        assert summary["settled_count"] == 0
        assert summary["total_receivable"] == Decimal("7000.00")
        assert summary["total_collected"] == Decimal("1000.00")
        assert summary["overdue_count"] == 0

        # 31 days later both receivables (30-day terms) are overdue
        later = clock.today() + timedelta(days=31)
        monkeypatch.setattr(clock, "today", lambda: later)
        summary = get_receivables_summary(db)
        assert summary["overdue_count"] == 2
        assert summary["overdue_amount"] == Decimal("7000.00")
        assert list_receivables(db, overdue_only=True)["items"][0]["is_overdue"] is True


# ─── API tests ───────────────────────────────────────────────────────────────


class TestReceivablesAPI:
    def _create_credit_sale(
        self, client: TestClient, token: str, customer: Customer, jewel: Jewel
    ) -> dict:
        resp = client.post(
            "/api/v1/sales",
            json={
                "items": [{"jewel_id": str(jewel.id), "quantity": 1}],
                "sale_type": "Credito",
                "customer_id": str(customer.id),
            },
            headers=auth(token),
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    def test_credit_sale_and_abono_flow(
        self, client: TestClient, cashier_token: str, customer: Customer, ring: Jewel
    ) -> None:
        created = self._create_credit_sale(client, cashier_token, customer, ring)
        assert created["sale_type"] == "Credito"
        receivable_id = created["receivable_id"]

        resp = client.post(
            f"/api/v1/receivables/{receivable_id}/abonos",
            json={"amount": "2000", "payment_method": "Efectivo"},
            headers=auth(cashier_token),
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert Decimal(body["new_pending_balance"]) == Decimal("3000")
        assert body["status"] == "Pendiente"

        detail = client.get(f"/api/v1/receivables/{receivable_id}", headers=auth(cashier_token))
        assert detail.status_code == 200
        assert len(detail.json()["abonos"]) == 1

    def test_overpayment_is_400(
        self, client: TestClient, cashier_token: str, customer: Customer, ring: Jewel
    ) -> None:
        receivable_id = self._create_credit_sale(client, cashier_token, customer, ring)[
            "receivable_id"
        ]
        resp = client.post(
            f"/api/v1/receivables/{receivable_id}/abonos",
            json={"amount": "9999", "payment_method": "Tarjeta"},
            headers=auth(cashier_token),
        )
        assert resp.status_code == 400
        assert "pending balance" in resp.json()["detail"]

    def test_unknown_receivable_is_404(self, client: TestClient, cashier_token: str) -> None:
        resp = client.post(
            f"/api/v1/receivables/{uuid.uuid4()}/abonos",
            json={"amount": "10", "payment_method": "Efectivo"},
            headers=auth(cashier_token),
        )
        assert resp.status_code == 404

    def test_mixed_abono_is_400(
        self, client: TestClient, cashier_token: str, customer: Customer, ring: Jewel
    ) -> None:
        receivable_id = self._create_credit_sale(client, cashier_token, customer, ring)[
            "receivable_id"
        ]
        resp = client.post(
            f"/api/v1/receivables/{receivable_id}/abonos",
            json={"amount": "10", "payment_method": "Mixto"},
            headers=auth(cashier_token),
        )
        assert resp.status_code == 400
        assert "single payment method" in resp.json()["detail"]

    def test_sub_cent_abono_is_400(
        self, client: TestClient, cashier_token: str, customer: Customer, ring: Jewel
    ) -> None:
        receivable_id = self._create_credit_sale(client, cashier_token, customer, ring)[
            "receivable_id"
        ]
        resp = client.post(
            f"/api/v1/receivables/{receivable_id}/abonos",
            json={"amount": "0.001", "payment_method": "Efectivo"},
            headers=auth(cashier_token),
        )
        assert resp.status_code == 400
        assert "two decimals" in resp.json()["detail"]

    def test_list_summary_and_customer(
        self, client: TestClient, cashier_token: str, customer: Customer, ring: Jewel
    ) -> None:
        self._create_credit_sale(client, cashier_token, customer, ring)

        listing = client.get("/api/v1/receivables?status=Pendiente", headers=auth(cashier_token))
        assert listing.status_code == 200
        assert listing.json()["total"] == 1
        assert listing.json()["items"][0]["customer_name"] == "Test Customer"

        summary = client.get("/api/v1/receivables/summary", headers=auth(cashier_token))
        assert summary.status_code == 200
        assert Decimal(summary.json()["total_receivable"]) == Decimal("5000")

        per_customer = client.get(
            f"/api/v1/receivables/customer/{customer.id}", headers=auth(cashier_token)
        )
        assert per_customer.status_code == 200
        assert len(per_customer.json()) == 1

    def test_credit_sale_without_customer_is_400(
        self, client: TestClient, cashier_token: str, ring: Jewel
    ) -> None:
        resp = client.post(
            "/api/v1/sales",
            json={"items": [{"jewel_id": str(ring.id), "quantity": 1}], "sale_type": "Credito"},
            headers=auth(cashier_token),
        )
        assert resp.status_code == 400
        assert "require a customer" in resp.json()["detail"]
