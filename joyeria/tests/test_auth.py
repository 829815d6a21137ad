"""Tests for login, token checks and role permissions."""
from __future__ import annotations

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from joyeria.app.core.security import create_access_token
from joyeria.app.models.audit import AuditLog
from joyeria.app.models.user import User
from joyeria.tests.conftest import auth


class TestLogin:
    def test_login_returns_usable_token(
        self, client: TestClient, db: Session, cashier_user: User
    ) -> None:
        resp = client.post(
            "/api/v1/auth/login/access-token",
            data={"username": "test_cashier", "password": "pass"},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["access_token"]
        assert resp.json()["token_type"] == "bearer"

        summary = client.get("/api/v1/register/day-summary", headers=auth(token))
        assert summary.status_code == 200
        assert db.query(AuditLog).filter_by(action="LOGIN_SUCCESS").count() == 1

    def test_wrong_password(self, client: TestClient, db: Session, cashier_user: User) -> None:
        resp = client.post(
            "/api/v1/auth/login/access-token",
            data={"username": "test_cashier", "password": "nope"},
        )
        assert resp.status_code == 401
        assert db.query(AuditLog).filter_by(action="LOGIN_FAILED").count() == 1

    def test_inactive_user(self, client: TestClient, db: Session, cashier_user: User) -> None:
        cashier_user.is_active = False
        db.commit()
        resp = client.post(
            "/api/v1/auth/login/access-token",
            data={"username": "test_cashier", "password": "pass"},
        )
        assert resp.status_code == 403


class TestTokens:
    def test_garbage_token(self, client: TestClient) -> None:
        resp = client.get("/api/v1/register/day-summary", headers=auth("not-a-jwt"))
        assert resp.status_code == 401

    def test_expired_token(self, client: TestClient, cashier_user: User) -> None:
        token = create_access_token(str(cashier_user.id), expires_delta=timedelta(minutes=-1))
        resp = client.get("/api/v1/register/day-summary", headers=auth(token))
        assert resp.status_code == 401

    def test_request_id_echoed(self, client: TestClient, cashier_token: str) -> None:
        resp = client.get(
            "/api/v1/register/day-summary",
            headers={**auth(cashier_token), "X-Request-ID": "till-7"},
        )
        assert resp.headers["X-Request-ID"] == "till-7"
