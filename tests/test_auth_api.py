"""
tests/test_auth_api.py -- Integration tests for /api/auth/* and /api/profile.

These tests exercise the full stack: FastAPI routing -> guard dependency ->
Authenticator -> UserStore -> error envelope serialization.

Coverage:
  - register: 201 with token + user, duplicate 400 conflict, short/missing password 400
  - login: 200 with the registered user id, identical 401 for wrong password / unknown email
  - profile: 401 without, with malformed, with invalid and with expired tokens; 200 with a valid token
  - Cache-Control: no-store on token-bearing responses
  - per-IP rate limits on login and register: 429 rate_limited envelope with Retry-After
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from auth.tokens import create_access_token
from context import AppContext


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestRegister:
    def test_register_returns_token_and_user(self, client: TestClient) -> None:
        resp = client.post("/api/auth/register", json={"email": "alice@x.com", "password": "secret1"})
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["token"]
        assert data["user"]["email"] == "alice@x.com"
        assert isinstance(data["user"]["id"], int)
        assert resp.headers["Cache-Control"] == "no-store"

    def test_register_duplicate_email(self, client: TestClient, register_user) -> None:
        register_user("alice@x.com")
        resp = client.post("/api/auth/register", json={"email": "alice@x.com", "password": "different1"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "conflict"

    def test_register_short_password(self, client: TestClient) -> None:
        resp = client.post("/api/auth/register", json={"email": "alice@x.com", "password": "12345"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_register_missing_fields(self, client: TestClient) -> None:
        for body in ({}, {"email": "alice@x.com"}, {"password": "secret1"}):
            resp = client.post("/api/auth/register", json=body)
            assert resp.status_code == 400, body
            assert resp.json()["error"]["code"] == "validation_error"

    def test_register_non_json_body(self, client: TestClient) -> None:
        resp = client.post(
            "/api/auth/register",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False


class TestLogin:
    def test_login_returns_same_user(self, client: TestClient, register_user) -> None:
        _token, user_id = register_user("alice@x.com")
        resp = client.post("/api/auth/login", json={"email": "alice@x.com", "password": "secret1"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["user"] == {"id": user_id, "email": "alice@x.com"}
        assert resp.headers["Cache-Control"] == "no-store"

        profile = client.get("/api/profile", headers=_auth(data["token"]))
        assert profile.json()["user"]["id"] == user_id

    def test_wrong_password_and_unknown_email_identical(self, client: TestClient, register_user) -> None:
        register_user("alice@x.com")
        wrong_password = client.post("/api/auth/login", json={"email": "alice@x.com", "password": "nope123"})
        unknown_email = client.post("/api/auth/login", json={"email": "ghost@x.com", "password": "secret1"})
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.json()["error"]["code"] == "bad_credentials"

    def test_login_missing_fields(self, client: TestClient) -> None:
        resp = client.post("/api/auth/login", json={"email": "alice@x.com"})
        assert resp.status_code == 400


class TestProfile:
    def test_no_token(self, client: TestClient) -> None:
        resp = client.get("/api/profile")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_non_bearer_scheme(self, client: TestClient, register_user) -> None:
        token, _ = register_user("alice@x.com")
        resp = client.get("/api/profile", headers={"Authorization": f"Basic {token}"})
        assert resp.status_code == 401

    def test_invalid_token(self, client: TestClient) -> None:
        resp = client.get("/api/profile", headers=_auth("not-a-jwt"))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_expired_token(self, client: TestClient, context: AppContext, register_user) -> None:
        _token, user_id = register_user("alice@x.com")
        issued = datetime.now(timezone.utc) - timedelta(days=2)
        expired = create_access_token(user_id, "alice@x.com", context.settings.secret_key, 86400, now=issued)
        resp = client.get("/api/profile", headers=_auth(expired))
        assert resp.status_code == 401

    def test_valid_token(self, client: TestClient, register_user) -> None:
        token, user_id = register_user("alice@x.com")
        resp = client.get("/api/profile", headers=_auth(token))
        assert resp.status_code == 200
        assert resp.json() == {"user": {"id": user_id, "email": "alice@x.com"}}


class TestRateLimit:
    def test_login_limited_after_ten_attempts(self, client: TestClient, register_user) -> None:
        register_user("alice@x.com")
        for _ in range(10):
            resp = client.post("/api/auth/login", json={"email": "alice@x.com", "password": "wrong12"})
            assert resp.status_code == 401
        resp = client.post("/api/auth/login", json={"email": "alice@x.com", "password": "secret1"})
        assert resp.status_code == 429
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "rate_limited"
        assert int(resp.headers["Retry-After"]) > 0

    def test_register_counted_separately(self, client: TestClient) -> None:
        for _ in range(11):
            client.post("/api/auth/login", json={"email": "ghost@x.com", "password": "secret1"})
        resp = client.post("/api/auth/register", json={"email": "alice@x.com", "password": "secret1"})
        assert resp.status_code == 201

    def test_register_limited(self, client: TestClient) -> None:
        statuses = [
            client.post("/api/auth/register", json={"email": f"user{i}@x.com", "password": "secret1"}).status_code
            for i in range(11)
        ]
        assert statuses == [201] * 10 + [429]

    def test_limit_comes_from_settings(self, client_factory) -> None:
        client = client_factory(login_rate_limit="2/minute")
        statuses = [
            client.post("/api/auth/login", json={"email": "ghost@x.com", "password": "secret1"}).status_code
            for _ in range(3)
        ]
        assert statuses == [401, 401, 429]
