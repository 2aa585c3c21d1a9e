"""
tests/conftest.py -- Shared test fixtures for DataMap.

This module provides:
  - make_settings(): Settings for an isolated named shared-memory SQLite DB
  - context: a fresh AppContext per test (empty database, ids start at 1)
  - client: TestClient over create_app(context)
  - register_user: helper that registers through the API and returns (token, user_id)
  - client_factory: builds extra clients over fresh contexts with Settings overrides

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.
A uuid in the name keeps every test's database separate.

bcrypt_rounds=4 is bcrypt's minimum cost. It keeps the suite fast while
exercising the same code path as production.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Generator
from contextlib import ExitStack

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import create_app
from context import AppContext
from core.config import Settings

TEST_SECRET = "test-secret-key-for-datamap-suite-0123456789"


def make_settings(db_name: str | None = None, **overrides) -> Settings:
    """Return Settings pointing at a private shared-memory database."""
    name = db_name or f"datamap_{uuid.uuid4().hex}"
    values = {
        "debug": True,
        "secret_key": TEST_SECRET,
        "database_url": f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true",
        "bcrypt_rounds": 4,
        "allowed_hosts": ["*"],
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    """The limiter is process-wide; clear its counters so tests don't trip 429s."""
    limiter.reset()


@pytest.fixture
def context() -> Generator[AppContext, None, None]:
    ctx = AppContext.from_settings(make_settings())
    yield ctx
    ctx.close()


@pytest.fixture
def client(context: AppContext) -> Generator[TestClient, None, None]:
    app = create_app(context)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def register_user(client: TestClient) -> Callable[..., tuple[str, int]]:
    """Return a helper that registers an account and yields (token, user_id)."""

    def _register(email: str, password: str = "secret1") -> tuple[str, int]:
        resp = client.post("/api/auth/register", json={"email": email, "password": password})
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return data["token"], data["user"]["id"]

    return _register


@pytest.fixture
def client_factory() -> Generator[Callable[..., TestClient], None, None]:
    """Return a helper that builds a TestClient with Settings overrides.

    Each client gets its own database; clients and contexts are torn down
    together at the end of the test.
    """
    with ExitStack() as stack:

        def _make(**overrides) -> TestClient:
            ctx = AppContext.from_settings(make_settings(**overrides))
            stack.callback(ctx.close)
            return stack.enter_context(TestClient(create_app(ctx), raise_server_exceptions=True))

        yield _make
