"""
tests/conftest.py -- Shared fixtures for account service tests.

This module provides:
  - service: AccountService over a fresh InMemoryAccountStore
  - _make_test_store(): isolated named shared-memory SQLite store for API tests
  - _patch_lifespan(): wires a test AccountService into app.state
  - api_client: TestClient plus Admin and User bearer tokens

Named shared-memory SQLite URIs (not plain :memory:) are required for the API
fixture because TestClient runs sync route handlers in a thread pool. Plain
:memory: databases are per-connection and would show each worker thread an
empty schema.

Environment must be set before any accounts/api/core import so
get_settings() sees a fixed SECRET_KEY and a login rate limit low enough to
exercise but above what any one module sends. api_client clears the limiter
counters so modules do not eat into each other's budget.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: set before any project import -- see module docstring.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("AUTHENTICATE_RATE_LIMIT", "20/minute")

import pytest
from fastapi.testclient import TestClient

from accounts.models import Role, User
from accounts.service import AccountService
from accounts.store import InMemoryAccountStore, SQLAccountStore
from api.limiter import limiter
from api.main import app

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass-123"
SHOPPER_EMAIL = "shopper@example.com"
SHOPPER_PASSWORD = "shopper-pass-123"


@pytest.fixture
def service() -> AccountService:
    """AccountService over an empty in-memory store."""
    return AccountService(InMemoryAccountStore())


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    service: AccountService
    admin: User
    admin_token: str
    shopper: User
    shopper_token: str

    def admin_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.admin_token}"}

    def shopper_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.shopper_token}"}


def _make_test_store(db_suffix: str) -> SQLAccountStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules never
                   share rows.
    """
    return SQLAccountStore(f"sqlite:///file:test_accounts_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(service: AccountService):
    """Return a lifespan that installs the pre-built test service."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_service = service
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext with one Admin and one User account already stored.

    The TestClient uses the real FastAPI app with a patched lifespan, so
    requests go through real middleware, dependencies and exception handlers
    against an isolated in-memory database.
    """
    store = _make_test_store(request.module.__name__.replace(".", "_"))
    service = AccountService(store)

    admin = service.create(User(email=ADMIN_EMAIL, first_name="Ada", role=Role.ADMIN), ADMIN_PASSWORD)
    shopper = service.create(User(email=SHOPPER_EMAIL, first_name="Sam", role=Role.USER), SHOPPER_PASSWORD)

    app.router.lifespan_context = _patch_lifespan(service)
    limiter.reset()

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            service=service,
            admin=admin,
            admin_token=service.generate_token(admin),
            shopper=shopper,
            shopper_token=service.generate_token(shopper),
        )

    store.close()
