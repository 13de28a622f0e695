"""
tests/conftest.py -- Shared test fixtures for Rubrica integration tests.

This module provides:
  - memory_url(): named shared-memory SQLite URLs for isolated stores
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - tokens: TokenService signing with the same fixed key as the test app
  - api_client: TestClient with an admin JWT for API integration tests
  - memory_db: factory fixture wrapping memory_url() for tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

The DEBUG env var must be set before any app import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError. The
app's TokenService is replaced with one using TEST_SECRET, so tests can mint
their own tokens (expired ones included).
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Claims, User
from auth.store import UserStore
from auth.tokens import TokenService, hash_password
from contacts.store import ContactStore

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789abcdef"

ADMIN_USERNAME = "testadmin"
ADMIN_PASSWORD = "testpass123"


def memory_url(name: str) -> str:
    """Return a named shared-memory SQLite URL unique to this call."""
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def _patch_lifespan(user_store: UserStore, contacts: ContactStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.contacts = contacts
        app.state.token_service = tokens
        yield

    return test_lifespan


@pytest.fixture(scope="session")
def tokens() -> TokenService:
    """TokenService sharing the test app's signing key."""
    return TokenService(TEST_SECRET)


@pytest.fixture(scope="module")
def api_client(tokens: TokenService) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores.
    The admin user is created before the client starts; the token is valid
    for the default two hours.
    """
    user_store = UserStore(memory_url("test_auth"))
    contacts = ContactStore(memory_url("test_contacts"))

    uid = user_store.create_user(
        User(username=ADMIN_USERNAME, role_id=1, hashed_password=hash_password(ADMIN_PASSWORD))
    )
    token = tokens.issue(Claims(user_id=uid, username=ADMIN_USERNAME, role_id=1))

    app.router.lifespan_context = _patch_lifespan(user_store, contacts, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    user_store.close()
    contacts.close()


@pytest.fixture
def auth_headers(api_client: tuple[TestClient, str, int]) -> dict[str, str]:
    _client, token, _uid = api_client
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def memory_db():
    """Factory fixture: memory_db("name") returns a fresh shared-memory SQLite URL."""
    return memory_url
