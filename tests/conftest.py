"""
tests/conftest.py -- Shared test fixtures for the Q&A service tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for accounts + Q&A
  - FakeModerator: stands in for the bad_words API client
  - _patch_lifespan(): wires test collaborators into app.state, bypassing real startup
  - api_client: TestClient plus the collaborators behind it, for API integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs store calls in a thread pool. Plain :memory: DBs are
per-connection and would present a blank schema to each worker thread. The
named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates TOKEN_KEY and skips the BAD_WORDS_API_KEY requirement.
"""

from __future__ import annotations

import os
import secrets
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate TOKEN_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.store import AccountStore
from auth.tokens import TokenCodec
from core.workers import CryptoPool
from qa.store import QAStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[AccountStore, QAStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api').
    """
    accounts_url = f"sqlite:///file:test_accounts_{db_suffix}?mode=memory&cache=shared&uri=true"
    qa_url = f"sqlite:///file:test_qa_{db_suffix}?mode=memory&cache=shared&uri=true"
    return AccountStore(db_url=accounts_url), QAStore(db_url=qa_url)


class FakeModerator:
    """Offline ProfanityFilter: masks the word "darn" and records every call.

    Set fail_with to an exception instance to make the next censor() calls
    raise it, the way the real client raises on an API failure.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail_with: Exception | None = None

    def censor(self, content: str) -> str:
        self.calls.append(content)
        if self.fail_with is not None:
            raise self.fail_with
        return content.replace("darn", "****")

    def close(self) -> None:
        pass


def _patch_lifespan(
    tokens: TokenCodec,
    pool: CryptoPool,
    account_store: AccountStore,
    qa_store: QAStore,
    moderator: FakeModerator,
):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test collaborators into app.state so TestClient routes
    see isolated test DBs and never call the real moderation API.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.tokens = tokens
        app.state.crypto_pool = pool
        app.state.account_store = account_store
        app.state.qa_store = qa_store
        app.state.moderator = moderator
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@dataclass
class ApiHarness:
    """The TestClient plus the collaborators it is wired to."""

    client: TestClient
    tokens: TokenCodec
    accounts: AccountStore
    qa: QAStore
    moderator: FakeModerator

    def register_and_login(self, email: str, password: str = "correct horse") -> str:
        """Register email and return a fresh token for it."""
        resp = self.client.post("/registration", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        resp = self.client.post("/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()


@pytest.fixture(scope="module")
def api_client() -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers, filters and exception handlers but use isolated
    in-memory stores, a known token key and the FakeModerator.
    """
    account_store, qa_store = _make_test_stores("api")
    tokens = TokenCodec(secrets.token_bytes(32))
    pool = CryptoPool(max_workers=2)
    moderator = FakeModerator()

    app.router.lifespan_context = _patch_lifespan(tokens, pool, account_store, qa_store, moderator)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(client=client, tokens=tokens, accounts=account_store, qa=qa_store, moderator=moderator)

    pool.shutdown()
    qa_store.close()
    account_store.close()
