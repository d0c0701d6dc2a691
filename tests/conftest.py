"""
tests/conftest.py -- Shared fixtures for RegAuth tests.

This module provides:
  - fake_server / seed_redis: a fakeredis server and a sync client used to
    provision client records and inspect keys directly
  - context / service: an AuthContext wired to an async fakeredis client,
    a low-cost bcrypt hasher and a controllable clock
  - provision: helper that writes a client's regToken hash and regBy
  - api_client: TestClient over the real app with a patched lifespan

Design: the async client under test and the sync seeding client share one
FakeServer, so writes from either side are visible to the other. The async
client is always created inside the event loop that uses it.

Rate limiting and bcrypt cost are set through the environment before any
application import, because get_settings() is cached on first use.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from typing import Optional

os.environ.setdefault("REGAUTH_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("REGAUTH_BCRYPT_ROUNDS", "4")

import fakeredis
import pytest
from fastapi.testclient import TestClient

from api.main import app
from config import Settings, get_settings_for_testing
from core.auth_service import AuthContext, AuthService, create_auth_context
from core.hashing import BcryptHasher
from core.store import ClientStore, client_key

# 2030-01-01T00:00:00Z
FIXED_NOW_MS = 1893456000000
SESSION_TTL = 600


class FakeClock:
    """Millisecond clock the tests can move by hand."""

    def __init__(self, now: int = FIXED_NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest.fixture
def seed_redis(fake_server: fakeredis.FakeServer) -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(server=fake_server, decode_responses=True)


@pytest.fixture(scope="session")
def hasher() -> BcryptHasher:
    return BcryptHasher(rounds=4)


@pytest.fixture
def provision(seed_redis: fakeredis.FakeRedis, hasher: BcryptHasher) -> Callable[..., None]:
    """Return a function that provisions a client out-of-band.

    reg_by may be an int (ms since epoch), raw text, or None to leave it unset.
    """

    def _provision(client: str, reg_token: str, reg_by: Optional[object]) -> None:
        mapping = {"regToken": hasher.hash(reg_token)}
        if reg_by is not None:
            mapping["regBy"] = str(reg_by)
        seed_redis.hset(client_key(client), mapping=mapping)

    return _provision


# ---------------------------------------------------------------------------
# Service-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return get_settings_for_testing(bcrypt_rounds=4, session_ttl_seconds=SESSION_TTL)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def context(fake_server, hasher, clock, settings) -> AuthContext:
    store = ClientStore(fakeredis.FakeAsyncRedis(server=fake_server, decode_responses=True))
    ctx = create_auth_context(settings=settings, store=store, hasher=hasher, clock=clock)
    yield ctx
    await ctx.aclose()


@pytest.fixture
def service(context: AuthContext) -> AuthService:
    return AuthService(context)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(server: fakeredis.FakeServer, settings: Settings):
    """Return a lifespan that wires a fakeredis-backed AuthContext into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        store = ClientStore(fakeredis.FakeAsyncRedis(server=server, decode_responses=True))
        ctx = create_auth_context(settings=settings, store=store, hasher=BcryptHasher(rounds=4))
        app.state.auth_context = ctx
        yield
        app.state.auth_context = None
        await ctx.aclose()

    return test_lifespan


@pytest.fixture
def api_client(fake_server, settings) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real routes with an isolated fake Redis."""
    original = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(fake_server, settings)
    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield client
    finally:
        app.router.lifespan_context = original
