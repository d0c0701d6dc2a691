"""
tests/test_api_routes.py -- Integration tests for POST /register and POST /login.

These run through the real ASGI stack (validation, rate limiter, error
middleware) with a fakeredis-backed AuthContext wired in by the patched
lifespan in conftest.py.

Coverage:
  - Success bodies: {code} and {code, token, ttlSeconds}
  - Failure bodies: code, message, error_type, details, errCode
  - 422 for missing fields
  - 500 for store failures, details hidden unless api_debug
  - Per-IP rate limit on /login
"""

from __future__ import annotations

import re
import time

import pytest
import redis
from fastapi.testclient import TestClient

from api.middleware.rate_limiter import limiter
from config import get_settings
from core.store import ClientStore, client_key

from conftest import SESSION_TTL


def _future_ms(seconds: int = 3600) -> int:
    return int(time.time() * 1000) + seconds * 1000


class TestRegisterRoute:
    def test_register_success(self, api_client: TestClient, provision) -> None:
        provision("alice", "plain-token", _future_ms())
        resp = api_client.post(
            "/register", json={"client": "alice", "secret": "s3cr3t", "regToken": "plain-token"}
        )
        assert resp.status_code == 200
        assert resp.json() == {"code": 200}

    def test_register_unprovisioned_is_403(self, api_client: TestClient) -> None:
        resp = api_client.post(
            "/register", json={"client": "nobody", "secret": "s3cr3t", "regToken": "plain-token"}
        )
        assert resp.status_code == 403
        body = resp.json()
        assert body["code"] == 403
        assert body["message"] == "Unregistered (regToken)"
        assert body["error_type"] == "UnregisteredError"

    def test_register_expired_then_missing_reg_by(self, api_client: TestClient, provision) -> None:
        provision("alice", "plain-token", _future_ms(-60))
        payload = {"client": "alice", "secret": "s3cr3t", "regToken": "plain-token"}

        first = api_client.post("/register", json=payload)
        assert first.status_code == 403
        assert first.json()["message"] == "Expired"

        second = api_client.post("/register", json=payload)
        assert second.status_code == 403
        assert second.json()["message"] == "Unregistered (missing regBy)"
        assert second.json()["details"]["field"] == "regBy"

    def test_register_invalid_expiry(self, api_client: TestClient, provision) -> None:
        provision("alice", "plain-token", 1514764800000)  # 2018-01-01
        resp = api_client.post(
            "/register", json={"client": "alice", "secret": "s3cr3t", "regToken": "plain-token"}
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "Invalid expiry"

    def test_register_wrong_token(self, api_client: TestClient, provision) -> None:
        provision("alice", "plain-token", _future_ms())
        resp = api_client.post(
            "/register", json={"client": "alice", "secret": "s3cr3t", "regToken": "guess"}
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "Unauthorised (regToken)"

    @pytest.mark.parametrize("missing", ["client", "secret", "regToken"])
    def test_register_missing_field_is_422(self, api_client: TestClient, missing: str) -> None:
        payload = {"client": "alice", "secret": "s3cr3t", "regToken": "plain-token"}
        del payload[missing]
        assert api_client.post("/register", json=payload).status_code == 422

    def test_register_rejects_non_string_fields(self, api_client: TestClient) -> None:
        resp = api_client.post("/register", json={"client": 1, "secret": "s", "regToken": "t"})
        assert resp.status_code == 422


class TestLoginRoute:
    def test_alice_scenario(self, api_client: TestClient, provision, seed_redis) -> None:
        provision("alice", "plain-token", _future_ms())
        reg = api_client.post(
            "/register", json={"client": "alice", "secret": "s3cr3t", "regToken": "plain-token"}
        )
        assert reg.json() == {"code": 200}

        resp = api_client.post("/login", json={"client": "alice", "secret": "s3cr3t"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 200
        assert body["ttlSeconds"] == SESSION_TTL
        assert re.fullmatch(r"[a-z0-9]{32}", body["token"])
        assert seed_redis.hget(f"session:{body['token']}:h", "client") == "alice"

    def test_login_unregistered_is_403(self, api_client: TestClient) -> None:
        resp = api_client.post("/login", json={"client": "nobody", "secret": "s3cr3t"})
        assert resp.status_code == 403
        assert resp.json()["message"] == "Unregistered"

    def test_login_wrong_secret_is_401(self, api_client: TestClient, seed_redis, hasher) -> None:
        seed_redis.hset(client_key("alice"), "secret", hasher.hash("s3cr3t"))
        resp = api_client.post("/login", json={"client": "alice", "secret": "nope"})
        assert resp.status_code == 401
        body = resp.json()
        assert body["message"] == "Unauthorised"
        assert "errCode" not in body

    def test_login_hash_error_includes_err_code(self, api_client: TestClient, seed_redis) -> None:
        seed_redis.hset(client_key("alice"), "secret", "garbage")
        resp = api_client.post("/login", json={"client": "alice", "secret": "s3cr3t"})
        assert resp.status_code == 401
        body = resp.json()
        assert body["message"] == "Unauthorised"
        assert body["errCode"] == "malformed_hash"

    def test_login_missing_secret_is_422(self, api_client: TestClient) -> None:
        assert api_client.post("/login", json={"client": "alice"}).status_code == 422


class TestUnexpectedErrors:
    def test_store_failure_is_500_without_details(self, api_client: TestClient, monkeypatch) -> None:
        async def down(self, client: str):
            raise redis.ConnectionError("connection refused")

        monkeypatch.setattr(ClientStore, "get_secret", down)
        resp = api_client.post("/login", json={"client": "alice", "secret": "s3cr3t"})
        assert resp.status_code == 500
        body = resp.json()
        assert body["error_type"] == "InternalServerError"
        assert body["details"] == {}


class TestRateLimit:
    def test_login_limit_returns_429(self, api_client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(limiter, "enabled", True)
        monkeypatch.setattr(get_settings(), "rate_limit_login", "2/minute")
        limiter.reset()
        try:
            codes = [
                api_client.post("/login", json={"client": "nobody", "secret": "x"}).status_code
                for _ in range(3)
            ]
        finally:
            limiter.reset()
        assert codes == [403, 403, 429]


class TestSecretValidation:
    """Request models refuse input bcrypt would truncate or reject."""

    @pytest.mark.parametrize("secret", ["s3\u0000cr3t", "a" * 73, "€" * 25])
    def test_register_unhashable_secret_is_422(
        self, api_client: TestClient, provision, seed_redis, secret: str
    ) -> None:
        provision("alice", "plain-token", _future_ms())
        resp = api_client.post(
            "/register", json={"client": "alice", "secret": secret, "regToken": "plain-token"}
        )
        assert resp.status_code == 422
        assert seed_redis.hget(client_key("alice"), "regBy") is not None

    def test_register_long_reg_token_is_422(self, api_client: TestClient) -> None:
        resp = api_client.post(
            "/register", json={"client": "alice", "secret": "s3cr3t", "regToken": "t" * 73}
        )
        assert resp.status_code == 422

    def test_login_over_72_bytes_is_422(self, api_client: TestClient, seed_redis, hasher) -> None:
        seed_redis.hset(client_key("alice"), "secret", hasher.hash("a" * 72))
        resp = api_client.post("/login", json={"client": "alice", "secret": "a" * 72 + "WRONG"})
        assert resp.status_code == 422
        assert seed_redis.keys("session:*") == []

    def test_login_nul_secret_is_422(self, api_client: TestClient) -> None:
        resp = api_client.post("/login", json={"client": "alice", "secret": "s3\u0000cr3t"})
        assert resp.status_code == 422
