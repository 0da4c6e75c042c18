"""
Unit tests for bearer-token verification and the fixed-window rate limiter.
"""

import json
import time

import jwt
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import HTTPException
from jwt.algorithms import RSAAlgorithm

from app import deps
from app.core import redis as rl


@pytest.fixture
def signing_key(monkeypatch):
    """RSA key pair whose public half is served as the JWKS document."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk["kid"] = "k1"

    async def _fake_jwks(force: bool = False):
        return {"keys": [jwk]}

    monkeypatch.setattr(deps, "fetch_jwks", _fake_jwks)
    return private_key


def _token(private_key, **overrides):
    claims = {
        "sub": "m-alice",
        "role": "active",
        "iss": deps.settings.token_issuer,
        "exp": int(time.time()) + 300,
    }
    claims.update(overrides)
    return jwt.encode(claims, private_key, algorithm="RS256", headers={"kid": "k1"})


@pytest.mark.asyncio
class TestGetClaims:

    async def test_valid_token(self, signing_key):
        claims = await deps.get_claims(authorization=f"Bearer {_token(signing_key)}")
        assert claims["sub"] == "m-alice"
        assert claims["chairs"] == []

    async def test_chairs_claim_kept(self, signing_key):
        token = _token(signing_key, chairs=["brotherhood"])
        claims = await deps.get_claims(authorization=f"Bearer {token}")
        assert claims["chairs"] == ["brotherhood"]

    async def test_missing_header(self):
        with pytest.raises(HTTPException) as exc:
            await deps.get_claims(authorization=None)
        assert exc.value.status_code == 401

    async def test_wrong_issuer(self, signing_key):
        with pytest.raises(HTTPException) as exc:
            await deps.get_claims(authorization=f"Bearer {_token(signing_key, iss='someone-else')}")
        assert exc.value.status_code == 401

    async def test_expired(self, signing_key):
        token = _token(signing_key, exp=int(time.time()) - 10)
        with pytest.raises(HTTPException) as exc:
            await deps.get_claims(authorization=f"Bearer {token}")
        assert exc.value.status_code == 401

    async def test_unknown_role(self, signing_key):
        token = _token(signing_key, role="overlord")
        with pytest.raises(HTTPException) as exc:
            await deps.get_claims(authorization=f"Bearer {token}")
        assert exc.value.status_code == 401
        assert exc.value.detail == "Invalid token payload"

    async def test_unknown_chairs_dropped(self, signing_key):
        token = _token(signing_key, chairs=["brotherhood", "grand_poobah"])
        claims = await deps.get_claims(authorization=f"Bearer {token}")
        assert claims["chairs"] == ["brotherhood"]

    async def test_missing_role(self, signing_key):
        token = _token(signing_key)
        payload = jwt.decode(token, options={"verify_signature": False})
        payload.pop("role")
        stripped = jwt.encode(payload, signing_key, algorithm="RS256", headers={"kid": "k1"})
        with pytest.raises(HTTPException) as exc:
            await deps.get_claims(authorization=f"Bearer {stripped}")
        assert exc.value.detail == "Invalid token payload"

    async def test_foreign_signature(self, signing_key):
        other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        with pytest.raises(HTTPException) as exc:
            await deps.get_claims(authorization=f"Bearer {_token(other)}")
        assert exc.value.status_code == 401


class _FakePipeline:
    def __init__(self, store, fail=False):
        self.store = store
        self.fail = fail
        self.key = None

    def incr(self, key):
        self.key = key

    def expire(self, key, seconds):
        pass

    async def execute(self):
        if self.fail:
            raise RedisConnectionError("down")
        self.store[self.key] = self.store.get(self.key, 0) + 1
        return [self.store[self.key], True]


class _FakeRedis:
    def __init__(self, fail=False):
        self.store = {}
        self.fail = fail

    def pipeline(self):
        return _FakePipeline(self.store, self.fail)


@pytest.mark.asyncio
class TestAllowRequest:

    async def test_disabled_always_allows(self, monkeypatch):
        monkeypatch.setattr(rl._settings, "rl_enabled", False)
        assert await rl.allow_request("1.2.3.4", "brother_dates.submit") is True

    async def test_blocks_after_window_max(self, monkeypatch):
        fake = _FakeRedis()
        monkeypatch.setattr(rl._settings, "rl_enabled", True)
        monkeypatch.setattr(rl._settings, "rl_max_reqs", 2)
        monkeypatch.setattr(rl, "get_redis", lambda: fake)

        results = [await rl.allow_request("1.2.3.4", "brother_dates.submit") for _ in range(3)]
        assert results == [True, True, False]
        # other clients have their own window
        assert await rl.allow_request("5.6.7.8", "brother_dates.submit") is True

    async def test_fails_open_when_redis_down(self, monkeypatch):
        monkeypatch.setattr(rl._settings, "rl_enabled", True)
        monkeypatch.setattr(rl, "get_redis", lambda: _FakeRedis(fail=True))
        assert await rl.allow_request("1.2.3.4", "brother_dates.submit") is True
