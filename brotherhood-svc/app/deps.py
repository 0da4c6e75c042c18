from __future__ import annotations
from typing import Any, Callable, Dict, AsyncGenerator, Iterable
from fastapi import Depends, Header, HTTPException, Request, status
import logging
import time
import httpx
import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .core.config import get_settings
from .core.roles import CHAIR_POSITIONS, POINTS_OFFICER_ROLES, ROLES

logger = logging.getLogger(__name__)
settings = get_settings()

_JWKS: Dict[str, Any] | None = None
_JWKS_TS: float = 0.0

async def fetch_jwks(force: bool = False) -> Dict[str, Any]:
    global _JWKS, _JWKS_TS
    now = time.time()
    if force or _JWKS is None or (now - _JWKS_TS) > settings.jwks_cache_ttl_sec:
        async with httpx.AsyncClient() as client:
            r = await client.get(settings.auth_jwks_url, timeout=5.0)
            r.raise_for_status()
            _JWKS = r.json()
            _JWKS_TS = now
    return _JWKS

async def get_signing_key(kid: str | None = None):
    from jwt.algorithms import RSAAlgorithm
    jwks = await fetch_jwks()
    keys = jwks.get("keys", [])
    if kid and not any(k.get("kid") == kid for k in keys):
        # issuer rotated keys since the last fetch
        jwks = await fetch_jwks(force=True)
        keys = jwks.get("keys", [])
    key = next((k for k in keys if kid and k.get("kid") == kid), keys[0] if keys else None)
    if key is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="No signing keys published")
    return RSAAlgorithm.from_jwk(key)

async def get_claims(authorization: str | None = Header(default=None)) -> Dict[str, Any]:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    token = authorization.split(" ", 1)[1].strip()
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    try:
        key = await get_signing_key(kid)
    except httpx.HTTPError as exc:
        logger.error("JWKS fetch from %s failed: %s", settings.auth_jwks_url, exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Auth keys unavailable")
    try:
        payload = jwt.decode(
            token, key=key, algorithms=["RS256"], issuer=settings.token_issuer,
            options={"verify_aud": False},
        )
    except jwt.PyJWTError as exc:
        logger.debug("Rejected token: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if "sub" not in payload or payload.get("role") not in ROLES:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    chairs = payload.get("chairs")
    # unknown chair positions carry no permissions
    payload["chairs"] = [c for c in chairs if c in CHAIR_POSITIONS] if isinstance(chairs, list) else []
    return payload

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for s in get_session():
        yield s

def require_roles(roles: Iterable[str], *, chairs: Iterable[str] = ()) -> Callable[..., Dict[str, Any]]:
    """Dependency factory: caller's role must be in ``roles`` or they must hold one of ``chairs``."""
    allowed_roles = frozenset(roles)
    allowed_chairs = frozenset(chairs)

    async def _check(claims: dict = Depends(get_claims)) -> Dict[str, Any]:
        if claims.get("role") in allowed_roles:
            return claims
        if allowed_chairs.intersection(claims.get("chairs", [])):
            return claims
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return _check

def is_points_officer(claims: dict) -> bool:
    return claims.get("role") in POINTS_OFFICER_ROLES

def client_ip(request: Request) -> str:
    fwd = request.headers.get("cf-connecting-ip") or request.headers.get("x-forwarded-for")
    if fwd:
        return fwd.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
