"""
Shared fixtures for the brotherhood-svc test suite.

Unit tests exercise the pure ranking/validation code directly. Integration
tests drive the FastAPI app in-process through ``httpx.ASGITransport`` with
an in-memory SQLite database and the auth dependency replaced by a mutable
claims dict.
"""

from __future__ import annotations

import os

# must be set before the app modules build their settings and engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("AUTH_JWKS_URL", "http://auth.test/.well-known/jwks.json")
os.environ["RL_ENABLED"] = "false"
os.environ["ENABLE_NATS_EVENTS"] = "false"

from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.deps import get_claims, get_db
from app.main import app
from app.models import Base, Member, PointCategory, Semester

OFFICER = "m-officer"
ALICE = "m-alice"
BOB = "m-bob"
CARL = "m-carl"
ALUM = "m-alum"
GONE = "m-gone"


@pytest_asyncio.fixture
async def session_maker() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh in-memory database per test; StaticPool keeps one shared connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def identity() -> dict:
    """Claims returned by the overridden auth dependency. Tests mutate it to switch caller."""
    return {"sub": OFFICER, "role": "vpi", "chairs": []}


@pytest.fixture
def act_as(identity):
    def _act_as(sub: str, role: str = "active", chairs: list[str] | None = None) -> None:
        identity.clear()
        identity.update({"sub": sub, "role": role, "chairs": chairs or []})
    return _act_as


@pytest_asyncio.fixture
async def client(session_maker, identity) -> AsyncGenerator[AsyncClient, None]:
    async def _db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_claims] = lambda: identity
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def chapter(db) -> dict:
    """
    Members, a past and a current semester, and one point category.

    Ranked members sort by last name: Adams, Baker, Clark, Olsen.
    """
    db.add_all([
        Member(id=OFFICER, first_name="Oscar", last_name="Olsen", role="vpi"),
        Member(id=ALICE, first_name="Alice", last_name="Adams", role="active"),
        Member(id=BOB, first_name="Bob", last_name="Baker", role="active"),
        Member(id=CARL, first_name="Carl", last_name="Clark", role="junior_active"),
        Member(id=ALUM, first_name="Al", last_name="Young", role="alumni"),
        Member(id=GONE, first_name="Gus", last_name="Gone", role="active", is_active=False),
    ])
    past = Semester(name="Spring 2026", start_date=date(2026, 1, 10), end_date=date(2026, 5, 10))
    current = Semester(name="Fall 2026", start_date=date(2026, 8, 20), end_date=date(2026, 12, 15), is_current=True)
    service = PointCategory(name="Service", default_points=5)
    db.add_all([past, current, service])
    await db.commit()
    return {
        "past": str(past.id),
        "current": str(current.id),
        "service": str(service.id),
    }
