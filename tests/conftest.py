"""Root conftest: test infrastructure for all backend tests.

Provides:
- A fresh database per test (SQLite file by default, TEST_DATABASE_URL to override)
- db_session and session_maker fixtures for domain integration tests
- A pinned FixedClock shared by domain code and the API
- API client with get_db and get_clock overridden; auth uses real signed tokens
"""

from __future__ import annotations

import os
import uuid
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import app.models  # noqa: F401  # registers every table on SQLModel.metadata
from app.core.clock import FixedClock
from app.core.security import Role
from app.domain.plan_operations import plan_ops

from tests.helpers.auth import bearer

# Tuesday noon UTC; every test starts here unless it moves the clock
TEST_NOW = datetime(2026, 3, 3, 12, 0, tzinfo=UTC)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "integration: tests that touch a real database")


# ─────────────────────────────────────────────────────────────────────────────
# Database
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
async def test_engine(tmp_path):
    """Engine bound to an empty schema, dropped afterwards.

    The SQLite default is a file (not :memory:) so separate sessions see
    each other's commits and can race on the same rows.
    """
    url = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    connect_args = {"timeout": 30} if url.startswith("sqlite") else {}
    engine = create_async_engine(url, echo=False, connect_args=connect_args)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_maker):
    """A session on the per-test database. Tests flush or commit as needed."""
    async with session_maker() as session:
        yield session


@pytest.fixture
async def plans(session_maker):
    """The default plan catalogue, keyed by tier."""
    async with session_maker() as session:
        created = await plan_ops.seed_defaults(session)
        await session.commit()
    return {p.tier: p for p in created}


# ─────────────────────────────────────────────────────────────────────────────
# Time and actors
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TEST_NOW)


@pytest.fixture
def now(clock: FixedClock) -> datetime:
    return clock.now()


@pytest.fixture
def merchant_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def admin_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def customer_id() -> uuid.UUID:
    return uuid.uuid4()


# ─────────────────────────────────────────────────────────────────────────────
# API Client
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
async def api_client(session_maker, clock: FixedClock):
    """Unauthenticated HTTP client against the per-test database and clock.

    Overrides: get_db (same commit/rollback contract, test engine), get_clock
    """
    from app.core.clock import get_clock
    from app.core.database import get_db
    from app.main import app

    async def override_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def merchant_headers(merchant_id: uuid.UUID) -> dict[str, str]:
    return bearer(merchant_id, Role.MERCHANT)


@pytest.fixture
def admin_headers(admin_id: uuid.UUID) -> dict[str, str]:
    return bearer(admin_id, Role.ADMIN)


@pytest.fixture
def customer_headers(customer_id: uuid.UUID) -> dict[str, str]:
    return bearer(customer_id, Role.CUSTOMER)
