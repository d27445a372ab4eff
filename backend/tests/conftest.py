"""
Scavenger Hunt Backend - Test Configuration (conftest.py)
==========================================================

What:  Shared pytest fixtures for the whole suite.
How:   Store and service tests run against a real SQLite database (via
       aiosqlite) created fresh for each test, so the partial unique
       indexes are exercised for real. HTTP tests drive the FastAPI app
       through httpx's ASGITransport with the session dependency overridden.

Fixture Hierarchy (all function-scoped):
    ├── engine            Temporary SQLite file with all tables created
    ├── session_factory   async_sessionmaker bound to `engine`
    ├── db_session        One open session
    ├── mock_db_session   AsyncMock session for failure-path tests
    ├── test_client       httpx AsyncClient against the app
    ├── admin_token       Bearer token of a seeded, active admin account
    └── player_token      Bearer token of a seeded, active player account
"""

import os

# Settings are read at import time; configure before importing the app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256-signing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEED_DEFAULT_ADMIN"] = "false"

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import scavenger.models  # noqa: E402,F401
from scavenger.database import Base, get_db_session  # noqa: E402
from scavenger.services.account_service import account_service  # noqa: E402
from scavenger.services.tokens import token_service  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Sample Payloads
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def account_payload():
    return {
        "username": "a@b.com",
        "password": "password123",
        "nickname": "A",
        "roles": ["player"],
    }


@pytest.fixture
def waypoint_entry():
    return {
        "waypoint_seq_id": 1,
        "location": {"lat": 40.7, "long": -74.0},
        "radius": 50,
        "clue": "x",
        "hints": [],
        "image_subject": "y",
    }


@pytest.fixture
def sequence_payload(waypoint_entry):
    return {
        "waypoint_name": "tour",
        "waypoint_description": "Downtown walking tour",
        "data": [waypoint_entry],
    }


@pytest.fixture
def challenge_payload():
    return {
        "challenge_name": "Night Run",
        "challenge_desc": "Evening hunt through downtown",
        "start_time": "2026-11-01T18:00:00+00:00",
        "duration": 60,
    }


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database file with every table and index created."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    httpx client wired to the app, one committed transaction per request.

    ASGITransport does not run the lifespan, so no database wait or admin
    seeding happens here.
    """
    from scavenger.main import app

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _seed_account(session_factory, username: str, roles) -> str:
    async with session_factory() as session:
        await account_service.register(
            session,
            {"username": username, "password": "password123", "nickname": username, "roles": roles},
        )
        await session.commit()
    return token_service.issue(username, roles, username)


@pytest_asyncio.fixture
async def admin_token(session_factory) -> str:
    return await _seed_account(session_factory, "admin@test.com", ["admin"])


@pytest_asyncio.fixture
async def player_token(session_factory) -> str:
    return await _seed_account(session_factory, "player@test.com", ["player"])


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def player_headers(player_token):
    return {"Authorization": f"Bearer {player_token}"}
