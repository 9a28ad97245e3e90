"""
Jokebox Backend: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied BEFORE any jokebox import so the
       settings singleton and the module-level engine pick them up.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:    AsyncMock session for pure unit tests
    ├── db_engine:          in-memory SQLite engine with all tables created
    ├── db_session_factory: async_sessionmaker bound to db_engine
    ├── db_session:         one session for store/service tests
    ├── jokester / other_user: committed User rows
    ├── test_app:           fresh app with get_db_session overridden
    ├── test_client:        HTTPX AsyncClient over ASGITransport
    └── jokester_client:    test_client already logged in as jokester
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SESSION_SECRET"] = "test-session-secret-not-real"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"  # fast bcrypt for tests
os.environ["RATE_LIMIT_REQUESTS"] = "1000"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import jokebox.models  # noqa: E402,F401
from jokebox.database import (  # noqa: E402
    Base,
    enable_sqlite_foreign_keys,
    get_db_session,
)
from jokebox.models.joke import Joke  # noqa: E402
from jokebox.models.user import User  # noqa: E402
from jokebox.services.auth_service import hash_password  # noqa: E402

JOKESTER_PASSWORD = "twixrox"
OTHER_PASSWORD = "hunter22"


# ══════════════════════════════════════════════════════════════════════════
# Unit-test doubles
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.return_value = scalar_result(joke)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


def scalar_result(value, rowcount: int = 1) -> MagicMock:
    """A stand-in for the Result returned by session.execute()."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.rowcount = rowcount
    return result


# ══════════════════════════════════════════════════════════════════════════
# Real database (in-memory SQLite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite shared by every connection of one test (StaticPool),
    with foreign keys enforced and the full schema created from the ORM
    metadata.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(db_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with db_session_factory() as session:
        yield session


async def _create_user(session_factory, username: str, password: str) -> User:
    async with session_factory() as session:
        user = User(username=username, password_hash=hash_password(password))
        session.add(user)
        await session.commit()
        return user


@pytest_asyncio.fixture
async def jokester(db_session_factory) -> User:
    return await _create_user(db_session_factory, "kody", JOKESTER_PASSWORD)


@pytest_asyncio.fixture
async def other_user(db_session_factory) -> User:
    return await _create_user(db_session_factory, "mallory", OTHER_PASSWORD)


@pytest_asyncio.fixture
async def chicken_joke(db_session_factory, jokester) -> Joke:
    """A joke owned by `jokester`, already committed."""
    async with db_session_factory() as session:
        joke = Joke(
            name="Chicken",
            content="Why did the chicken cross the road? To get to the other side.",
            jokester_id=jokester.id,
        )
        session.add(joke)
        await session.commit()
        return joke


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_app(db_session_factory):
    """A fresh app whose request sessions come from the test database."""
    from jokebox.main import create_app

    app = create_app()

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    return app


@pytest_asyncio.fixture
async def test_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient routed straight into the app (no server). Redirects
    are not followed so tests can assert on 303 + Location.
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def log_in(client: AsyncClient, username: str, password: str) -> None:
    response = await client.post(
        "/login",
        data={"loginType": "login", "username": username, "password": password},
    )
    assert response.status_code == 303, response.text


@pytest_asyncio.fixture
async def jokester_client(test_client, jokester) -> AsyncClient:
    await log_in(test_client, jokester.username, JOKESTER_PASSWORD)
    return test_client
