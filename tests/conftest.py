"""Shared test fixtures for async database, sessions, users and ballots."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest
from factories import create_election, create_user
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ballot_api.core.config import Settings
from ballot_api.models.base import Base
from ballot_api.models.election import Election
from ballot_api.models.user import ROLE_ELECTION_ADMIN, ROLE_SUPER_ADMIN, ROLE_VOTER, User


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=30,
        jwt_refresh_token_expire_days=7,
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
async def async_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def file_session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession]]:
    """File-backed SQLite database whose sessions use independent connections.

    Used by tests that run several submissions concurrently.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ballots.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def make_user(async_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    async def _make(username: str, role: str = ROLE_VOTER, **kwargs) -> User:
        return await create_user(async_session, username, role, **kwargs)

    return _make


@pytest.fixture
def make_election(async_session: AsyncSession) -> Callable[..., Awaitable[Election]]:
    async def _make(**kwargs) -> Election:
        return await create_election(async_session, **kwargs)

    return _make


@pytest.fixture
async def super_admin(make_user) -> User:
    return await make_user("root", ROLE_SUPER_ADMIN)


@pytest.fixture
async def election_admin(make_user) -> User:
    return await make_user("clerk", ROLE_ELECTION_ADMIN)


@pytest.fixture
async def voter(make_user) -> User:
    return await make_user("alice", ROLE_VOTER)
