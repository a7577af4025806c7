"""App and client fixtures for API integration tests against SQLite."""

from collections.abc import AsyncGenerator, Callable

import pytest
from factories import token_for
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ballot_api.api.errors import register_exception_handlers
from ballot_api.api.v1.auth import router as auth_router
from ballot_api.api.v1.dashboard import dashboard_router
from ballot_api.api.v1.elections import elections_router, preview_router
from ballot_api.api.v1.results import results_router
from ballot_api.api.v1.votes import votes_router
from ballot_api.core.config import Settings, get_settings
from ballot_api.core.dependencies import get_async_session
from ballot_api.models.user import User


@pytest.fixture
def app(settings: Settings, session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """Routers under /api/v1 with the test database and settings injected."""
    app = FastAPI()
    register_exception_handlers(app)
    for router in (auth_router, dashboard_router, elections_router, preview_router, results_router, votes_router):
        app.include_router(router, prefix="/api/v1")

    async def _session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(user, settings)}"}

    return _headers
