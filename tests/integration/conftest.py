"""Fixtures for API tests running against a real in-memory database."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tally_api.api.errors import register_exception_handlers
from tally_api.api.router import create_router
from tally_api.core.config import Settings, get_settings
from tally_api.core.dependencies import get_async_session
from tally_api.models.identity import Identity


@pytest.fixture
def api_app(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    identities: dict[str, Identity],
) -> FastAPI:
    """FastAPI app with every router, seeded data, and one session per request."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(create_router(settings))

    async def _session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest.fixture
async def client(api_app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=api_app), base_url="http://test") as ac:
        yield ac
