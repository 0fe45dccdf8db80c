"""Shared test fixtures for async database, sessions, reference data, and identities."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tally_api.core.config import Settings
from tally_api.core.database import enable_sqlite_foreign_keys
from tally_api.models.base import Base
from tally_api.models.identity import Identity
from tests.factories import TEST_SECRET, seed_identities, seed_reference_data


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key=TEST_SECRET,
        jwt_algorithm="HS256",
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine with foreign keys enforced."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_foreign_keys(engine)

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
async def reference_data(async_session: AsyncSession) -> None:
    """Seed reference data into the test database."""
    await seed_reference_data(async_session)


@pytest.fixture
async def identities(async_session: AsyncSession, reference_data: None) -> dict[str, Identity]:
    """Seed identities and their assignments into the test database."""
    return await seed_identities(async_session)

