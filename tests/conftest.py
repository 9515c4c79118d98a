from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from libs.common.config import get_settings
from libs.db.base import Base
from services.storefront_service.app.main import app
from services.storefront_service.dependencies import get_record_store
from services.storefront_service.record_store import (
    MemoryRecordStore,
    PolicyRecordStore,
    SqlRecordStore,
)
from services.storefront_service.seed_store_data import seed_catalog
from tests.factories import make_member_user, override_auth


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> MemoryRecordStore:
    """A fresh, empty in-memory record store."""
    return MemoryRecordStore()


@pytest_asyncio.fixture
async def catalog(store) -> dict[str, dict]:
    """The sample catalog, keyed by product name."""
    return await seed_catalog(store)


@pytest.fixture
def shopper():
    return make_member_user(full_name="Ada Lovelace")


@pytest.fixture
def other_shopper():
    return make_member_user(full_name="Grace Hopper")


@pytest.fixture
def shopper_store(store, shopper) -> PolicyRecordStore:
    """The store as the shopper sees it through row-level security."""
    return PolicyRecordStore(store, shopper)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(store, catalog, shopper) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient against the app, backed by the seeded memory store
    and authenticated as ``shopper``.
    """
    app.dependency_overrides[get_record_store] = lambda: store

    with override_auth(app, shopper):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Postgres store
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """
    Create a test engine that connects to the database.
    Tables are created for the test and dropped afterwards.
    """
    settings = get_settings()
    db_url = settings.DATABASE_URL.replace("host.docker.internal", "localhost")

    engine = create_async_engine(db_url, future=True)

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (OperationalError, OSError):
        await engine.dispose()
        pytest.skip("Database not available for tests")

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def sql_store(test_engine) -> SqlRecordStore:
    session_factory = async_sessionmaker(
        bind=test_engine, expire_on_commit=False, autoflush=False
    )
    return SqlRecordStore(session_factory)
