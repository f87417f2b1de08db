"""
Shared fixtures: in-memory SQLite engine, sessions, cache backends and an
ASGI client with database/cache/user dependencies overridden.
"""
from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import promocode.models  # noqa: F401
from promocode.core.cache import InMemoryCacheRepository, NullCacheRepository
from promocode.core.db import Base, get_db
from promocode.core.deps import get_cache_service, get_current_user
from promocode.main import create_app
from promocode.schemas.promo_codes import PromotionalCodeCreate
from promocode.services import promo_codes
from promocode.services.cache import CacheService

from tests.fixtures_data import ADMIN_USER, TENANT_ID


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def memory_cache() -> CacheService:
    return CacheService(InMemoryCacheRepository())


@pytest.fixture(params=["memory", "disabled"])
def cache(request) -> CacheService:
    """Engine suites run once with a working cache and once with it switched off."""
    if request.param == "memory":
        return CacheService(InMemoryCacheRepository())
    return CacheService(NullCacheRepository())


@pytest.fixture
def current_user() -> SimpleNamespace:
    return SimpleNamespace(**ADMIN_USER)


@pytest.fixture
def make_code(db):
    async def _make(
        *,
        name: str = "Promo1",
        code: str = "PROMO1",
        max_uses: int = 10,
        remaining_uses: int | None = None,
        tenant_id: uuid.UUID = TENANT_ID,
        created_by: str = "seed",
    ) -> uuid.UUID:
        payload = PromotionalCodeCreate(
            name=name,
            code=code,
            max_uses=max_uses,
            remaining_uses=remaining_uses,
            tenant_id=tenant_id,
        )
        return await promo_codes.create_code(db, payload, created_by=created_by)

    return _make


def _build_app(session_factory, cache_service: CacheService, user: SimpleNamespace | None):
    app = create_app()

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_cache_service] = lambda: cache_service
    if user is not None:
        app.dependency_overrides[get_current_user] = lambda: user
    return app


@pytest_asyncio.fixture
async def client(session_factory, memory_cache, current_user) -> AsyncGenerator[AsyncClient, None]:
    app = _build_app(session_factory, memory_cache, current_user)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def anonymous_client(session_factory, memory_cache) -> AsyncGenerator[AsyncClient, None]:
    """Client that goes through the real bearer-token dependency."""
    app = _build_app(session_factory, memory_cache, None)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
