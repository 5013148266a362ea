"""Shared fixtures: an in-memory SQLite store per test and an ASGI client.

- AnyIO is the async runner (``@pytest.mark.anyio``).
- Each test gets a fresh ``sqlite+aiosqlite`` database on a single shared
  connection, so cycles run with concurrency 1. Overlap tests use a file
  database instead (``file_session_maker``).
- HTTP tests go through ``httpx.AsyncClient`` over ``ASGITransport``.
"""

import os
from datetime import datetime
from typing import Any, AsyncGenerator, Iterable, Optional

os.environ.setdefault("ENV_MODE", "development")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://127.0.0.1:6399/0")
os.environ.setdefault("SOLD_OUT_RESET_CONCURRENCY", "1")

import httpx
import pytest
from httpx import ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine

from orderflow.database import Base, build_engine, build_session_maker
from orderflow.models import MenuItem, Tenant
from orderflow.services.clock import ensure_utc
from orderflow.services.stores import SqlAlchemyAvailabilityStore, get_availability_store


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def session_maker():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_maker(engine)
    await engine.dispose()


@pytest.fixture
async def store(session_maker) -> SqlAlchemyAvailabilityStore:
    return SqlAlchemyAvailabilityStore(session_maker)


class Seeder:
    """Creates tenants and menu items, and reads back what the reset changed."""

    def __init__(self, session_maker):
        self._session_maker = session_maker

    async def tenant(
        self,
        slug: str,
        timezone: Optional[str] = None,
        utc_offset_minutes: Optional[int] = None,
        last_reset: Optional[datetime] = None,
        is_active: bool = True,
        items: Iterable[dict[str, Any]] = (),
    ) -> str:
        async with self._session_maker() as session:
            async with session.begin():
                tenant = Tenant(
                    name=slug.replace("-", " ").title(),
                    slug=slug,
                    timezone=timezone,
                    utc_offset_minutes=utc_offset_minutes,
                    last_sold_out_reset_at=last_reset,
                    is_active=is_active,
                )
                session.add(tenant)
                await session.flush()
                for spec in items:
                    session.add(MenuItem(tenant_id=tenant.id, **spec))
            return tenant.id

    async def item_ids(self, tenant_id: str) -> dict[str, str]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(MenuItem.name, MenuItem.id).where(MenuItem.tenant_id == tenant_id)
            )
            return dict(result.all())

    async def sold_out(self, tenant_id: str) -> dict[str, bool]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(MenuItem.name, MenuItem.is_sold_out).where(MenuItem.tenant_id == tenant_id)
            )
            return dict(result.all())

    async def mark_sold_out(self, tenant_id: str) -> None:
        async with self._session_maker() as session:
            async with session.begin():
                items = await session.execute(select(MenuItem).where(MenuItem.tenant_id == tenant_id))
                for item in items.scalars():
                    item.is_sold_out = True

    async def last_reset(self, tenant_id: str) -> Optional[datetime]:
        async with self._session_maker() as session:
            tenant = await session.get(Tenant, tenant_id)
            value = tenant.last_sold_out_reset_at
            return ensure_utc(value) if value is not None else None


@pytest.fixture
def seed(session_maker) -> Seeder:
    return Seeder(session_maker)


@pytest.fixture
async def file_session_maker(tmp_path):
    """SQLite file database with a connection per session, so cycles can overlap."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orderflow.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_maker(engine)
    await engine.dispose()


@pytest.fixture
def file_seed(file_session_maker) -> Seeder:
    return Seeder(file_session_maker)


@pytest.fixture
async def client(store) -> AsyncGenerator[httpx.AsyncClient, None]:
    from orderflow.main import app

    app.dependency_overrides[get_availability_store] = lambda: store
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
