"""
SQLAlchemy Availability Store

Production implementation of the availability store on top of the async
SQLAlchemy session factory. Each tenant transaction is one
``session.begin()`` block; the tenant row is locked with
``SELECT ... FOR UPDATE`` (a no-op on SQLite) and the reset timestamp is
written with a compare-and-set on the value read.

Author: Khalil Bannouri
Version: 3.1.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow.core.exceptions import TenantStoreUnavailableError
from orderflow.models import MenuItem, Tenant
from orderflow.services.stores.base import (
    BaseAvailabilityStore,
    TenantSnapshot,
    TenantTransaction,
)

logger = logging.getLogger(__name__)

# Driver errors that mean "could not talk to the database"
UNAVAILABLE_ERRORS = (OperationalError, InterfaceError)


def _snapshot(tenant: Tenant) -> TenantSnapshot:
    return TenantSnapshot(
        id=tenant.id,
        name=tenant.name,
        timezone=tenant.timezone,
        utc_offset_minutes=tenant.utc_offset_minutes,
        last_sold_out_reset_at=tenant.last_sold_out_reset_at,
        is_active=bool(tenant.is_active),
    )


class SqlTenantTransaction(TenantTransaction):
    """Tenant unit of work bound to an open session transaction."""

    def __init__(self, session: AsyncSession, tenant_id: str):
        self._session = session
        self._tenant_id = tenant_id
        self._observed = False
        self._observed_reset_at: Optional[datetime] = None

    async def get_tenant(self) -> Optional[TenantSnapshot]:
        result = await self._session.execute(
            select(Tenant).where(Tenant.id == self._tenant_id).with_for_update()
        )
        tenant = result.scalar_one_or_none()
        if tenant is None:
            return None

        # Raw column value, compared as-is in update_tenant()
        self._observed = True
        self._observed_reset_at = tenant.last_sold_out_reset_at
        return _snapshot(tenant)

    async def list_sold_out_auto_reset_items(self) -> list[str]:
        result = await self._session.execute(
            select(MenuItem.id)
            .where(
                MenuItem.tenant_id == self._tenant_id,
                MenuItem.is_sold_out.is_(True),
                MenuItem.sold_out_auto_reset.is_(True),
            )
            .order_by(MenuItem.id)
        )
        return list(result.scalars().all())

    async def clear_sold_out(self, item_ids: Iterable[str]) -> int:
        ids = list(item_ids)
        if not ids:
            return 0

        result = await self._session.execute(
            update(MenuItem)
            .where(
                MenuItem.id.in_(ids),
                MenuItem.tenant_id == self._tenant_id,
                MenuItem.is_sold_out.is_(True),
                MenuItem.sold_out_auto_reset.is_(True),
            )
            .values(is_sold_out=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def update_tenant(self, last_sold_out_reset_at: datetime) -> bool:
        stmt = update(Tenant).where(Tenant.id == self._tenant_id)
        if self._observed:
            if self._observed_reset_at is None:
                stmt = stmt.where(Tenant.last_sold_out_reset_at.is_(None))
            else:
                stmt = stmt.where(Tenant.last_sold_out_reset_at == self._observed_reset_at)

        result = await self._session.execute(
            stmt.values(last_sold_out_reset_at=last_sold_out_reset_at)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1


class SqlAlchemyAvailabilityStore(BaseAvailabilityStore):
    """
    Availability store backed by the platform database.

    Args:
        session_maker: Async session factory (see ``orderflow.database``)
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @property
    def provider_name(self) -> str:
        return "sqlalchemy"

    async def list_active_tenants(self) -> list[TenantSnapshot]:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(Tenant)
                    .where(Tenant.is_active.is_(True))
                    .order_by(Tenant.slug)
                )
                return [_snapshot(t) for t in result.scalars().all()]
        except UNAVAILABLE_ERRORS as e:
            logger.error(f"Tenant store unavailable while listing tenants: {e}")
            raise TenantStoreUnavailableError(
                "Tenant store unavailable",
                {"operation": "list_active_tenants"},
            ) from e

    async def get_tenant(self, tenant_id: str) -> Optional[TenantSnapshot]:
        try:
            async with self._session_maker() as session:
                tenant = await session.get(Tenant, tenant_id)
                return _snapshot(tenant) if tenant is not None else None
        except UNAVAILABLE_ERRORS as e:
            raise TenantStoreUnavailableError(
                "Tenant store unavailable",
                {"operation": "get_tenant", "tenant_id": tenant_id},
            ) from e

    @asynccontextmanager
    async def transaction(self, tenant_id: str) -> AsyncIterator[TenantTransaction]:
        async with self._session_maker() as session:
            async with session.begin():
                try:
                    await session.connection()
                except UNAVAILABLE_ERRORS as e:
                    raise TenantStoreUnavailableError(
                        "Tenant store unavailable",
                        {"operation": "transaction", "tenant_id": tenant_id},
                    ) from e
                yield SqlTenantTransaction(session, tenant_id)

    async def get_prep_times(
        self,
        tenant_id: str,
        item_ids: Iterable[str],
    ) -> dict[str, Optional[int]]:
        ids = list(item_ids)
        if not ids:
            return {}

        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(MenuItem.id, MenuItem.prep_time_minutes).where(
                        MenuItem.tenant_id == tenant_id,
                        MenuItem.id.in_(ids),
                    )
                )
                return {item_id: minutes for item_id, minutes in result.all()}
        except UNAVAILABLE_ERRORS as e:
            raise TenantStoreUnavailableError(
                "Menu item store unavailable",
                {"operation": "get_prep_times", "tenant_id": tenant_id},
            ) from e

    async def health_check(self) -> bool:
        try:
            async with self._session_maker() as session:
                await session.execute(select(1))
            return True
        except UNAVAILABLE_ERRORS as e:
            logger.error(f"Store health check failed: {e}")
            return False
