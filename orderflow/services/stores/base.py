"""
Availability Store Abstract Base Class

Defines the narrow contract the availability subsystem needs from the
platform's tenant and menu item tables. The scheduler and the prep-time
endpoint only ever talk to these interfaces.

Design Pattern: Strategy Pattern
    - The SQLAlchemy store is the production implementation
    - Tests can substitute a store that fails on demand

Author: Khalil Bannouri
Version: 3.1.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncContextManager, Iterable, Optional


@dataclass(frozen=True)
class TenantSnapshot:
    """
    The tenant fields consumed by the sold-out reset.

    Attributes:
        id: Tenant identifier
        name: Display name (for reports)
        timezone: IANA timezone name, if configured
        utc_offset_minutes: Fixed offset fallback when no IANA name is set
        last_sold_out_reset_at: Instant of the last automatic reset
        is_active: Inactive tenants are never reset
    """
    id: str
    name: str = ""
    timezone: Optional[str] = None
    utc_offset_minutes: Optional[int] = None
    last_sold_out_reset_at: Optional[datetime] = None
    is_active: bool = True


class TenantTransaction(ABC):
    """
    One tenant's atomic unit of work.

    Everything done through this object commits together or not at all.
    """

    @abstractmethod
    async def get_tenant(self) -> Optional[TenantSnapshot]:
        """Re-read the tenant inside the transaction, locking it where supported."""
        pass

    @abstractmethod
    async def list_sold_out_auto_reset_items(self) -> list[str]:
        """Ids of items that are sold out and opted into automatic reset."""
        pass

    @abstractmethod
    async def clear_sold_out(self, item_ids: Iterable[str]) -> int:
        """
        Clear the sold-out flag on ``item_ids``.

        Items with automatic reset disabled are left untouched even if listed.

        Returns:
            int: Number of items actually changed
        """
        pass

    @abstractmethod
    async def update_tenant(self, last_sold_out_reset_at: datetime) -> bool:
        """
        Advance the tenant's reset bookkeeping.

        If :meth:`get_tenant` was called first, the write only applies when
        the stored value is still the one read (compare-and-set).

        Returns:
            bool: False if a concurrent writer got there first
        """
        pass


class BaseAvailabilityStore(ABC):
    """Abstract base class for availability stores."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the store name."""
        pass

    @abstractmethod
    async def list_active_tenants(self) -> list[TenantSnapshot]:
        """
        All active tenants with their timezone and reset bookkeeping.

        Raises:
            TenantStoreUnavailableError: if the store cannot be reached
        """
        pass

    @abstractmethod
    async def get_tenant(self, tenant_id: str) -> Optional[TenantSnapshot]:
        """A single tenant, active or not; None if it does not exist."""
        pass

    @abstractmethod
    def transaction(self, tenant_id: str) -> AsyncContextManager[TenantTransaction]:
        """
        Open an atomic unit of work scoped to one tenant.

        Raises:
            TenantStoreUnavailableError: if no connection can be obtained
        """
        pass

    @abstractmethod
    async def get_prep_times(
        self,
        tenant_id: str,
        item_ids: Iterable[str],
    ) -> dict[str, Optional[int]]:
        """
        Prep minutes for the tenant's menu items.

        Unknown ids are simply absent from the mapping.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check store connectivity."""
        pass
