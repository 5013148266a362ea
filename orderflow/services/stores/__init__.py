"""
Availability Store Factory

Provides a single entry point for obtaining the store used by the
scheduler and the prep-time endpoint.

Usage:
    from orderflow.services.stores import get_availability_store

    store = get_availability_store()
    tenants = await store.list_active_tenants()

Author: Khalil Bannouri
Version: 3.1.0
"""

import logging
from functools import lru_cache

from orderflow.database import async_session_maker
from orderflow.services.stores.base import (
    BaseAvailabilityStore,
    TenantSnapshot,
    TenantTransaction,
)
from orderflow.services.stores.sql import SqlAlchemyAvailabilityStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_availability_store() -> BaseAvailabilityStore:
    """
    Get the configured availability store instance.

    The instance is cached so every request shares the same session factory.
    """
    logger.info("Availability Store: Using SqlAlchemyAvailabilityStore")
    return SqlAlchemyAvailabilityStore(async_session_maker)


def reset_availability_store() -> None:
    """Clear the cached store instance."""
    get_availability_store.cache_clear()


__all__ = [
    "get_availability_store",
    "reset_availability_store",
    "BaseAvailabilityStore",
    "SqlAlchemyAvailabilityStore",
    "TenantSnapshot",
    "TenantTransaction",
]
