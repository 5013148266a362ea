"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from orderflow.core.config import get_settings, Settings, EnvironmentMode
from orderflow.core.exceptions import (
    AvailabilityError,
    ErrorKind,
    InvalidOrderItemError,
    PartialCommitFailureError,
    TenantStoreUnavailableError,
    UnauthorizedError,
    UnknownTimezoneError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "AvailabilityError",
    "ErrorKind",
    "InvalidOrderItemError",
    "PartialCommitFailureError",
    "TenantStoreUnavailableError",
    "UnauthorizedError",
    "UnknownTimezoneError",
]
