"""
Availability Error Taxonomy

Every failure the availability subsystem can report carries an ``ErrorKind``
so that cycle reports and HTTP responses expose the same machine-readable
code.

Author: Khalil Bannouri
Version: 3.1.0
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    UNKNOWN_TIMEZONE = "UnknownTimezone"
    TENANT_STORE_UNAVAILABLE = "TenantStoreUnavailable"
    PARTIAL_COMMIT_FAILURE = "PartialCommitFailure"
    INVALID_ORDER_ITEM = "InvalidOrderItem"
    UNAUTHORIZED = "Unauthorized"


class AvailabilityError(Exception):
    """Base class for availability/readiness errors."""

    kind: ErrorKind
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class UnknownTimezoneError(AvailabilityError):
    """Timezone identifier not found in the timezone database."""

    kind = ErrorKind.UNKNOWN_TIMEZONE
    status_code = 400

    def __init__(self, timezone_name: str):
        super().__init__(
            f"Unknown timezone: {timezone_name!r}",
            {"timezone": timezone_name},
        )
        self.timezone_name = timezone_name


class TenantStoreUnavailableError(AvailabilityError):
    """The tenant or menu item store could not be reached."""

    kind = ErrorKind.TENANT_STORE_UNAVAILABLE
    status_code = 503


class PartialCommitFailureError(AvailabilityError):
    """A tenant's reset transaction failed and was rolled back."""

    kind = ErrorKind.PARTIAL_COMMIT_FAILURE
    status_code = 500


class InvalidOrderItemError(AvailabilityError):
    """An order line cannot be estimated (bad quantity or missing item)."""

    kind = ErrorKind.INVALID_ORDER_ITEM
    status_code = 400


class UnauthorizedError(AvailabilityError):
    """Trigger invoked without the shared secret."""

    kind = ErrorKind.UNAUTHORIZED
    status_code = 401
