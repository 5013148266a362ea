"""
Sold-Out Reset Result Types

Standardized results returned by the executor and the scheduler driver,
shared by the HTTP trigger and the Celery task.

Author: Khalil Bannouri
Version: 3.1.0
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from orderflow.core.exceptions import AvailabilityError


class ResetMode(str, Enum):
    """
    Cycle modes.

    Attributes:
        SMART: Reset tenants whose local midnight has passed since their last reset
        ALL: Reset every active tenant now (manual / forced)
    """
    SMART = "smart"
    ALL = "all"


class ResetStatus(str, Enum):
    RESET = "reset"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    NOT_DUE = "not_due"
    ALREADY_RESET = "already_reset"
    INACTIVE = "inactive"
    NOT_FOUND = "not_found"


@dataclass
class ResetResult:
    """
    Outcome of one tenant in one cycle.

    Attributes:
        tenant_id: Tenant identifier
        tenant_name: Tenant display name
        status: reset, skipped or failed
        reset_count: Items whose sold-out flag was cleared
        skip_reason: Why a skipped tenant was not reset
        error_kind: ErrorKind value for failed tenants
        error_message: Error description for failed tenants
    """
    tenant_id: str
    tenant_name: str = ""
    status: ResetStatus = ResetStatus.RESET
    reset_count: int = 0
    skip_reason: Optional[SkipReason] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def skipped(cls, tenant_id: str, tenant_name: str, reason: SkipReason) -> "ResetResult":
        return cls(
            tenant_id=tenant_id,
            tenant_name=tenant_name,
            status=ResetStatus.SKIPPED,
            skip_reason=reason,
        )

    @classmethod
    def failed(cls, tenant_id: str, tenant_name: str, error: AvailabilityError) -> "ResetResult":
        return cls(
            tenant_id=tenant_id,
            tenant_name=tenant_name,
            status=ResetStatus.FAILED,
            error_kind=error.kind.value,
            error_message=error.message,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "tenantId": self.tenant_id,
            "tenantName": self.tenant_name,
            "status": self.status.value,
            "resetCount": self.reset_count,
            "skipReason": self.skip_reason.value if self.skip_reason else None,
            "errorKind": self.error_kind,
            "errorMessage": self.error_message,
        }


@dataclass
class CycleReport:
    """
    Aggregate of one scheduler invocation.

    Attributes:
        mode: Mode the cycle ran in
        timestamp: Trigger instant (UTC)
        details: One result per tenant considered
    """
    mode: ResetMode
    timestamp: datetime
    details: list[ResetResult] = field(default_factory=list)

    @property
    def total_items_reset(self) -> int:
        return sum(r.reset_count for r in self.details)

    @property
    def tenants_affected(self) -> int:
        return sum(1 for r in self.details if r.status == ResetStatus.RESET)

    @property
    def tenants_failed(self) -> int:
        return sum(1 for r in self.details if r.status == ResetStatus.FAILED)

    def for_tenant(self, tenant_id: str) -> Optional[ResetResult]:
        return next((r for r in self.details if r.tenant_id == tenant_id), None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": True,
            "mode": self.mode.value,
            "timestamp": self.timestamp.isoformat(),
            "totalItemsReset": self.total_items_reset,
            "tenantsAffected": self.tenants_affected,
            "tenantsFailed": self.tenants_failed,
            "details": [r.to_dict() for r in self.details],
        }
