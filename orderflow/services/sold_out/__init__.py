"""
Sold-Out Reset Service

Timezone-aware nightly reset of menu items marked sold out.

    - eligibility: is a tenant due on this tick?
    - executor: atomic per-tenant reset
    - scheduler: one cycle over all tenants
"""

from orderflow.services.sold_out.base import (
    CycleReport,
    ResetMode,
    ResetResult,
    ResetStatus,
    SkipReason,
)
from orderflow.services.sold_out.eligibility import evaluate, is_due, tenant_timezone
from orderflow.services.sold_out.executor import reset_tenant
from orderflow.services.sold_out.scheduler import active_timezones, run_cycle

__all__ = [
    "CycleReport",
    "active_timezones",
    "ResetMode",
    "ResetResult",
    "ResetStatus",
    "SkipReason",
    "evaluate",
    "is_due",
    "tenant_timezone",
    "reset_tenant",
    "run_cycle",
]
