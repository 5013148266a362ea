"""
Reset Eligibility Evaluator

Decides whether a tenant is due for its daily sold-out reset on this tick.

The guard is the local calendar date of ``last_sold_out_reset_at``: once a
reset has been stamped for a tenant-day, every later tick of that same local
day is a no-op, so an hourly, retried or overlapping trigger never resets a
tenant twice.
"""

import logging
from datetime import datetime, tzinfo
from typing import Optional

from orderflow.core.config import get_settings
from orderflow.services.clock import local_date, local_wall_clock, resolve_timezone_or_utc
from orderflow.services.sold_out.base import ResetMode, SkipReason
from orderflow.services.stores.base import TenantSnapshot

logger = logging.getLogger(__name__)


def tenant_timezone(tenant: TenantSnapshot) -> tzinfo:
    """
    Resolve the tenant's timezone, degrading to UTC if it is unknown.

    Tenants with neither an IANA name nor an offset use
    ``settings.default_timezone``.
    """
    if not (tenant.timezone or "").strip() and tenant.utc_offset_minutes is None:
        return resolve_timezone_or_utc(get_settings().default_timezone)
    return resolve_timezone_or_utc(tenant.timezone, tenant.utc_offset_minutes)


def is_due(
    now_utc: datetime,
    tenant: TenantSnapshot,
    tz: Optional[tzinfo] = None,
    catch_up: Optional[bool] = None,
) -> bool:
    """
    Smart-mode eligibility.

    At local hour 0 a tenant is due unless it was already reset today
    (local date). At any other hour it is due only when it has a previous
    reset from an earlier local day, i.e. the midnight tick was missed;
    a tenant that was never reset waits for its first local midnight.

    Args:
        now_utc: Trigger instant
        tenant: Tenant bookkeeping
        tz: Pre-resolved timezone (resolved from the tenant if omitted)
        catch_up: Override ``settings.sold_out_catch_up``
    """
    if tz is None:
        tz = tenant_timezone(tenant)
    if catch_up is None:
        catch_up = get_settings().sold_out_catch_up

    now_local = local_wall_clock(now_utc, tz)
    last = tenant.last_sold_out_reset_at

    if last is not None and local_date(last, tz) >= now_local.date:
        return False

    if now_local.hour == 0:
        return True

    return catch_up and last is not None


def evaluate(
    now_utc: datetime,
    tenant: TenantSnapshot,
    mode: ResetMode,
    tz: Optional[tzinfo] = None,
) -> tuple[bool, Optional[SkipReason]]:
    """
    Eligibility plus the reason a tenant is skipped.

    ``tz`` is the tenant's already resolved timezone, if the caller has it.

    Returns:
        (due, skip_reason) with skip_reason None when due
    """
    if not tenant.is_active:
        return False, SkipReason.INACTIVE

    if mode == ResetMode.ALL:
        return True, None

    if tz is None:
        tz = tenant_timezone(tenant)
    if is_due(now_utc, tenant, tz):
        return True, None

    last = tenant.last_sold_out_reset_at
    if last is not None and local_date(last, tz) >= local_date(now_utc, tz):
        return False, SkipReason.ALREADY_RESET
    return False, SkipReason.NOT_DUE
