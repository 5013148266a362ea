"""
Scheduler Driver

Runs one sold-out reset cycle: enumerate tenants, filter by eligibility,
reset eligible tenants concurrently and aggregate one result per tenant.

Called once per hourly tick (Celery beat or the HTTP cron trigger) and on
demand. Safe to run twice for the same tick or to overlap with another
cycle: the per-tenant date guard and the compare-and-set on the reset
timestamp allow at most one real reset per tenant per local day.

Usage:
    from orderflow.services.sold_out import run_cycle

    report = await run_cycle(store, mode="smart")
    print(report.total_items_reset)
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Union

from orderflow.core.config import get_settings
from orderflow.core.exceptions import AvailabilityError
from orderflow.services.clock import ensure_utc, utc_now
from orderflow.services.sold_out.base import (
    CycleReport,
    ResetMode,
    ResetResult,
    ResetStatus,
    SkipReason,
)
from orderflow.services.sold_out.eligibility import evaluate, tenant_timezone
from orderflow.services.sold_out.executor import reset_tenant
from orderflow.services.stores.base import BaseAvailabilityStore, TenantSnapshot

logger = logging.getLogger(__name__)


async def active_timezones(store: BaseAvailabilityStore) -> list[str]:
    """
    Distinct IANA timezone names configured on active tenants.

    Tenants without a name (offset-only or unset) are not listed.
    """
    tenants = await store.list_active_tenants()
    return sorted({t.timezone.strip() for t in tenants if t.timezone and t.timezone.strip()})


async def _load_tenants(
    store: BaseAvailabilityStore,
    tenant_id: Optional[str],
    timezone_name: Optional[str],
    report: CycleReport,
) -> list[TenantSnapshot]:
    if tenant_id is None:
        # A failure here aborts the cycle: there is nothing per-tenant to report
        tenants = await store.list_active_tenants()
        if timezone_name is not None:
            tenants = [t for t in tenants if (t.timezone or "").strip() == timezone_name]
        return tenants

    try:
        tenant = await store.get_tenant(tenant_id)
    except AvailabilityError as e:
        report.details.append(ResetResult.failed(tenant_id, "", e))
        return []

    if tenant is None:
        report.details.append(ResetResult.skipped(tenant_id, "", SkipReason.NOT_FOUND))
        return []
    if timezone_name is not None and (tenant.timezone or "").strip() != timezone_name:
        return []
    return [tenant]


async def run_cycle(
    store: BaseAvailabilityStore,
    mode: Union[ResetMode, str] = ResetMode.SMART,
    now: Optional[datetime] = None,
    concurrency: Optional[int] = None,
    tenant_id: Optional[str] = None,
    timezone: Optional[str] = None,
) -> CycleReport:
    """
    Run one reset cycle.

    Args:
        store: Availability store
        mode: ``smart`` (local-midnight driven) or ``all`` (forced)
        now: Trigger instant, defaults to the current time
        concurrency: Tenants reset in parallel (defaults to settings)
        tenant_id: Restrict the cycle to a single tenant
        timezone: Restrict the cycle to tenants configured with this IANA name

    Returns:
        CycleReport: One result per tenant considered

    Raises:
        TenantStoreUnavailableError: if the tenant list cannot be loaded
    """
    mode = ResetMode(mode)
    now = ensure_utc(now) if now is not None else utc_now()
    concurrency = concurrency or get_settings().sold_out_reset_concurrency

    report = CycleReport(mode=mode, timestamp=now)
    if timezone is not None:
        timezone = timezone.strip()
    tenants = await _load_tenants(store, tenant_id, timezone, report)
    semaphore = asyncio.Semaphore(concurrency)

    async def process(tenant: TenantSnapshot) -> ResetResult:
        # Resolved once per tenant and cycle, reused inside the transaction
        tz = tenant_timezone(tenant) if tenant.is_active and mode == ResetMode.SMART else None
        due, reason = evaluate(now, tenant, mode, tz)
        if not due:
            return ResetResult.skipped(tenant.id, tenant.name, reason)

        async with semaphore:
            try:
                return await reset_tenant(store, tenant.id, now, mode, tz=tz)
            except AvailabilityError as e:
                logger.warning(f"⚠️ Tenant {tenant.id} ({tenant.name}): {e.kind.value} - {e.message}")
                return ResetResult.failed(tenant.id, tenant.name, e)

    report.details.extend(await asyncio.gather(*(process(t) for t in tenants)))

    logger.info(
        f"[Cron] Reset sold out items ({mode.value}): {report.total_items_reset} items "
        f"across {report.tenants_affected} tenants, {report.tenants_failed} failed, "
        f"{sum(1 for r in report.details if r.status == ResetStatus.SKIPPED)} skipped"
    )
    return report
