"""
Sold-Out Reset Executor

Clears the sold-out flag on a tenant's auto-reset items and stamps the
tenant's reset bookkeeping, as one atomic unit per tenant.

Author: Khalil Bannouri
Version: 3.1.0
"""

import logging
from datetime import datetime, tzinfo
from typing import Optional

from orderflow.core.exceptions import AvailabilityError, PartialCommitFailureError
from orderflow.services.sold_out.base import ResetMode, ResetResult, SkipReason
from orderflow.services.sold_out.eligibility import evaluate
from orderflow.services.stores.base import BaseAvailabilityStore

logger = logging.getLogger(__name__)


class _ConcurrentResetDetected(Exception):
    """Raised inside the unit of work to roll it back after a lost compare-and-set."""


async def reset_tenant(
    store: BaseAvailabilityStore,
    tenant_id: str,
    now_utc: datetime,
    mode: ResetMode = ResetMode.SMART,
    tz: Optional[tzinfo] = None,
) -> ResetResult:
    """
    Reset one tenant's sold-out items.

    The tenant is re-read and, in smart mode, re-checked inside the
    transaction, so a cycle that lost a race to a concurrent one reports
    a skip instead of resetting twice.

    Args:
        store: Availability store
        tenant_id: Tenant to reset
        now_utc: Trigger instant, stamped as ``last_sold_out_reset_at``
        mode: Cycle mode (``all`` skips the date guard)
        tz: Timezone the driver already resolved for this tenant

    Returns:
        ResetResult: ``reset`` with the number of items cleared (0 is valid),
        or ``skipped`` with the reason

    Raises:
        TenantStoreUnavailableError: if the store cannot be reached
        PartialCommitFailureError: if the unit failed and was rolled back
    """
    tenant_name = ""
    try:
        async with store.transaction(tenant_id) as tx:
            tenant = await tx.get_tenant()
            if tenant is None:
                return ResetResult.skipped(tenant_id, tenant_name, SkipReason.NOT_FOUND)
            tenant_name = tenant.name

            due, reason = evaluate(now_utc, tenant, mode, tz)
            if not due:
                return ResetResult.skipped(tenant.id, tenant.name, reason)

            item_ids = await tx.list_sold_out_auto_reset_items()
            reset_count = await tx.clear_sold_out(item_ids)

            if not await tx.update_tenant(last_sold_out_reset_at=now_utc):
                raise _ConcurrentResetDetected()

    except _ConcurrentResetDetected:
        logger.info(f"Tenant {tenant_id}: reset already applied by a concurrent cycle")
        return ResetResult.skipped(tenant_id, tenant_name, SkipReason.ALREADY_RESET)

    except AvailabilityError:
        raise

    except Exception as e:
        logger.exception(f"Tenant {tenant_id}: sold-out reset rolled back: {e}")
        raise PartialCommitFailureError(
            f"Sold-out reset for tenant {tenant_id} failed and was rolled back",
            {"tenant_id": tenant_id, "cause": type(e).__name__},
        ) from e

    if reset_count:
        logger.info(f"✅ Tenant {tenant_id}: {reset_count} sold-out items reset")
    else:
        logger.debug(f"Tenant {tenant_id}: nothing was sold out")

    return ResetResult(
        tenant_id=tenant_id,
        tenant_name=tenant_name,
        reset_count=reset_count,
    )
