"""
Celery Tasks
Background tasks for the availability subsystem.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Optional

from orderflow.celery_worker import celery_app
from orderflow.core.config import get_settings
from orderflow.core.exceptions import TenantStoreUnavailableError
from orderflow.database import build_engine, build_session_maker
from orderflow.services.sold_out import run_cycle
from orderflow.services.stores import SqlAlchemyAvailabilityStore

logger = logging.getLogger(__name__)


async def _run_reset_cycle(mode: str, tenant_id: Optional[str], timezone: Optional[str] = None) -> dict:
    # Engines are bound to the event loop that created them, so each task
    # run gets its own and disposes it.
    settings = get_settings()
    engine = build_engine(settings.database_url, echo=settings.database_echo)
    try:
        store = SqlAlchemyAvailabilityStore(build_session_maker(engine))
        report = await run_cycle(store, mode=mode, tenant_id=tenant_id, timezone=timezone)
        return report.to_dict()
    finally:
        await engine.dispose()


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(TenantStoreUnavailableError,),
    retry_backoff=True
)
def reset_sold_out_items(
    self,
    mode: str = "smart",
    tenant_id: Optional[str] = None,
    timezone: Optional[str] = None,
) -> dict:
    """
    Run one sold-out reset cycle.

    Scheduled hourly by Celery beat. Retrying is safe: tenants already
    reset today are skipped by the date guard.

    Args:
        mode: "smart" (local midnight) or "all" (forced)
        tenant_id: Restrict the cycle to one tenant
        timezone: Restrict the cycle to tenants in this IANA timezone

    Returns:
        dict: Cycle report
    """
    task_id = self.request.id
    logger.info(f"📋 Task {task_id}: sold-out reset cycle ({mode})")
    start_time = time.time()

    try:
        result = asyncio.run(_run_reset_cycle(mode, tenant_id, timezone))
    except TenantStoreUnavailableError as e:
        elapsed = round(time.time() - start_time, 3)
        logger.error(f"❌ Task {task_id}: tenant store unavailable after {elapsed}s - {e.message}")
        # Celery will auto-retry based on configuration
        raise

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed

    logger.info(
        f"✅ Task {task_id}: {result['totalItemsReset']} items reset across "
        f"{result['tenantsAffected']} tenants in {elapsed}s"
    )
    return result


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }
