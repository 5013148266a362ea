"""
FastAPI Application Entry Point

OrderFlow Availability Service - menu availability and kitchen readiness.

Endpoints:
    - GET|POST /api/cron/reset-sold-out: Sold-out reset trigger (hourly + on demand)
    - POST /api/tenants/{tenant_id}/prep-time/estimate: Prep/ready time estimate
    - GET /health: System health check

Author: Khalil Bannouri
Version: 3.1.0
"""

import asyncio
import hmac
import sys
import logging
from datetime import datetime
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Query, Request, Header
from fastapi.responses import JSONResponse
import redis

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from orderflow.core.config import get_settings, setup_logging
from orderflow.core.exceptions import AvailabilityError, UnauthorizedError
from orderflow.database import init_db, engine
from orderflow.schemas import (
    CycleReportResponse,
    ErrorResponse,
    HealthResponse,
    PrepTimeEstimateRequest,
    PrepTimeEstimateResponse,
    ResetModeEnum,
)
from orderflow.services.clock import ensure_utc
from orderflow.services.prep_time import (
    OrderItemInput,
    estimate_prep_time_from_menu,
    estimated_ready_time,
)
from orderflow.services.sold_out import run_cycle
from orderflow.services.stores import BaseAvailabilityStore, get_availability_store

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"⚠️ Missing production config: {missing}")
    elif not settings.cron_secret:
        logger.warning("⚠️ CRON_SECRET not set - cron trigger is unauthenticated")

    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Menu availability and kitchen readiness: timezone-aware nightly "
        "sold-out resets and prep-time estimates."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def verify_cron_secret(
    authorization: Optional[str] = Header(None),
) -> None:
    """
    Check the trigger's ``Authorization: Bearer <CRON_SECRET>`` header.

    Without a configured secret the trigger is open outside production
    (with a warning) and closed in production.
    """
    secret = settings.cron_secret

    if not secret:
        if settings.is_production:
            logger.error("CRON_SECRET not set in production - rejecting cron request")
            raise UnauthorizedError("Cron trigger is not configured")
        logger.warning("CRON_SECRET not set - allowing unauthenticated cron request")
        return

    expected = f"Bearer {secret}"
    if authorization is None or not hmac.compare_digest(
        authorization.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Rejected cron request with missing or invalid secret")
        raise UnauthorizedError("Unauthorized")


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    store: BaseAvailabilityStore = Depends(get_availability_store),
) -> HealthResponse:
    """Verify all system components are operational."""

    db_status = "healthy" if await store.health_check() else "unhealthy"

    # Check Redis
    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2, socket_connect_timeout=2)
        r.ping()
        r.close()
    except redis.RedisError as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    overall = "operational" if all(
        s == "healthy" for s in [db_status, redis_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# SOLD-OUT RESET TRIGGER
# =============================================================================

@app.api_route(
    "/api/cron/reset-sold-out",
    methods=["GET", "POST"],
    response_model=CycleReportResponse,
    responses={401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    tags=["Cron"],
    summary="Reset Sold Out Items",
    dependencies=[Depends(verify_cron_secret)],
)
async def reset_sold_out(
    mode: ResetModeEnum = Query(ResetModeEnum.SMART),
    tenant_id: Optional[str] = Query(None, max_length=36),
    timezone: Optional[str] = Query(None, max_length=64),
    store: BaseAvailabilityStore = Depends(get_availability_store),
) -> CycleReportResponse:
    """
    Reset sold-out menu items.

    Schedule hourly. Modes:
        - smart (default): tenants whose local midnight has passed since
          their last reset; every other tick is a no-op for them
        - all: every active tenant, regardless of local time

    ``tenant_id`` restricts the cycle to one tenant, ``timezone`` to the
    tenants configured with that IANA name.
    """
    report = await run_cycle(store, mode=mode.value, tenant_id=tenant_id, timezone=timezone)
    return CycleReportResponse.model_validate(report.to_dict())


# =============================================================================
# PREP TIME ENDPOINTS
# =============================================================================

@app.post(
    "/api/tenants/{tenant_id}/prep-time/estimate",
    response_model=PrepTimeEstimateResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    tags=["Prep Time"],
    summary="Estimate Prep and Ready Time",
)
async def estimate_prep(
    tenant_id: str,
    payload: PrepTimeEstimateRequest,
    store: BaseAvailabilityStore = Depends(get_availability_store),
) -> PrepTimeEstimateResponse:
    """
    Estimate how long an order takes and when it will be ready.

    Called synchronously by the order-creation flow, which stores the
    returned ready time with the order.
    """
    items = [
        OrderItemInput(
            menu_item_id=item.menu_item_id,
            quantity=item.quantity,
            prep_time_minutes=item.prep_time_minutes,
        )
        for item in payload.items
    ]

    prep_times = await store.get_prep_times(tenant_id, {i.menu_item_id for i in items})
    minutes = estimate_prep_time_from_menu(
        items,
        prep_times,
        default_minutes=settings.default_prep_time_minutes,
    )
    start = ensure_utc(payload.start_time) if payload.start_time else None

    return PrepTimeEstimateResponse(
        tenant_id=tenant_id,
        prep_time_minutes=minutes,
        estimated_ready_time=estimated_ready_time(minutes, start),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(AvailabilityError)
async def availability_exception_handler(request: Request, exc: AvailabilityError) -> JSONResponse:
    """Render availability errors with their kind and status code."""
    if exc.status_code >= 500:
        logger.error(f"{exc.kind.value} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.to_dict()).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "kind": "InternalServerError",
                "message": str(exc) if settings.debug else "An unexpected error occurred",
                "details": {},
            },
        },
    )
