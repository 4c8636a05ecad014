"""
Vitrine Backend — Health Check Route
=====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks both stores and returns an aggregate status.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   Both stores reachable (HTTP 200)
    - degraded:  Blob store unreachable; reads still work (HTTP 200)
    - unhealthy: Record store unreachable (HTTP 503)
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text

from vitrine import __version__
from vitrine.schemas.item import HealthResponse
from vitrine.state import AppState, get_app_state

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    state: AppState = Depends(get_app_state),
) -> HealthResponse:
    """
    Check the health of the service and both stores.

    Check details:
        Record store: SELECT 1 through the engine
        Blob store: bucket probe (Supabase) or writable directory (local)
    """
    db_status = "connected"
    blob_status = "available"
    overall = "healthy"

    try:
        async with state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await state.blob_store.health_check():
        blob_status = "unavailable"
        if overall != "unhealthy":
            overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        blob_store=blob_status,
        uptime_seconds=round(state.uptime_seconds, 2),
    )
