"""
ShutterDesk Backend - Health Check Route
==========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks the database with SELECT 1 and reports which integrations are
       configured. Stripe itself is not called; a Stripe outage only affects
       invoice creation, not the rest of the site.

Status levels:
    - healthy:   database reachable, Stripe key present
    - degraded:  database reachable, Stripe key missing
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from shutterdesk import __version__
from shutterdesk.config import settings
from shutterdesk.database import engine
from shutterdesk.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    stripe_status = "configured" if settings.stripe_secret_key else "not_configured"
    if stripe_status != "configured" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        stripe=stripe_status,
        google_oauth="enabled" if settings.google_oauth_enabled else "disabled",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
