"""
Pinboard API: Health Check Route
==================================

What:  Health check endpoint for monitoring and load balancer health checks.
How:   Probes the database with SELECT 1 and reports the tagging service
       state without spending generation quota.

Status levels:
    healthy    database reachable, tagging available (or disabled)
    degraded   database reachable, tagging unavailable or circuit open;
               pins are still created, just without AI tags
    unhealthy  database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from pinboard import __version__
from pinboard.config import settings
from pinboard.database import engine
from pinboard.schemas.common import HealthResponse
from pinboard.services.gemini_service import CircuitBreaker, gemini_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


async def _tagging_status() -> str:
    if not settings.auto_tag_enabled:
        return "disabled"
    if not gemini_service.is_configured:
        return "unavailable"
    if gemini_service.circuit_breaker.state == CircuitBreaker.OPEN:
        return "circuit_open"
    if await gemini_service.health_check():
        return "available"
    return "unavailable"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check():
    db_status = "connected"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Tagging Service ─────────────────────────────────────────────
    tagging_status = await _tagging_status()
    if tagging_status in ("unavailable", "circuit_open") and overall == "healthy":
        overall = "degraded"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        tagging=tagging_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
