"""
Blog API — Liveness and Health Routes
=======================================

What:  `GET /` (plain liveness message) and `GET /health` (dependency status).
Why:   Load balancers probe /health; humans and uptime pingers hit /.

Status levels:
    healthy    database reachable, media host reachable
    degraded   database reachable, media host unavailable / unconfigured /
               circuit open (reads still work, image uploads do not)
    unhealthy  database unreachable → HTTP 503
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app import __version__
from app.config import settings
from app.schemas.common import HealthResponse, MessageResponse
from app.services.media_service import CircuitBreaker, media_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=MessageResponse, summary="Liveness message")
async def root() -> MessageResponse:
    return MessageResponse(message="Blog API is running")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    db_status = "connected"
    overall = "healthy"

    try:
        database = request.app.state.database
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not settings.cloudinary_configured:
        media_status = "unconfigured"
    elif media_service.circuit_breaker.state == CircuitBreaker.OPEN:
        media_status = "circuit_open"
    elif await media_service.health_check():
        media_status = "available"
    else:
        media_status = "unavailable"

    if media_status != "available" and overall == "healthy":
        overall = "degraded"

    health = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        media=media_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=health.model_dump())
    return health
