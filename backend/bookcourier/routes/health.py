"""
BookCourier Backend — Liveness & Health Routes
================================================

GET /        plain-text liveness banner (process is up)
GET /health  dependency health for load balancers and monitoring

Status levels:
    healthy:   MongoDB reachable and identity provider usable (HTTP 200)
    degraded:  identity provider circuit open (HTTP 200)
    unhealthy: MongoDB unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from bookcourier import __version__
from bookcourier.context import AppContext, get_context
from bookcourier.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Liveness banner")
async def root() -> str:
    return "BookCourier Server is Running!"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
    summary="Service health check",
)
async def health_check(context: AppContext = Depends(get_context)):
    """
    Probe MongoDB with a ping and ask the identity provider whether it is
    usable (its circuit breaker is not open). Neither probe verifies a token.
    """
    db_status = "connected"
    identity_status = "available"
    overall = "healthy"

    try:
        await context.db.command("ping")
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: MongoDB unreachable: %s", str(e))

    try:
        if not await context.identity_provider.health_check():
            identity_status = "circuit_open"
            overall = "degraded" if overall != "unhealthy" else overall
    except Exception as e:
        identity_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: identity provider check failed: %s", str(e))

    report = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        identity_provider=identity_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=report.model_dump(),
    )
