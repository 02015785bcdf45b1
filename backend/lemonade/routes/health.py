"""
Lemonade Backend: Health Check Route
=====================================

What:  GET /health for container health checks and load balancer probes.
How:   Runs SELECT 1 through the application's session factory.
       healthy (200) when the database answers, unhealthy (503) otherwise.
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from lemonade import __version__
from lemonade.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


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
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content=body.model_dump(),
    )
