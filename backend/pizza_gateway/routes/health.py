"""
Pizza Gateway — Health Check Route
===================================

What:  Liveness report for load balancers and operators.
How:   Runs SELECT 1 through the pool and reports the result together with the
       count of unhandled asynchronous errors seen since startup.

Status levels:
    - healthy:   database reachable
    - unhealthy: database unreachable (still HTTP 200; the process is alive)
"""

import time

from fastapi import APIRouter, Depends

from pizza_gateway import __version__
from pizza_gateway.context import ServiceContext, get_context
from pizza_gateway.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(context: ServiceContext = Depends(get_context)) -> HealthResponse:
    connected = await context.database.probe("SELECT 1")
    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        auth_strategy=context.settings.auth_strategy,
        unhandled_errors=context.unhandled_errors,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
