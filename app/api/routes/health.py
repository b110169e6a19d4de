from __future__ import annotations

import gc
import logging
import os
import platform
import sys
import threading
import time
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Request

from app.schemas.health import HealthResponse, HeartbeatResponse, SystemInfoResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])
legacy_router = APIRouter(tags=["Health"], include_in_schema=False)

SERVICE_NAME = "clean-api"

_started_at = time.monotonic()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _uptime() -> str:
    return str(timedelta(seconds=time.monotonic() - _started_at))


def _version(request: Request) -> str:
    return request.app.version


@router.get("/health", response_model=HealthResponse)
@legacy_router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service health.
    """

    logger.debug("health.check", extra={"path": request.url.path})
    return HealthResponse(
        status="healthy",
        timestamp=_now(),
        service=SERVICE_NAME,
        version=_version(request),
        uptime=_uptime(),
    )


@router.get("/heartbeat", response_model=HeartbeatResponse)
def heartbeat() -> HeartbeatResponse:
    """Simple heartbeat to verify the process is alive."""

    return HeartbeatResponse(status="alive", timestamp=_now(), service=SERVICE_NAME)


@router.get("/system", response_model=SystemInfoResponse)
def system_info(request: Request) -> SystemInfoResponse:
    """Detailed runtime information: interpreter, CPUs, threads, memory."""

    gc_stats = gc.get_stats()
    memory = {
        "allocated_blocks": sys.getallocatedblocks(),
        "gc_objects": len(gc.get_objects()),
        "gc_collections": sum(gen["collections"] for gen in gc_stats),
        "gc_collected": sum(gen["collected"] for gen in gc_stats),
    }

    return SystemInfoResponse(
        status="healthy",
        timestamp=_now(),
        service=SERVICE_NAME,
        version=_version(request),
        python_version=platform.python_version(),
        num_cpu=os.cpu_count() or 1,
        num_threads=threading.active_count(),
        memory=memory,
        uptime=_uptime(),
    )


@router.get("/ready", response_model=HealthResponse)
def readiness(request: Request) -> HealthResponse:
    """Readiness probe.

    The database and Redis are provisioned but not used yet, so there is
    nothing to check; the rate limiter is in-process and always ready.
    """

    limiter = getattr(request.app.state, "rate_limiter", None)
    checks = {
        "database": "not_configured",
        "redis": "not_configured",
        "rate_limiter": "healthy" if limiter is not None else "disabled",
    }

    return HealthResponse(
        status="ready",
        timestamp=_now(),
        service=SERVICE_NAME,
        version=_version(request),
        checks=checks,
    )


@router.get("/live", response_model=HealthResponse)
def liveness(request: Request) -> HealthResponse:
    """Liveness probe."""

    return HealthResponse(
        status="alive",
        timestamp=_now(),
        service=SERVICE_NAME,
        version=_version(request),
        uptime=_uptime(),
    )
