"""
Health Check Endpoints
======================

API health check endpoints for monitoring and Kubernetes probes.
The only external dependency is Redis; bcrypt runs in-process.
"""

import logging
import time
import psutil
from datetime import datetime, timezone
from typing import Dict, Optional
from enum import Enum

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.dependencies import get_auth_context
from core.auth_service import AuthContext
from core.store import ClientStore


# Set up module logger
logger = logging.getLogger(__name__)

router = APIRouter()


class ServiceStatus(str, Enum):
    """Service health status enumeration."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ServiceCheckResult(BaseModel):
    """Result of an individual service health check."""
    status: ServiceStatus = Field(description="Service health status")
    message: Optional[str] = Field(None, description="Status message or error details")
    latency_ms: Optional[float] = Field(None, description="Check latency in milliseconds")


class SystemMetrics(BaseModel):
    """System resource metrics."""
    cpu_percent: float = Field(description="CPU usage percentage")
    memory_percent: float = Field(description="Memory usage percentage")
    memory_available_mb: float = Field(description="Available memory in MB")


class HealthCheckResponse(BaseModel):
    """Comprehensive health check response."""
    status: ServiceStatus = Field(description="Overall health status")
    timestamp: str = Field(description="ISO 8601 timestamp of the health check")
    services: Dict[str, ServiceCheckResult] = Field(description="Individual service statuses")
    system_metrics: SystemMetrics = Field(description="System resource metrics")


class ProbeResponse(BaseModel):
    """Kubernetes readiness/liveness probe response."""
    status: str = Field(description="Probe status")
    timestamp: str = Field(description="ISO 8601 timestamp")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


async def check_redis(store: ClientStore) -> ServiceCheckResult:
    """
    Check Redis connectivity with a PING.

    Args:
        store: Store holding the shared Redis client

    Returns:
        ServiceCheckResult with Redis health status
    """
    start_time = time.perf_counter()
    try:
        await store.ping()
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        return ServiceCheckResult(
            status=ServiceStatus.UNHEALTHY,
            message=f"Connection failed: {str(e)}"
        )

    latency_ms = (time.perf_counter() - start_time) * 1000
    return ServiceCheckResult(
        status=ServiceStatus.HEALTHY,
        message="Connected",
        latency_ms=round(latency_ms, 2)
    )


def get_system_metrics() -> SystemMetrics:
    """Gather CPU and memory metrics; zeros if psutil cannot read them."""
    try:
        memory = psutil.virtual_memory()
        return SystemMetrics(
            cpu_percent=round(psutil.cpu_percent(interval=None), 2),
            memory_percent=round(memory.percent, 2),
            memory_available_mb=round(memory.available / (1024 * 1024), 2)
        )
    except Exception as e:
        logger.error(f"Failed to gather system metrics: {e}")
        return SystemMetrics(cpu_percent=0.0, memory_percent=0.0, memory_available_mb=0.0)


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Comprehensive health check"
)
async def health_check(
    context: AuthContext = Depends(get_auth_context)
) -> HealthCheckResponse:
    """
    Report Redis connectivity and process metrics.

    Always returns HTTP 200; use the `status` field to decide health.
    """
    services = {
        "api": ServiceCheckResult(status=ServiceStatus.HEALTHY, message="API is running"),
        "redis": await check_redis(context.store),
    }
    overall = (
        ServiceStatus.HEALTHY
        if all(s.status == ServiceStatus.HEALTHY for s in services.values())
        else ServiceStatus.UNHEALTHY
    )
    logger.info(f"Health check completed: {overall.value}")

    return HealthCheckResponse(
        status=overall,
        timestamp=_now_iso(),
        services=services,
        system_metrics=get_system_metrics()
    )


@router.get(
    "/health/ready",
    response_model=ProbeResponse,
    summary="Kubernetes readiness probe"
)
async def readiness_probe(
    context: AuthContext = Depends(get_auth_context)
) -> ProbeResponse:
    """
    Ready means Redis answers PING.

    Raises:
        HTTPException: 503 if Redis is unreachable
    """
    redis_result = await check_redis(context.store)
    if redis_result.status != ServiceStatus.HEALTHY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Redis not ready: {redis_result.message}"
        )
    return ProbeResponse(status="ready", timestamp=_now_iso())


@router.get(
    "/health/live",
    response_model=ProbeResponse,
    summary="Kubernetes liveness probe"
)
async def liveness_probe() -> ProbeResponse:
    """Confirm the process can answer requests; no dependency checks."""
    return ProbeResponse(status="alive", timestamp=_now_iso())
