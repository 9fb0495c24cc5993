"""
Health Check 라우터.

애플리케이션의 상태를 확인하는 엔드포인트를 제공합니다.
"""
import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, status

from gallery_api.config import get_settings
from gallery_api.store import get_store
from gallery_api.utils.prometheus_metrics import REGISTRY, Gauge, ready

logger = logging.getLogger("gallery_api.health")
router = APIRouter(prefix="/health", tags=["Health"])

settings = get_settings()

# Health check 상태 메트릭
health_check_status = Gauge(
    "gallery_api_health_check_status",
    "Health check status (1=healthy, 0=unhealthy)",
    ["check_type"],
    registry=REGISTRY,
)


def _check_data_dir() -> None:
    """Raise 503 if the JSON data directory is not writable."""
    if not get_store().is_writable():
        logger.warning(
            "Data directory not writable",
            extra={"event": "health", "data_dir": str(settings.data_dir)},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Data directory is not writable",
        )


@router.get(
    "",
    summary="Health check (fast)",
)
async def health_check() -> Dict[str, Any]:
    """
    빠른 Health Check (로드밸런서용).

    - 애플리케이션 실행 상태 확인
    - 데이터 디렉터리 쓰기 가능 여부 확인
    """
    start_time = time.perf_counter()

    if ready._value.get() == 0:
        health_check_status.labels(check_type="fast").set(0)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application is shutting down",
        )

    try:
        _check_data_dir()
    except HTTPException:
        health_check_status.labels(check_type="fast").set(0)
        raise

    duration = time.perf_counter() - start_time
    health_check_status.labels(check_type="fast").set(1)
    return {
        "status": "healthy",
        "duration_ms": round(duration * 1000, 2),
        "instance": settings.instance_ip or "unknown",
    }


@router.get(
    "/liveness",
    summary="Liveness probe (Kubernetes)",
)
async def liveness_probe() -> Dict[str, str]:
    """
    Liveness Probe (Kubernetes용).

    애플리케이션이 살아있는지만 확인합니다.
    """
    if ready._value.get() == 0:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application is shutting down",
        )

    return {"status": "alive"}


@router.get(
    "/readiness",
    summary="Readiness probe (Kubernetes)",
)
async def readiness_probe() -> Dict[str, str]:
    """
    Readiness Probe (Kubernetes용).

    애플리케이션이 요청을 처리할 준비가 되었는지 확인합니다.
    """
    if ready._value.get() == 0:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application is not ready",
        )

    _check_data_dir()
    return {"status": "ready"}
