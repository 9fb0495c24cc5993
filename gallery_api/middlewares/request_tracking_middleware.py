"""
진행 중인 요청 추적 미들웨어.

Graceful shutdown 시 lifespan이 InFlightTracker.wait_for_idle()로
남은 요청이 끝날 때까지 기다립니다.
"""
import asyncio
import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from gallery_api.utils.prometheus_metrics import in_flight_requests

logger = logging.getLogger("gallery_api.request_tracking")

# Health check 경로는 제외 (shutdown 중에도 응답해야 함)
EXCLUDED_PATHS = {"/health", "/health/liveness", "/health/readiness"}


class InFlightTracker:
    """Counts requests currently being processed."""

    def __init__(self):
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def started(self) -> None:
        self._count += 1
        in_flight_requests.set(self._count)

    def finished(self) -> None:
        self._count = max(0, self._count - 1)
        in_flight_requests.set(self._count)

    async def wait_for_idle(self, timeout: float = 30.0, poll_interval: float = 0.5) -> bool:
        """
        Wait until no request is in flight.

        Returns:
            True: 모든 요청 완료, False: 타임아웃
        """
        deadline = time.monotonic() + timeout
        while self._count > 0:
            if time.monotonic() >= deadline:
                logger.warning(
                    "Timeout waiting for requests",
                    extra={"event": "shutdown", "remaining_requests": self._count, "timeout": timeout},
                )
                return False
            await asyncio.sleep(poll_interval)
        logger.info("All in-flight requests completed", extra={"event": "shutdown"})
        return True


# 애플리케이션 전역 인스턴스 (단일 이벤트 루프에서만 변경)
tracker = InFlightTracker()


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """진행 중인 요청 수를 tracker에 반영."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        tracker.started()
        try:
            return await call_next(request)
        finally:
            tracker.finished()
