"""
구조화된 로깅 미들웨어.

모든 HTTP 요청에 Request ID를 부여하고 문제 있는 요청만 로깅합니다.
"""
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from gallery_api.utils.client_ip import get_client_ip
from gallery_api.utils.logger import log_error, log_warning, set_request_id

# 느린 응답 임계값 (ms)
SLOW_REQUEST_THRESHOLD_MS = 3000

REQUEST_ID_HEADER = "X-Request-ID"

# 로깅 제외할 경로
EXCLUDED_PATHS = {"/health", "/health/liveness", "/health/readiness", "/docs", "/openapi.json", "/redoc", "/metrics", "/favicon.ico"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    구조화된 로깅을 위한 미들웨어.

    로깅 기준 (운영 노이즈 최소화):
    - 5xx 응답 → ERROR
    - 4xx 응답 → WARNING
    - 3초 이상 걸린 응답 → WARNING
    - 정상 응답 → 로깅 안 함
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        # 클라이언트가 보낸 Request ID를 이어받거나 새로 생성
        rid = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        start = time.perf_counter()

        def context(**extra):
            return {
                "http_method": request.method,
                "http_path": request.url.path,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                "client_ip": get_client_ip(request),
                "user_agent": request.headers.get("user-agent"),
                "user_id": getattr(request.state, "user_id", None),
                "event": "request",
                **extra,
            }

        try:
            response = await call_next(request)
        except Exception as e:
            log_error(
                "Request exception",
                exc_info=True,
                **context(error_type=type(e).__name__, error_message=str(e)),
            )
            # global exception handler가 처리하도록 다시 발생
            raise

        response.headers[REQUEST_ID_HEADER] = rid
        status_code = response.status_code
        ctx = context(http_status=status_code)

        if status_code >= 500:
            log_error("Request error - Server error occurred", **ctx)
        elif status_code >= 400:
            log_warning("Request failed - Client error", **ctx)
        elif ctx["duration_ms"] >= SLOW_REQUEST_THRESHOLD_MS:
            log_warning("Slow request detected", performance_issue=True, **ctx)

        return response
