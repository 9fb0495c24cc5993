"""
Rate limiting using slowapi.

Login and public share views carry their own, stricter limits.
"""
import logging
from typing import Callable

from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from gallery_api.config import get_settings
from gallery_api.utils.client_ip import get_client_identifier
from gallery_api.utils.prometheus_metrics import rate_limit_hits_total

logger = logging.getLogger("gallery_api.rate_limit")
settings = get_settings()

# 메모리 기반 저장소 (인스턴스별 카운트)
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)


def setup_rate_limit_exception_handler(app) -> None:
    """
    Rate limit 초과 시 예외 처리 핸들러 등록.
    """
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        endpoint = request.scope.get("route").path if request.scope.get("route") else request.url.path
        rate_limit_hits_total.labels(endpoint=endpoint).inc()
        logger.warning(
            "Rate limit exceeded",
            extra={
                "event": "rate_limit",
                "client_id": get_client_identifier(request),
                "endpoint": endpoint,
                "limit": str(getattr(exc, "detail", "unknown")),
            },
        )
        return _rate_limit_exceeded_handler(request, exc)


def rate_limit(limit: str) -> Callable:
    """
    Rate limit 데코레이터.

    Args:
        limit: Rate limit 문자열 (예: "10/minute")
    """
    if not settings.rate_limit_enabled:
        def noop_decorator(func: Callable) -> Callable:
            return func
        return noop_decorator
    return limiter.limit(limit)
