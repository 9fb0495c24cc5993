"""
활성 세션 메트릭 미들웨어.

get_current_user가 세션을 확인하면 gallery_api_active_sessions Gauge를 1 증가시키고,
이 미들웨어가 요청 종료 시 1 감소시킵니다.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from gallery_api.utils.prometheus_metrics import active_sessions


class ActiveSessionsMiddleware(BaseHTTPMiddleware):
    """인증된 요청 종료 시 활성 세션 메트릭 감소."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        finally:
            if getattr(request.state, "_active_sessions_metric_inc", False):
                active_sessions.dec()
