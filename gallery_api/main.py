"""
FastAPI Media Gallery Application.

Main application entry point that configures:
- CORS middleware
- API routers
- JSON data store lifecycle
- Logging system
- Exception handlers
- Prometheus metrics (스크래핑 + 선택적 Pushgateway)
- Background trash purge
- Graceful shutdown (Autoscaling 환경 최적화)
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.middleware import SlowAPIMiddleware

from gallery_api.config import get_settings
from gallery_api.exceptions import (
    ConflictError,
    GalleryError,
    GoneError,
    NotFoundError,
    PayloadTooLargeError,
    PermissionDeniedError,
    StoreError,
    ValidationError,
)
from gallery_api.middlewares.active_sessions_middleware import ActiveSessionsMiddleware
from gallery_api.middlewares.logging_middleware import LoggingMiddleware
from gallery_api.middlewares.rate_limit_middleware import setup_rate_limit_exception_handler
from gallery_api.middlewares.request_tracking_middleware import RequestTrackingMiddleware, tracker
from gallery_api.routers import (
    albums_router,
    auth_router,
    favorites_router,
    gallery_router,
    private_router,
    settings_router,
    share_router,
    trash_router,
)
from gallery_api.routers.health import router as health_router
from gallery_api.services.trash import trash_purge_loop
from gallery_api.store import get_store
from gallery_api.utils.config_validator import validate_configuration
from gallery_api.utils.logger import get_request_id, log_error, log_info, log_warning, setup_logging
from gallery_api.utils.prometheus_metrics import (
    exceptions_total,
    pushgateway_loop,
    ready,
    setup_prometheus,
)

settings = get_settings()
logger = logging.getLogger("gallery_api")

# Python logging 설정
setup_logging()

# 도메인 예외 -> HTTP 상태 코드
ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    GoneError: status.HTTP_410_GONE,
    PayloadTooLargeError: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
}


async def _cancel(task: asyncio.Task) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan with graceful shutdown for autoscaling.

    Graceful shutdown 흐름:
    1. Health check 즉시 실패 (ready=0)
    2. 로드밸런서가 새 요청 차단
    3. 진행 중인 요청 완료 대기 (최대 30초)
    4. 백그라운드 작업 종료
    """
    # Startup
    # 설정 검증 (프로덕션 환경에서만)
    try:
        await validate_configuration()
    except ValueError as e:
        log_error(
            "Startup failed: configuration validation errors",
            error_message=str(e),
            event="lifecycle",
        )
        raise RuntimeError(str(e)) from e

    store = get_store()
    await store.ensure_collections()
    get_settings().uploads_dir.mkdir(parents=True, exist_ok=True)

    # Pushgateway 연동: PROMETHEUS_PUSHGATEWAY_URL 설정 시 백그라운드에서 주기 푸시
    pushgateway_task = asyncio.create_task(pushgateway_loop())
    # 휴지통 보존 기간 경과 항목 정리
    purge_task = asyncio.create_task(trash_purge_loop(store))

    ready.set(1)
    log_info(
        "Application startup completed",
        event="lifecycle",
        version=settings.app_version,
        environment=settings.environment.value,
        data_dir=str(store.data_dir),
    )

    yield

    # Graceful shutdown
    ready.set(0)  # Health check 즉시 실패 (로드밸런서가 새 요청 차단)
    log_info("Application shutdown initiated", event="lifecycle", in_flight=tracker.count)

    # 진행 중인 요청 완료 대기 (최대 30초)
    await tracker.wait_for_idle(timeout=30.0)

    # 백그라운드 작업 종료
    await _cancel(purge_task)
    await _cancel(pushgateway_task)

    log_info("Graceful shutdown completed", event="lifecycle")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
## Media Gallery API

A multi-user photo and video gallery built with FastAPI, featuring:

### Features
- **Gallery**: Upload, browse, sort and download photos and videos
- **Private Folder**: Password protected folder with its own unlock token
- **Trash**: Restore or permanently delete, automatic purge after the retention period
- **Albums & Favorites**: Organize gallery items
- **Sharing**: Public links and direct shares between users
- **Settings**: Preferences, active sessions, offline markers, export/import

### Authentication
Most endpoints require authentication via Bearer token.
Use the `/auth/login` endpoint to get a token.
    """,
    openapi_tags=[
        {"name": "Authentication", "description": "User registration, login and profile"},
        {"name": "Gallery", "description": "Upload and manage media items"},
        {"name": "Trash", "description": "Deleted items"},
        {"name": "Private Folder", "description": "Password protected items"},
        {"name": "Albums", "description": "Album management"},
        {"name": "Favorites", "description": "Favorite items"},
        {"name": "Share", "description": "Public links and direct shares"},
        {"name": "Settings", "description": "Preferences, sessions and account data"},
    ],
    lifespan=lifespan,
)

# Prometheus: FastAPI metrics + node info at /metrics
setup_prometheus(app)

# Rate limiting: 예외 처리 핸들러 등록 + 기본 제한 적용
setup_rate_limit_exception_handler(app)
if settings.rate_limit_enabled:
    app.add_middleware(SlowAPIMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)

# Add structured logging middleware
app.add_middleware(LoggingMiddleware)
# 활성 세션 수: 인증된 요청 종료 시 Gauge 감소
app.add_middleware(ActiveSessionsMiddleware)
# 진행 중인 요청 추적: Graceful shutdown을 위한 요청 카운트
app.add_middleware(RequestTrackingMiddleware)


@app.exception_handler(GalleryError)
async def gallery_exception_handler(request: Request, exc: GalleryError):
    """
    Service-level errors to HTTP responses.

    StoreError (JSON file could not be read or written) is treated as a
    server error and carries the request id.
    """
    if isinstance(exc, StoreError):
        exceptions_total.inc()
        rid = get_request_id()
        log_error(
            "Data store error",
            error_type=type(exc).__name__,
            error_message=exc.message,
            http_method=request.method,
            http_path=request.url.path,
            event="exception",
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Data store error", "request_id": rid},
        )

    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    content = {"detail": exc.message}
    if isinstance(exc, ValidationError) and exc.details:
        content["errors"] = exc.details
    if status_code >= 403:
        log_warning(
            "Request rejected",
            event="exception",
            error_type=type(exc).__name__,
            error_message=exc.message,
            http_path=request.url.path,
            status_code=status_code,
        )
    return JSONResponse(status_code=status_code, content=content)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Unhandled exception handler with structured logging.

    모든 처리되지 않은 예외를 캐치하여:
    - ERROR 로그 남김 (구조화된 포맷)
    - 500 응답 반환
    - Request ID 포함 (장애 추적용)
    """
    exceptions_total.inc()
    rid = get_request_id()

    log_error(
        "Unhandled exception occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        error_code="INTERNAL_SERVER_ERROR",
        http_method=request.method,
        http_path=request.url.path,
        event="exception",
        exc_info=True,
    )

    # 클라이언트에게 Request ID 반환 (장애 추적용)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "request_id": rid,  # 사용자가 이 ID로 문의 가능
        },
    )


# Include routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(gallery_router)
app.include_router(trash_router)
app.include_router(private_router)
app.include_router(albums_router)
app.include_router(favorites_router)
app.include_router(share_router)
app.include_router(settings_router)


# Root endpoint
@app.get(
    "/",
    tags=["Root"],
    summary="API information",
)
async def root():
    """
    Root endpoint with API information.
    """
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
