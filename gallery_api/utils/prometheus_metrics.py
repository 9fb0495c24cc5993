"""
Prometheus metrics for stability, availability, and gallery activity.

- FastAPI: request count, latency (Instrumentator)
- Node/instance: app_info
- Stability: exceptions_total, store_errors_total
- HA: ready gauge (1=up, 0=shutting down), in_flight_requests
- Business: uploads, moves between gallery/private/trash, albums, shares, logins
- Pushgateway: 선택 시 주기적으로 메트릭 푸시 (PROMETHEUS_PUSHGATEWAY_URL)
"""
import asyncio
import logging
import socket

from prometheus_client import REGISTRY, Counter, Gauge, Histogram, pushadd_to_gateway
from prometheus_fastapi_instrumentator import Instrumentator

from gallery_api.config import get_settings

logger = logging.getLogger(__name__)

# --- Stability ---
exceptions_total = Counter(
    "gallery_api_exceptions_total",
    "Total unhandled exceptions",
    registry=REGISTRY,
)
store_errors_total = Counter(
    "gallery_api_store_errors_total",
    "Total JSON collection read/parse/write failures",
    ["operation"],  # read | parse | write
    registry=REGISTRY,
)

# --- HA ---
ready = Gauge(
    "gallery_api_ready",
    "Application ready (1=up, 0=shutting down)",
    registry=REGISTRY,
)

in_flight_requests = Gauge(
    "gallery_api_in_flight_requests",
    "Number of requests currently being processed",
    registry=REGISTRY,
)

# 인증된 요청 처리 중인 수 (세션 기준)
active_sessions = Gauge(
    "gallery_api_active_sessions",
    "Number of in-flight requests with a valid session",
    registry=REGISTRY,
)

# --- Rate Limiting ---
rate_limit_hits_total = Counter(
    "gallery_api_rate_limit_hits_total",
    "Total number of rate limit hits (requests blocked)",
    ["endpoint"],
    registry=REGISTRY,
)

# --- Auth ---
login_duration_seconds = Histogram(
    "gallery_api_login_duration_seconds",
    "Login request duration in seconds",
    ["result"],  # success | failure
    buckets=(0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 3.0, 5.0),
    registry=REGISTRY,
)
user_registration_total = Counter(
    "gallery_api_user_registration_total",
    "User registration attempts",
    ["result"],
    registry=REGISTRY,
)
user_login_total = Counter(
    "gallery_api_user_login_total",
    "User login attempts",
    ["result"],
    registry=REGISTRY,
)

# --- Media ---
media_upload_total = Counter(
    "gallery_api_media_upload_total",
    "Uploaded media files",
    ["media_type", "result"],  # media_type: image | video | unsupported
    registry=REGISTRY,
)
media_upload_file_size_bytes = Histogram(
    "gallery_api_media_upload_file_size_bytes",
    "Size of uploaded media files",
    ["media_type"],
    buckets=(
        100 * 1024,
        1024 * 1024,
        5 * 1024 * 1024,
        20 * 1024 * 1024,
        100 * 1024 * 1024,
        500 * 1024 * 1024,
    ),
    registry=REGISTRY,
)
media_moves_total = Counter(
    "gallery_api_media_moves_total",
    "Items moved between gallery, private folder and trash",
    ["source", "destination"],
    registry=REGISTRY,
)
trash_purged_items_total = Counter(
    "gallery_api_trash_purged_items_total",
    "Items permanently deleted from trash",
    ["reason"],  # manual | retention | empty
    registry=REGISTRY,
)

# --- Albums / favorites ---
album_operations_total = Counter(
    "gallery_api_album_operations_total",
    "Album operations",
    ["operation", "result"],
    registry=REGISTRY,
)
favorite_toggles_total = Counter(
    "gallery_api_favorite_toggles_total",
    "Favorite toggles",
    ["state"],  # on | off
    registry=REGISTRY,
)

# --- Shares ---
share_operations_total = Counter(
    "gallery_api_share_operations_total",
    "Share link and direct share operations",
    ["kind", "operation", "result"],  # kind: link | direct
    registry=REGISTRY,
)
share_link_access_total = Counter(
    "gallery_api_share_link_access_total",
    "Public share link access attempts",
    ["result"],  # success | not_found | gone
    registry=REGISTRY,
)

# --- Account ---
account_transfer_total = Counter(
    "gallery_api_account_transfer_total",
    "Account export/import operations",
    ["operation", "result"],
    registry=REGISTRY,
)


def _node_identity() -> str:
    """Node/instance identifier: NODE_NAME env or hostname."""
    settings = get_settings()
    if settings.node_name:
        return settings.node_name
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


def push_metrics_to_gateway() -> None:
    """
    Push current registry to Prometheus Pushgateway.
    Called periodically when PROMETHEUS_PUSHGATEWAY_URL is set.
    """
    settings = get_settings()
    url = (settings.prometheus_pushgateway_url or "").strip()
    if not url:
        return
    grouping_key = {"instance": settings.instance_ip or _node_identity()}
    try:
        pushadd_to_gateway(url, job="gallery-api", registry=REGISTRY, grouping_key=grouping_key)
    except Exception as e:
        logger.warning("Pushgateway push failed: %s", e, exc_info=False)


async def pushgateway_loop() -> None:
    """
    Background loop: push metrics to Pushgateway at configured interval.
    Returns immediately when PROMETHEUS_PUSHGATEWAY_URL is not set.
    """
    settings = get_settings()
    url = (settings.prometheus_pushgateway_url or "").strip()
    if not url:
        return
    interval = max(15, settings.prometheus_push_interval_seconds)
    logger.info(
        "Pushgateway enabled: url=%s interval=%ds",
        url,
        interval,
        extra={"event": "lifecycle"},
    )
    loop = asyncio.get_running_loop()
    while True:
        await asyncio.sleep(interval)
        await loop.run_in_executor(None, push_metrics_to_gateway)


_app_info = Gauge(
    "gallery_api_app_info",
    "Application and node identity (labels only, value is 1)",
    ["node", "app", "version", "environment"],
    registry=REGISTRY,
)


def setup_prometheus(app) -> None:
    """
    Register Prometheus instrumentation.

    1. app_info (node identity labels).
    2. Instrumentator (FastAPI request metrics) exposed at /metrics.
    """
    settings = get_settings()
    _app_info.labels(
        node=_node_identity(),
        app=settings.app_name,
        version=settings.app_version,
        environment=settings.environment.value,
    ).set(1)

    Instrumentator(should_group_status_codes=False).instrument(app).expose(
        app, endpoint="/metrics"
    )
