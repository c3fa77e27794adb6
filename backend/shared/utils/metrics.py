"""
Prometheus metrics for the Live Board feed layer.
"""
from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
FEED_REQUESTS = Counter(
    "lb_feed_requests_total",
    "Total HTTP requests sent to the upstream feed",
    ["endpoint", "status"],
)
PUSH_MESSAGES = Counter(
    "lb_push_messages_total",
    "Push channel messages by outcome",
    ["outcome"],
)
CHANNEL_RECONNECTS = Counter(
    "lb_channel_reconnects_total",
    "Push channel reconnect attempts",
)
SNAPSHOT_FETCHES = Counter(
    "lb_snapshot_fetches_total",
    "Cold-start snapshot fetches by outcome",
    ["outcome"],
)
STANDINGS_ATTEMPTS = Counter(
    "lb_standings_attempts_total",
    "Standings fetch attempts by outcome",
    ["outcome"],
)

# ── Histograms ──────────────────────────────────────────────────────────
FEED_LATENCY = Histogram(
    "lb_feed_latency_seconds",
    "Upstream feed request latency in seconds",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── Gauges ──────────────────────────────────────────────────────────────
CHANNEL_CONNECTED = Gauge(
    "lb_channel_connected",
    "1 while the push channel is connected, else 0",
)
TRACKED_MATCHES = Gauge(
    "lb_tracked_matches",
    "Matches in the latest board array",
)


def start_metrics_server(port: int | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = get_settings()
    if not settings.metrics_enabled:
        return
    metrics_port = port or settings.metrics_port
    try:
        start_http_server(metrics_port)
        logger.info("metrics_server_started", port=metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=metrics_port)
