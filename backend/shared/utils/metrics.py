"""
Lightweight metrics collection for the Match Tracker.
Wraps prometheus_client with async-safe patterns.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
PROVIDER_REQUESTS = Counter(
    "mt_provider_requests_total",
    "Total provider HTTP requests",
    ["provider", "status"],
)
TRACKER_TICKS = Counter(
    "mt_tracker_ticks_total",
    "Live tracker ticks by outcome",
    ["outcome"],
)
GOALS_DETECTED = Counter(
    "mt_goals_detected_total",
    "Scoring events detected by live trackers",
    ["side"],
)
STATUS_CHANGES = Counter(
    "mt_status_changes_total",
    "Fixture status transitions observed by live trackers",
    ["status"],
)
WINDOW_REFRESHES = Counter(
    "mt_window_refreshes_total",
    "Rolling window ingestion runs",
    ["result"],
)
NOTIFICATIONS = Counter(
    "mt_notifications_total",
    "Out-of-band notifications attempted",
    ["kind", "result"],
)

# ── Histograms ──────────────────────────────────────────────────────────
PROVIDER_LATENCY = Histogram(
    "mt_provider_latency_seconds",
    "Provider request latency in seconds",
    ["provider"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
WINDOW_DURATION = Histogram(
    "mt_window_refresh_seconds",
    "Duration of a full rolling window ingestion",
    buckets=(1, 2.5, 5, 10, 30, 60, 120),
)

# ── Gauges ──────────────────────────────────────────────────────────────
ACTIVE_TRACKERS = Gauge(
    "mt_active_trackers",
    "Live trackers currently scheduled",
)
TODAY_FIXTURES = Gauge(
    "mt_today_fixtures",
    "Fixtures found for today by the last window refresh",
)


@asynccontextmanager
async def atrack_latency(histogram: Histogram, **labels: str) -> AsyncIterator[None]:
    """Async context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if labels:
            histogram.labels(**labels).observe(elapsed)
        else:
            histogram.observe(elapsed)


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
