"""
Lightweight metrics collection for the reconciliation pipelines.
Module-level prometheus_client collectors plus the exporter bootstrap.
"""
from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
PIPELINE_RUNS = Counter(
    "hr_pipeline_runs_total",
    "Total pipeline invocations by outcome",
    ["pipeline", "outcome"],
)
ENTITIES_CHECKED = Counter(
    "hr_entities_checked_total",
    "Entities checked without error",
    ["pipeline"],
)
ENTITY_ERRORS = Counter(
    "hr_entity_errors_total",
    "Per-entity check failures isolated during a scan",
    ["pipeline"],
)
PROPOSALS_STAGED = Counter(
    "hr_proposals_staged_total",
    "Update proposals written for review",
    ["pipeline", "field"],
)
EXTERNAL_REQUESTS = Counter(
    "hr_external_requests_total",
    "Outbound HTTP requests to external sources",
    ["source", "status"],
)

# ── Histograms ──────────────────────────────────────────────────────────
RUN_DURATION = Histogram(
    "hr_pipeline_run_seconds",
    "Wall time of a pipeline invocation",
    ["pipeline"],
    buckets=(1, 5, 15, 30, 60, 120, 300, 540),
)
EXTERNAL_LATENCY = Histogram(
    "hr_external_latency_seconds",
    "External request latency in seconds",
    ["source"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
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
