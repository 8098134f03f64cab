"""
Prometheus Metrics
==================

Pipeline metrics for monitoring and alerting.
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

# Create a custom registry for this application
REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "nlq_pipeline",
    "Query pipeline information",
    registry=REGISTRY,
)

QUERIES_TOTAL = Counter(
    "nlq_queries_total",
    "Total number of queries handled, by outcome",
    ["outcome"],  # executed, confirmation_required, failed, confirmation_mismatch
    registry=REGISTRY,
)

QUERY_DURATION = Histogram(
    "nlq_query_duration_seconds",
    "End-to-end query handling duration in seconds",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

TRANSLATION_FALLBACKS = Counter(
    "nlq_translation_fallbacks_total",
    "Translation phases that degraded to their permissive default",
    ["phase"],  # filter, aggregation
    registry=REGISTRY,
)

TRANSLATION_CONFIDENCE = Histogram(
    "nlq_translation_confidence",
    "Combined translation confidence",
    buckets=[0.25, 0.5, 0.75, 0.9, 0.95, 0.99, 1.0],
    registry=REGISTRY,
)

EXECUTION_ATTEMPTS = Histogram(
    "nlq_execution_attempts",
    "Number of engine attempts per execution",
    buckets=[1, 2, 3, 4, 5],
    registry=REGISTRY,
)

CORRECTIONS_TOTAL = Counter(
    "nlq_corrections_total",
    "Correction requests by result",
    ["result"],  # applied, unavailable
    registry=REGISTRY,
)

RETRY_EXHAUSTED_TOTAL = Counter(
    "nlq_retry_exhausted_total",
    "Executions that failed after every allowed correction",
    registry=REGISTRY,
)

SESSIONS_CREATED = Counter(
    "nlq_sessions_created_total",
    "Sessions created",
    registry=REGISTRY,
)

SESSIONS_EXPIRED = Counter(
    "nlq_sessions_expired_total",
    "Sessions removed by the expiry sweep",
    registry=REGISTRY,
)

ACTIVE_SESSIONS = Gauge(
    "nlq_active_sessions",
    "Number of live sessions in the store",
    registry=REGISTRY,
)


def setup_metrics(version: str, environment: str = "development") -> None:
    """
    Record static application info.

    Args:
        version: Package version
        environment: Deployment environment name
    """
    APP_INFO.info({
        "version": version,
        "environment": environment,
    })


def track_query_metrics(outcome: str, duration_seconds: float) -> None:
    """
    Track metrics for a handled query.

    Args:
        outcome: One of executed, confirmation_required, failed, confirmation_mismatch
        duration_seconds: Total processing time
    """
    QUERIES_TOTAL.labels(outcome=outcome).inc()
    QUERY_DURATION.observe(duration_seconds)


def render_metrics() -> bytes:
    """Prometheus text exposition of the pipeline registry."""
    return generate_latest(REGISTRY)
