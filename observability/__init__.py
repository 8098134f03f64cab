"""
Observability Module
====================

Structured logging, metrics and tracing for the query pipeline.
"""

from observability.logging_config import bind_context, clear_context, get_logger, setup_logging
from observability.metrics import render_metrics, setup_metrics, track_query_metrics
from observability.tracing import get_tracer, setup_tracing

__all__ = [
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "setup_metrics",
    "track_query_metrics",
    "render_metrics",
    "setup_tracing",
    "get_tracer",
]
