"""
OpenTelemetry Tracing
=====================

Spans around translation, execution and query handling.
"""

import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from observability.logging_config import get_logger

logger = get_logger(__name__)


def setup_tracing(
    service_name: str = "nlq-pipeline",
    otlp_endpoint: Optional[str] = None,
    version: str = "0.1.0",
) -> TracerProvider:
    """
    Install an SDK tracer provider exporting over OTLP.

    Without this call the OpenTelemetry API hands out no-op tracers, so the
    pipeline can be used with tracing switched off.

    Args:
        service_name: Name of the service for traces
        otlp_endpoint: OTLP collector endpoint (default: from env or localhost:4317)
        version: Service version attached to the resource

    Returns:
        The installed TracerProvider
    """
    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "localhost:4317")

    resource = Resource.create({
        SERVICE_NAME: service_name,
        "service.version": version,
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
    })

    provider = TracerProvider(resource=resource)

    if endpoint and endpoint != "disabled":
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )
        logger.info("OTLP exporter configured", endpoint=endpoint)

    trace.set_tracer_provider(provider)
    return provider


def get_tracer(name: str = __name__) -> trace.Tracer:
    """
    Get a tracer instance for creating spans.

    Args:
        name: Name for the tracer (usually module name)

    Returns:
        Tracer from the globally installed provider
    """
    return trace.get_tracer(name)
