"""
Structured Logging Configuration
================================

structlog setup for the query pipeline.

Every event carries the service name and deployment environment, plus any
context bound for the current request (``session_id``). Long string values,
typically SQL statements and raw LLM replies, are clipped so that a single
event stays readable.
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

SERVICE_NAME = "nlq-pipeline"

# Default ceiling for any single string value in an event
DEFAULT_MAX_FIELD_LENGTH = 2000

# Provider and exporter SDKs that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "opentelemetry")


def add_service_info(service: str, environment: str) -> Processor:
    """Processor stamping ``service`` and ``environment`` onto every event."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        event_dict.setdefault("environment", environment)
        return event_dict

    return processor


def clip_long_values(max_length: int) -> Processor:
    """Processor clipping string values longer than ``max_length``."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in event_dict.items():
            if key != "event" and isinstance(value, str) and len(value) > max_length:
                event_dict[key] = f"{value[:max_length]}...(+{len(value) - max_length} chars)"
        return event_dict

    return processor


def setup_logging(
    level: str | None = None,
    json_format: bool | None = None,
    max_field_length: int | None = None,
) -> None:
    """
    Configure structured logging for the pipeline.

    Args:
        level: Log level (default: from LOG_LEVEL env or INFO)
        json_format: JSON output (default: from LOG_FORMAT env, or True when
            ENVIRONMENT is production)
        max_field_length: Clip string values beyond this many characters
            (default: from LOG_MAX_FIELD_LENGTH env or 2000)
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    environment = os.getenv("ENVIRONMENT", "development")
    if json_format is None:
        json_format = os.getenv("LOG_FORMAT", "").lower() == "json" or environment == "production"
    if max_field_length is None:
        max_field_length = int(os.getenv("LOG_MAX_FIELD_LENGTH", DEFAULT_MAX_FIELD_LENGTH))

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_info(SERVICE_NAME, environment),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        clip_long_values(max_field_length),
    ]

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, log_level))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind key/value pairs to every event logged by the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
