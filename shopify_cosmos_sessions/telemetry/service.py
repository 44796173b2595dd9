"""
Structured logging and tracing for the session storage adapter.

This module provides JSON log formatting for the package's loggers and a
thin wrapper around OpenTelemetry spans. The adapter only depends on the
OpenTelemetry API: spans are recorded when the host application installs
an SDK tracer provider, and are no-ops otherwise.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from opentelemetry import trace

PACKAGE_LOGGER = "shopify_cosmos_sessions"
TRACER_NAME = "shopify_cosmos_sessions"


class JSONFormatter(logging.Formatter):
    """
    Custom log formatter that outputs logs in JSON format.

    Each log entry contains:
    - timestamp: ISO 8601 formatted UTC timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: The log message
    - logger: Name of the logger that produced the entry

    Additional fields can be included via the 'extra_data' attribute
    on the log record.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as a JSON string.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted string containing the log entry
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        # Add module and function information for debugging
        if record.module:
            log_data["module"] = record.module
        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data.update(extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str = "INFO",
    stream: Optional[Any] = None
) -> logging.Logger:
    """
    Attach a JSON handler to the package logger.

    Only the package logger is touched, so the host application's root
    logging configuration is left alone. Calling this again replaces the
    previously installed handler instead of stacking a second one.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream, defaults to stdout

    Returns:
        The configured package logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level)

    for handler in package_logger.handlers[:]:
        if isinstance(handler.formatter, JSONFormatter):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter())
    package_logger.addHandler(handler)

    package_logger.debug("Session storage logging configured", extra={
        "extra_data": {"log_level": logging.getLevelName(log_level)}
    })
    return package_logger


def get_tracer() -> trace.Tracer:
    """Return the package tracer from the globally installed provider."""
    return trace.get_tracer(TRACER_NAME)


def start_span(name: str, attributes: Optional[Dict[str, Any]] = None):
    """
    Start an OpenTelemetry span for a Cosmos DB call.

    Span names are prefixed with "cosmosdb." and carry the standard
    db.system attribute plus any extra attributes given. None values are
    dropped because span attributes must be primitives.

    Args:
        name: Operation name (e.g., "read_item", "initialize")
        attributes: Optional additional span attributes

    Returns:
        Span context manager
    """
    span_attributes: Dict[str, Any] = {"db.system": "cosmosdb"}
    if attributes:
        span_attributes.update(
            {key: value for key, value in attributes.items() if value is not None}
        )
    return get_tracer().start_as_current_span(
        f"cosmosdb.{name}",
        kind=trace.SpanKind.CLIENT,
        attributes=span_attributes
    )
