"""
Telemetry module for structured logging and tracing.

This module provides:
- JSONFormatter for structured JSON log output
- configure_logging to attach it to the package logger
- start_span for OpenTelemetry spans around Cosmos DB calls
"""

from shopify_cosmos_sessions.telemetry.service import (
    JSONFormatter,
    configure_logging,
    get_tracer,
    start_span,
)

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "get_tracer",
    "start_span",
]
