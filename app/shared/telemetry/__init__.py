"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from app.shared.telemetry.logging import get_logger, setup_logging
from app.shared.telemetry.telemetry import (
    TelemetryConfig,
    build_exporter,
    get_telemetry,
    set_telemetry,
)
from app.shared.telemetry.tracing import (
    TracedOperation,
    add_span_attributes,
    add_span_event,
    traced,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "TelemetryConfig",
    "build_exporter",
    "get_telemetry",
    "set_telemetry",
    "traced",
    "add_span_attributes",
    "add_span_event",
    "TracedOperation",
]
