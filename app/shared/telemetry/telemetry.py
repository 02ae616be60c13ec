"""OpenTelemetry setup for the automation worker.

Spans are exported over OTLP (Jaeger is reached through its OTLP gRPC
port) or printed to the console. Instrumentation covers the libraries
the worker talks through: SQLAlchemy for execution bookkeeping, Redis
for the event bus and listing cache, and logging for trace ids in log
lines.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from app.core.config import Settings

logger = logging.getLogger(__name__)

JAEGER_OTLP_PORT = 4317


def build_exporter(
    exporter_type: str, otlp_endpoint: str | None, jaeger_endpoint: str | None
) -> SpanExporter | None:
    """Exporter for exporter_type; falls back to console when its endpoint is missing."""
    if exporter_type == "none":
        return None
    if exporter_type == "otlp" and otlp_endpoint:
        return OTLPSpanExporter(
            endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
        )
    if exporter_type == "jaeger" and jaeger_endpoint:
        return OTLPSpanExporter(
            endpoint=f"{jaeger_endpoint}:{JAEGER_OTLP_PORT}", insecure=True
        )
    if exporter_type != "console":
        logger.warning("Exporter %r has no endpoint configured, using console", exporter_type)
    return ConsoleSpanExporter()


class TelemetryConfig:
    """Owns the worker's tracer provider from startup to shutdown."""

    def __init__(
        self,
        service_name: str,
        service_version: str,
        environment: str = "development",
        sample_rate: float = 1.0,
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.environment = environment
        self.sample_rate = sample_rate
        self.tracer_provider: TracerProvider | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> TelemetryConfig:
        return cls(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.telemetry_environment,
            sample_rate=settings.telemetry_sample_rate,
        )

    def setup(self, exporter: SpanExporter | None) -> TracerProvider:
        """Create the provider, attach exporter (if any) and install it globally."""
        provider = TracerProvider(
            resource=Resource(
                attributes={
                    SERVICE_NAME: self.service_name,
                    SERVICE_VERSION: self.service_version,
                    "deployment.environment": self.environment,
                }
            ),
            sampler=TraceIdRatioBased(self.sample_rate),
        )
        if exporter is not None:
            provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)
        self.tracer_provider = provider
        logger.info(
            "OpenTelemetry initialized: service=%s, version=%s, exporter=%s",
            self.service_name,
            self.service_version,
            type(exporter).__name__ if exporter else "none",
        )
        return provider

    def instrument(self, engine: AsyncEngine | None = None) -> None:
        """Instrument logging, Redis and (when given) the SQL engine.

        A library that fails to instrument is logged and skipped; tracing
        is never a reason for the worker not to start.
        """
        if self.tracer_provider is None:
            return
        provider = self.tracer_provider
        steps = [
            ("logging", lambda: LoggingInstrumentor().instrument(
                tracer_provider=provider, set_logging_format=True
            )),
            ("redis", lambda: RedisInstrumentor().instrument(tracer_provider=provider)),
        ]
        if engine is not None:
            steps.append(("sqlalchemy", lambda: SQLAlchemyInstrumentor().instrument(
                engine=engine.sync_engine, tracer_provider=provider
            )))
        for name, instrument in steps:
            try:
                instrument()
            except Exception:
                logger.exception("Failed to instrument %s", name)
            else:
                logger.debug("%s instrumentation enabled", name)

    def shutdown(self) -> None:
        """Flush remaining spans and shut the provider down."""
        provider, self.tracer_provider = self.tracer_provider, None
        if provider is None:
            return
        try:
            provider.shutdown()
        except Exception:
            logger.exception("Error during telemetry shutdown")
        else:
            logger.info("Telemetry shutdown complete")


_telemetry: TelemetryConfig | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> TelemetryConfig | None:
    """Return the process-wide telemetry instance (set at startup)."""
    with _telemetry_lock:
        return _telemetry


def set_telemetry(telemetry: TelemetryConfig | None) -> None:
    """Set (or clear, with None) the process-wide telemetry instance."""
    global _telemetry
    with _telemetry_lock:
        _telemetry = telemetry
