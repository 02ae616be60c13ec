"""Worker lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (telemetry, SQL
session factory, HTTP client, Redis cache and event bus) into the
engine, dispatcher and workflow service.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from app.application.services.action_executor import ActionExecutor
from app.application.use_cases.workflows import (
    TriggerDispatcher,
    WorkflowEngine,
    WorkflowService,
)
from app.core.config import Settings, get_settings
from app.infrastructure.cache.redis_cache import CacheService
from app.infrastructure.messaging.redis_pubsub import RedisEventBus
from app.infrastructure.persistence.database import (
    dispose_engine,
    get_engine,
    get_session_factory,
)
from app.infrastructure.persistence.repositories import (
    EntityFieldUpdater,
    TaskRepository,
    WorkflowExecutionRepository,
    WorkflowRepository,
)
from app.infrastructure.services.message_service import LogOnlyMessageService
from app.shared.telemetry.telemetry import (
    TelemetryConfig,
    build_exporter,
    get_telemetry,
    set_telemetry,
)

logger = logging.getLogger(__name__)


@dataclass
class AutomationRuntime:
    """Everything a running worker exposes to its host process."""

    settings: Settings
    engine: WorkflowEngine
    dispatcher: TriggerDispatcher
    workflow_service: WorkflowService
    event_bus: RedisEventBus
    http_client: httpx.AsyncClient
    cache: CacheService | None = None


def _setup_telemetry(settings: Settings) -> TelemetryConfig | None:
    if not settings.telemetry_enabled:
        return None
    telemetry = TelemetryConfig.from_settings(settings)
    try:
        telemetry.setup(
            build_exporter(
                settings.telemetry_exporter,
                settings.telemetry_otlp_endpoint,
                settings.telemetry_jaeger_endpoint,
            )
        )
    except Exception:
        logger.exception("Failed to initialize telemetry, continuing without tracing")
        return None
    set_telemetry(telemetry)
    return telemetry


@asynccontextmanager
async def automation_lifespan(
    settings: Settings | None = None,
) -> AsyncIterator[AutomationRuntime]:
    """Build the runtime, start listening for domain events, yield; on exit shut down.

    Startup order: telemetry (if enabled), SQL session factory, shared HTTP
    client, Redis cache (if enabled), event bus, dispatcher registration,
    event listener. Shutdown order: stop listening, drain in-flight runs,
    event bus disconnect, HTTP client close, cache disconnect, telemetry
    shutdown, SQL engine dispose.

    Raises:
        SqlNotConfiguredException: DATABASE_URL is not set.
    """
    settings = settings or get_settings()

    # ---- Startup ----
    telemetry = _setup_telemetry(settings)
    session_factory = get_session_factory()
    if telemetry is not None:
        telemetry.instrument(get_engine())

    # Shared client for call_webhook actions (connection reuse, one timeout).
    http_client = httpx.AsyncClient(timeout=settings.webhook_timeout_seconds)

    cache: CacheService | None = None
    if settings.redis_enabled:
        cache = CacheService(settings)
        await cache.connect()
    event_bus = RedisEventBus(settings)
    await event_bus.connect()

    workflow_repo = WorkflowRepository(
        session_factory, cache, cache_ttl=settings.cache_ttl_workflows
    )
    execution_repo = WorkflowExecutionRepository(session_factory)
    action_executor = ActionExecutor(
        LogOnlyMessageService(),
        TaskRepository(session_factory),
        EntityFieldUpdater(session_factory, settings.updatable_entity_type_set),
        http_client,
        settings,
    )
    engine = WorkflowEngine(workflow_repo, execution_repo, action_executor)
    dispatcher = TriggerDispatcher(workflow_repo, engine)
    dispatcher.register(event_bus)
    workflow_service = WorkflowService(
        workflow_repo,
        execution_repo,
        event_bus=event_bus,
        history_limit=settings.execution_history_limit,
    )
    await event_bus.start()
    logger.info("Automation worker started (%s %s)", settings.app_name, settings.app_version)

    try:
        yield AutomationRuntime(
            settings=settings,
            engine=engine,
            dispatcher=dispatcher,
            workflow_service=workflow_service,
            event_bus=event_bus,
            http_client=http_client,
            cache=cache,
        )
    finally:
        # ---- Shutdown ----
        await event_bus.stop()
        if dispatcher.in_flight:
            logger.info("Waiting for %d in-flight workflow run(s)", dispatcher.in_flight)
        await dispatcher.drain()
        await event_bus.disconnect()

        await http_client.aclose()
        logger.info("Webhook HTTP client closed")

        if cache is not None:
            await cache.disconnect()
            logger.info("Cache disconnected")

        telemetry_instance = get_telemetry()
        if telemetry_instance is not None:
            telemetry_instance.shutdown()
            set_telemetry(None)

        await dispose_engine()
