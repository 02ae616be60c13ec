"""Pytest configuration and fixtures for the automation engine.

Unit tests run against in-memory fakes of the repository and service
ports defined in app.application.interfaces. DB-dependent fixtures use
app.infrastructure.persistence.database and skip when DATABASE_URL is
not set. All imports use app.*.
"""

from __future__ import annotations

import dataclasses
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx
import pytest

from app.application.dtos.task import TaskResult
from app.application.services.action_executor import ActionExecutor
from app.application.use_cases.workflows import WorkflowEngine
from app.core.config import Settings
from app.domain.entities.execution import WorkflowExecutionEntity
from app.domain.entities.workflow import Condition, WorkflowAction, WorkflowEntity
from app.domain.enums import TriggerType
from app.infrastructure.persistence import database
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_cuid

ORG_ID = "org-1"


class InMemoryWorkflowRepository:
    """IWorkflowRepository backed by a dict; increments are applied in place."""

    def __init__(self) -> None:
        self.workflows: dict[str, WorkflowEntity] = {}
        self.get_active_by_trigger_calls: list[tuple[str, TriggerType]] = []

    def add(self, workflow: WorkflowEntity) -> WorkflowEntity:
        self.workflows[workflow.id] = workflow
        return workflow

    async def get_active_by_id(self, workflow_id: str) -> WorkflowEntity | None:
        workflow = self.workflows.get(workflow_id)
        return workflow if workflow and workflow.is_active else None

    async def get_active_by_trigger(
        self, organization_id: str, trigger_type: TriggerType
    ) -> list[WorkflowEntity]:
        self.get_active_by_trigger_calls.append((organization_id, trigger_type))
        return [
            w
            for w in self.workflows.values()
            if w.belongs_to_organization(organization_id) and w.can_trigger_on(trigger_type)
        ]

    async def list_by_organization(self, organization_id: str) -> list[WorkflowEntity]:
        # Insertion order stands in for created_at (newest first).
        rows = [w for w in self.workflows.values() if w.organization_id == organization_id]
        return list(reversed(rows))

    async def create_workflow(
        self,
        organization_id: str,
        name: str,
        trigger_type: TriggerType,
        conditions: list[dict[str, Any]],
        actions: list[dict[str, Any]],
        *,
        description: str | None = None,
        trigger_config: dict[str, Any] | None = None,
        is_active: bool = True,
        created_by: str | None = None,
    ) -> WorkflowEntity:
        return self.add(
            WorkflowEntity(
                id=generate_cuid(),
                organization_id=organization_id,
                name=name,
                trigger_type=TriggerType(trigger_type),
                conditions=tuple(Condition.from_dict(c) for c in conditions),
                actions=tuple(WorkflowAction.from_dict(a) for a in actions),
                is_active=is_active,
                description=description,
                trigger_config=trigger_config or {},
                created_by=created_by,
                created_at=utc_now(),
            )
        )

    async def increment_execution_count(
        self, workflow_id: str, executed_at: datetime
    ) -> None:
        current = self.workflows[workflow_id]
        self.workflows[workflow_id] = dataclasses.replace(
            current,
            execution_count=current.execution_count + 1,
            last_executed_at=executed_at,
        )


class InMemoryExecutionRepository:
    """IWorkflowExecutionRepository that keeps a copy per write for inspection."""

    def __init__(self) -> None:
        self.rows: dict[str, WorkflowExecutionEntity] = {}
        self.writes: list[WorkflowExecutionEntity] = []
        # update() raises RuntimeError("db down") for executions this returns True on.
        self.fail_update_when: Callable[[WorkflowExecutionEntity], bool] | None = None

    async def create(self, execution: WorkflowExecutionEntity) -> None:
        snapshot = dataclasses.replace(execution)
        self.rows[execution.id] = snapshot
        self.writes.append(snapshot)

    async def update(self, execution: WorkflowExecutionEntity) -> None:
        if self.fail_update_when is not None and self.fail_update_when(execution):
            raise RuntimeError("db down")
        snapshot = dataclasses.replace(execution)
        self.rows[execution.id] = snapshot
        self.writes.append(snapshot)

    async def list_by_workflow(
        self, workflow_id: str, limit: int = 50
    ) -> list[WorkflowExecutionEntity]:
        rows = [e for e in self.rows.values() if e.workflow_id == workflow_id]
        rows.sort(key=lambda e: e.started_at, reverse=True)
        return rows[:limit]


class RecordingMessageService:
    """IMessageService that records every call; set fail_with to raise instead."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail_with: Exception | None = None

    async def send_message(self, **kwargs: Any) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(kwargs)


class InMemoryTaskRepository:
    """ITaskRepository that stores TaskResult objects in a list."""

    def __init__(self) -> None:
        self.tasks: list[TaskResult] = []
        self.fail_with: Exception | None = None

    async def create(
        self,
        organization_id: str,
        title: str | None,
        *,
        description: str | None = None,
        assigned_to: str | None = None,
        due_date: datetime,
        status: str = "pending",
    ) -> TaskResult:
        if self.fail_with is not None:
            raise self.fail_with
        task = TaskResult(
            id=generate_cuid(),
            organization_id=organization_id,
            title=title,
            description=description,
            assigned_to=assigned_to,
            due_date=due_date,
            status=status,
            created_at=utc_now(),
        )
        self.tasks.append(task)
        return task


class RecordingFieldUpdater:
    """IEntityFieldUpdater that records (entity_type, entity_id, org, field, value)."""

    def __init__(self) -> None:
        self.updates: list[tuple[str, str, str, str, Any]] = []

    async def update_field(
        self,
        entity_type: str,
        entity_id: str,
        organization_id: str,
        field_name: str,
        field_value: Any,
    ) -> None:
        self.updates.append(
            (entity_type, entity_id, organization_id, field_name, field_value)
        )


class FakeEventBus:
    """IEventBus that keeps handlers in memory; emit() delivers like the Redis listener."""

    def __init__(self, available: bool = True) -> None:
        self.handlers: dict[str, list[Callable]] = defaultdict(list)
        self.published: list[tuple[str, dict[str, Any]]] = []
        self.available = available

    def subscribe(self, channel: str, handler: Callable) -> None:
        self.handlers[channel].append(handler)

    async def publish(self, channel: str, payload: dict[str, Any]) -> bool:
        if not self.available:
            return False
        self.published.append((channel, payload))
        return True

    async def emit(self, channel: str, payload: dict[str, Any]) -> None:
        for handler in self.handlers.get(channel, []):
            await handler(payload)


class RecordingSleeper:
    """Sleeper that records requested delays and returns immediately."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, database_url="", redis_enabled=False)


@pytest.fixture
def workflow_repo() -> InMemoryWorkflowRepository:
    return InMemoryWorkflowRepository()


@pytest.fixture
def execution_repo() -> InMemoryExecutionRepository:
    return InMemoryExecutionRepository()


@pytest.fixture
def message_service() -> RecordingMessageService:
    return RecordingMessageService()


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def field_updater() -> RecordingFieldUpdater:
    return RecordingFieldUpdater()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def event_bus() -> FakeEventBus:
    return FakeEventBus()


@pytest.fixture
def webhook_requests() -> list[httpx.Request]:
    """Requests seen by the default mock webhook endpoint (always 200)."""
    return []


@pytest.fixture
async def http_client(webhook_requests: list[httpx.Request]) -> httpx.AsyncClient:
    """httpx client whose transport records requests and answers 200."""

    def handler(request: httpx.Request) -> httpx.Response:
        webhook_requests.append(request)
        return httpx.Response(200, json={"ok": True})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        yield client


@pytest.fixture
def action_executor(
    message_service: RecordingMessageService,
    task_repo: InMemoryTaskRepository,
    field_updater: RecordingFieldUpdater,
    http_client: httpx.AsyncClient,
    settings: Settings,
    sleeper: RecordingSleeper,
) -> ActionExecutor:
    return ActionExecutor(
        message_service,
        task_repo,
        field_updater,
        http_client,
        settings,
        sleep=sleeper,
    )


@pytest.fixture
def engine(
    workflow_repo: InMemoryWorkflowRepository,
    execution_repo: InMemoryExecutionRepository,
    action_executor: ActionExecutor,
    sleeper: RecordingSleeper,
) -> WorkflowEngine:
    return WorkflowEngine(workflow_repo, execution_repo, action_executor, sleep=sleeper)


@pytest.fixture
def make_workflow(
    workflow_repo: InMemoryWorkflowRepository,
) -> Callable[..., WorkflowEntity]:
    """Factory: build a workflow from stored-JSON conditions/actions and register it."""

    def _make(
        actions: list[dict[str, Any]] | None = None,
        conditions: list[dict[str, Any]] | None = None,
        *,
        organization_id: str = ORG_ID,
        trigger_type: TriggerType = TriggerType.ENTITY_CREATED,
        is_active: bool = True,
        name: str = "Test workflow",
    ) -> WorkflowEntity:
        return workflow_repo.add(
            WorkflowEntity(
                id=generate_cuid(),
                organization_id=organization_id,
                name=name,
                trigger_type=trigger_type,
                conditions=tuple(Condition.from_dict(c) for c in conditions or []),
                actions=tuple(WorkflowAction.from_dict(a) for a in actions or []),
                is_active=is_active,
                created_at=utc_now(),
            )
        )

    return _make


@pytest.fixture
async def session_factory():
    """Session factory for repository integration tests.

    Requires DATABASE_URL (postgresql+asyncpg://...) with migrations applied.
    Skips (pytest.skip) when Postgres is not configured. Use
    @pytest.mark.requires_db on tests that need it; run without DB via:
    pytest -m 'not requires_db'.
    """
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        pytest.skip(
            "Postgres not configured: set DATABASE_URL, then run: alembic upgrade head"
        )
    yield database.AsyncSessionLocal
    await database.dispose_engine()
