"""Workflow and WorkflowExecution repositories. Return domain entities."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.entities.execution import WorkflowExecutionEntity
from app.domain.entities.workflow import Condition, WorkflowAction, WorkflowEntity
from app.domain.enums import TriggerType
from app.infrastructure.cache.cache_protocol import CacheProtocol
from app.infrastructure.cache.keys import workflows_by_org_key
from app.infrastructure.persistence.models.workflow import Workflow, WorkflowExecution
from app.shared.enums import ExecutionStatus
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import ensure_utc

logger = get_logger(__name__)


def _workflow_to_entity(w: Workflow) -> WorkflowEntity:
    """Map Workflow ORM to the frozen domain snapshot."""
    return WorkflowEntity(
        id=w.id,
        organization_id=w.organization_id,
        name=w.name,
        description=w.description,
        trigger_type=TriggerType(w.trigger_type),
        trigger_config=dict(w.trigger_config or {}),
        conditions=tuple(Condition.from_dict(c) for c in w.conditions or []),
        actions=tuple(WorkflowAction.from_dict(a) for a in w.actions or []),
        is_active=w.is_active,
        execution_count=w.execution_count,
        last_executed_at=ensure_utc(w.last_executed_at),
        created_by=w.created_by,
        created_at=ensure_utc(w.created_at),
    )


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_datetime(value: str | None) -> datetime | None:
    return ensure_utc(datetime.fromisoformat(value)) if value else None


def _workflow_to_cache(w: WorkflowEntity) -> dict[str, Any]:
    """JSON-safe form of a workflow for the listing cache."""
    return {
        "id": w.id,
        "organization_id": w.organization_id,
        "name": w.name,
        "description": w.description,
        "trigger_type": w.trigger_type.value,
        "trigger_config": dict(w.trigger_config),
        "conditions": [asdict(c) for c in w.conditions],
        "actions": [asdict(a) for a in w.actions],
        "is_active": w.is_active,
        "execution_count": w.execution_count,
        "last_executed_at": _isoformat(w.last_executed_at),
        "created_by": w.created_by,
        "created_at": _isoformat(w.created_at),
    }


def _workflow_from_cache(d: dict[str, Any]) -> WorkflowEntity:
    return WorkflowEntity(
        id=d["id"],
        organization_id=d["organization_id"],
        name=d["name"],
        description=d.get("description"),
        trigger_type=TriggerType(d["trigger_type"]),
        trigger_config=d.get("trigger_config") or {},
        conditions=tuple(Condition.from_dict(c) for c in d.get("conditions") or []),
        actions=tuple(WorkflowAction.from_dict(a) for a in d.get("actions") or []),
        is_active=d.get("is_active", True),
        execution_count=d.get("execution_count", 0),
        last_executed_at=_parse_datetime(d.get("last_executed_at")),
        created_by=d.get("created_by"),
        created_at=_parse_datetime(d.get("created_at")),
    )


class WorkflowRepository:
    """Workflow repository. Implements IWorkflowRepository.

    Every method opens its own session from the factory. The per-organization
    listing is cached when a cache is given; creating a workflow drops it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache_service: CacheProtocol | None = None,
        *,
        cache_ttl: int = 300,
    ) -> None:
        self._session_factory = session_factory
        self.cache = cache_service
        self.cache_ttl = cache_ttl

    async def get_active_by_id(self, workflow_id: str) -> WorkflowEntity | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Workflow).where(
                    Workflow.id == workflow_id,
                    Workflow.is_active.is_(True),
                )
            )
            row = result.scalar_one_or_none()
            return _workflow_to_entity(row) if row else None

    async def get_active_by_trigger(
        self, organization_id: str, trigger_type: TriggerType
    ) -> list[WorkflowEntity]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Workflow)
                .where(
                    Workflow.organization_id == organization_id,
                    Workflow.trigger_type == TriggerType(trigger_type).value,
                    Workflow.is_active.is_(True),
                )
                .order_by(Workflow.created_at.asc())
            )
            return [_workflow_to_entity(w) for w in result.scalars().all()]

    async def list_by_organization(self, organization_id: str) -> list[WorkflowEntity]:
        """All workflows of the organization (active or not), newest first."""
        key = workflows_by_org_key(organization_id)
        if self.cache and self.cache.is_available():
            cached = await self.cache.get(key)
            if cached is not None:
                return [_workflow_from_cache(d) for d in cached]

        async with self._session_factory() as session:
            result = await session.execute(
                select(Workflow)
                .where(Workflow.organization_id == organization_id)
                .order_by(Workflow.created_at.desc())
            )
            workflows = [_workflow_to_entity(w) for w in result.scalars().all()]

        if self.cache and self.cache.is_available():
            await self.cache.set(
                key, [_workflow_to_cache(w) for w in workflows], ttl=self.cache_ttl
            )
        return workflows

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
        async with self._session_factory.begin() as session:
            row = Workflow(
                organization_id=organization_id,
                name=name,
                description=description,
                trigger_type=TriggerType(trigger_type).value,
                trigger_config=trigger_config or {},
                conditions=conditions,
                actions=actions,
                is_active=is_active,
                created_by=created_by,
            )
            session.add(row)
            await session.flush()
            await session.refresh(row)
            workflow = _workflow_to_entity(row)
        await self._invalidate_listing(organization_id)
        return workflow

    async def increment_execution_count(
        self, workflow_id: str, executed_at: datetime
    ) -> None:
        """Single UPDATE with execution_count + 1, so concurrent completions never lose a count."""
        async with self._session_factory.begin() as session:
            await session.execute(
                update(Workflow)
                .where(Workflow.id == workflow_id)
                .values(
                    execution_count=Workflow.execution_count + 1,
                    last_executed_at=executed_at,
                )
            )

    async def _invalidate_listing(self, organization_id: str) -> None:
        if self.cache and self.cache.is_available():
            await self.cache.delete(workflows_by_org_key(organization_id))


def _execution_to_entity(e: WorkflowExecution) -> WorkflowExecutionEntity:
    """Map WorkflowExecution ORM to the domain entity."""
    return WorkflowExecutionEntity(
        id=e.id,
        workflow_id=e.workflow_id,
        organization_id=e.organization_id,
        total_steps=e.total_steps,
        started_at=ensure_utc(e.started_at),
        trigger_data=dict(e.trigger_data or {}),
        status=ExecutionStatus(e.status),
        current_step=e.current_step,
        error_message=e.error_message,
        completed_at=ensure_utc(e.completed_at),
    )


class WorkflowExecutionRepository:
    """Execution history repository. Implements IWorkflowExecutionRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, execution: WorkflowExecutionEntity) -> None:
        async with self._session_factory.begin() as session:
            session.add(
                WorkflowExecution(
                    id=execution.id,
                    organization_id=execution.organization_id,
                    workflow_id=execution.workflow_id,
                    trigger_data=execution.trigger_data,
                    status=execution.status.value,
                    current_step=execution.current_step,
                    total_steps=execution.total_steps,
                    started_at=execution.started_at,
                )
            )

    async def update(self, execution: WorkflowExecutionEntity) -> None:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                update(WorkflowExecution)
                .where(WorkflowExecution.id == execution.id)
                .values(
                    status=execution.status.value,
                    current_step=execution.current_step,
                    error_message=execution.error_message,
                    completed_at=execution.completed_at,
                )
            )
        if result.rowcount == 0:
            logger.warning("Execution %s not found on update", execution.id)

    async def list_by_workflow(
        self, workflow_id: str, limit: int = 50
    ) -> list[WorkflowExecutionEntity]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(WorkflowExecution)
                .where(WorkflowExecution.workflow_id == workflow_id)
                .order_by(WorkflowExecution.started_at.desc())
                .limit(limit)
            )
            return [_execution_to_entity(e) for e in result.scalars().all()]
