"""Execution tracker: owns one execution row for the lifetime of a run.

Every transition is applied to the in-memory entity first (which enforces
the lifecycle rules) and then written through the repository, so the
stored row never shows a state the entity would have refused. A write
that fails rolls the entity back, so it never runs ahead of the row.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from app.application.dtos.workflow import WorkflowExecutionResult
from app.domain.entities.execution import WorkflowExecutionEntity
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_cuid

if TYPE_CHECKING:
    from app.application.interfaces.repositories import IWorkflowExecutionRepository
    from app.domain.entities.workflow import WorkflowEntity

logger = get_logger(__name__)


class ExecutionTracker:
    """Persists status and step progress of a single run."""

    def __init__(
        self,
        repo: IWorkflowExecutionRepository,
        execution: WorkflowExecutionEntity,
    ) -> None:
        self._repo = repo
        self._execution = execution

    @classmethod
    async def start(
        cls,
        repo: IWorkflowExecutionRepository,
        workflow: WorkflowEntity,
        trigger_data: dict[str, Any],
        *,
        execution_id: str | None = None,
    ) -> ExecutionTracker:
        """Insert a running execution with current_step=0 and return its tracker."""
        execution = WorkflowExecutionEntity(
            id=execution_id or generate_cuid(),
            workflow_id=workflow.id,
            organization_id=workflow.organization_id,
            total_steps=workflow.step_count,
            started_at=utc_now(),
            trigger_data=dict(trigger_data),
        )
        await repo.create(execution)
        logger.debug(
            "Execution %s started for workflow %s", execution.id, workflow.id
        )
        return cls(repo, execution)

    @property
    def execution_id(self) -> str:
        return self._execution.id

    async def _apply(self, transition: Callable[[WorkflowExecutionEntity], None]) -> None:
        before = dataclasses.replace(self._execution)
        transition(self._execution)
        try:
            await self._repo.update(self._execution)
        except Exception:
            self._execution = before
            raise

    async def advance(self, step: int) -> None:
        """Record that actions [0, step) have succeeded."""
        await self._apply(lambda e: e.advance_to(step))

    async def fail(self, error_message: str) -> None:
        """Terminal failure; the step cursor stays where the last success left it."""
        at = utc_now()
        await self._apply(lambda e: e.mark_failed(error_message, at))

    async def complete(self) -> None:
        """Terminal success."""
        at = utc_now()
        await self._apply(lambda e: e.mark_completed(at))

    def snapshot(self) -> WorkflowExecutionResult:
        """Immutable copy of the current execution state."""
        return WorkflowExecutionResult.from_entity(self._execution)
