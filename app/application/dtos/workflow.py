"""DTOs for workflow runs (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.entities.execution import WorkflowExecutionEntity
from app.shared.enums import ExecutionStatus


@dataclass(frozen=True)
class WorkflowExecutionResult:
    """Snapshot of an execution returned by WorkflowEngine.execute_workflow.

    conditions_met=False marks a skipped run: status is COMPLETED with
    current_step 0, and no execution row exists for this id.
    """

    id: str
    workflow_id: str
    organization_id: str
    status: ExecutionStatus
    current_step: int
    started_at: datetime
    completed_at: datetime | None = None
    error_message: str | None = None
    trigger_data: dict[str, Any] = field(default_factory=dict)
    conditions_met: bool = True

    @classmethod
    def from_entity(cls, execution: WorkflowExecutionEntity) -> WorkflowExecutionResult:
        """Copy the tracker-owned entity into an immutable result."""
        return cls(
            id=execution.id,
            workflow_id=execution.workflow_id,
            organization_id=execution.organization_id,
            status=execution.status,
            current_step=execution.current_step,
            started_at=execution.started_at,
            completed_at=execution.completed_at,
            error_message=execution.error_message,
            trigger_data=dict(execution.trigger_data),
        )

    @classmethod
    def skipped(
        cls,
        execution_id: str,
        workflow_id: str,
        organization_id: str,
        trigger_data: dict[str, Any],
        at: datetime,
    ) -> WorkflowExecutionResult:
        """Transient result for a run whose conditions did not pass."""
        return cls(
            id=execution_id,
            workflow_id=workflow_id,
            organization_id=organization_id,
            status=ExecutionStatus.COMPLETED,
            current_step=0,
            started_at=at,
            completed_at=at,
            trigger_data=dict(trigger_data),
            conditions_met=False,
        )
