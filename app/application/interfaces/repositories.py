"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities or application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.task import TaskResult
    from app.domain.entities.execution import WorkflowExecutionEntity
    from app.domain.entities.workflow import WorkflowEntity
    from app.domain.enums import TriggerType


# Workflow repository interface
class IWorkflowRepository(Protocol):
    """Protocol for workflow definitions (read by the engine, written by authoring)."""

    async def get_active_by_id(self, workflow_id: str) -> WorkflowEntity | None:
        """Return the workflow snapshot if it exists and is active, else None."""

    async def get_active_by_trigger(
        self, organization_id: str, trigger_type: TriggerType
    ) -> list[WorkflowEntity]:
        """Return active workflows of the organization listening on trigger_type."""

    async def list_by_organization(self, organization_id: str) -> list[WorkflowEntity]:
        """Return all workflows of the organization, newest first."""

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
        """Persist a new workflow and return its snapshot."""

    async def increment_execution_count(
        self, workflow_id: str, executed_at: datetime
    ) -> None:
        """Atomically add one to execution_count and set last_executed_at."""


# Workflow execution repository interface
class IWorkflowExecutionRepository(Protocol):
    """Protocol for execution history rows (one per run whose conditions passed)."""

    async def create(self, execution: WorkflowExecutionEntity) -> None:
        """Insert a new (running) execution row."""

    async def update(self, execution: WorkflowExecutionEntity) -> None:
        """Write status, current_step, error_message and completed_at."""

    async def list_by_workflow(
        self, workflow_id: str, limit: int = 50
    ) -> list[WorkflowExecutionEntity]:
        """Return executions of a workflow, most recently started first."""


# Task repository interface (workflow create_task action)
class ITaskRepository(Protocol):
    """Protocol for task repository (workflow-created follow-up tasks)."""

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
        """Create a task; return created result."""
