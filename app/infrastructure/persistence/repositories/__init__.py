"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.entity_field_repo import (
    EntityFieldUpdater,
)
from app.infrastructure.persistence.repositories.task_repo import TaskRepository
from app.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowExecutionRepository,
    WorkflowRepository,
)

__all__ = [
    "EntityFieldUpdater",
    "TaskRepository",
    "WorkflowExecutionRepository",
    "WorkflowRepository",
]
