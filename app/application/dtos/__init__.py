"""Application DTOs (no ORM dependency)."""

from app.application.dtos.task import TaskResult
from app.application.dtos.workflow import WorkflowExecutionResult

__all__ = [
    "TaskResult",
    "WorkflowExecutionResult",
]
