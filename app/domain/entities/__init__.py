"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from app.domain.entities.execution import WorkflowExecutionEntity
from app.domain.entities.workflow import Condition, WorkflowAction, WorkflowEntity

__all__ = [
    "Condition",
    "WorkflowAction",
    "WorkflowEntity",
    "WorkflowExecutionEntity",
]
