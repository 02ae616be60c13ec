"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OrganizationMixin,
    OrganizationModel,
    TimestampMixin,
)
from app.infrastructure.persistence.models.task import Task
from app.infrastructure.persistence.models.workflow import Workflow, WorkflowExecution

__all__ = [
    "CuidMixin",
    "OrganizationMixin",
    "OrganizationModel",
    "Task",
    "TimestampMixin",
    "Workflow",
    "WorkflowExecution",
]
