"""Application use cases: one entry point per workflow operation."""

from app.application.use_cases.workflows import (
    TriggerDispatcher,
    WorkflowEngine,
    WorkflowService,
)

__all__ = [
    "TriggerDispatcher",
    "WorkflowEngine",
    "WorkflowService",
]
