"""Workflow use cases: run a workflow, dispatch domain events, author and list workflows."""

from app.application.use_cases.workflows.dispatch_triggers import (
    CHANNEL_TRIGGERS,
    TriggerDispatcher,
)
from app.application.use_cases.workflows.execute_workflow import WorkflowEngine
from app.application.use_cases.workflows.manage_workflows import (
    WorkflowService,
    workflow_to_response,
)

__all__ = [
    "CHANNEL_TRIGGERS",
    "TriggerDispatcher",
    "WorkflowEngine",
    "WorkflowService",
    "workflow_to_response",
]
