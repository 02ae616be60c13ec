"""Application layer: interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repos, event bus, message delivery).
"""

from app.application.interfaces import (
    IEntityFieldUpdater,
    IEventBus,
    IMessageService,
    ITaskRepository,
    IWorkflowEngine,
    IWorkflowExecutionRepository,
    IWorkflowRepository,
)
from app.application.services.action_executor import ActionExecutor
from app.application.services.execution_tracker import ExecutionTracker
from app.application.use_cases.workflows import (
    TriggerDispatcher,
    WorkflowEngine,
    WorkflowService,
)

__all__ = [
    "ActionExecutor",
    "ExecutionTracker",
    "IEntityFieldUpdater",
    "IEventBus",
    "IMessageService",
    "ITaskRepository",
    "IWorkflowEngine",
    "IWorkflowExecutionRepository",
    "IWorkflowRepository",
    "TriggerDispatcher",
    "WorkflowEngine",
    "WorkflowService",
]
