"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure.
"""

from app.application.interfaces.repositories import (
    ITaskRepository,
    IWorkflowExecutionRepository,
    IWorkflowRepository,
)
from app.application.interfaces.services import (
    EventHandler,
    IEntityFieldUpdater,
    IEventBus,
    IMessageService,
    IWorkflowEngine,
    Sleeper,
)

__all__ = [
    "EventHandler",
    "IEntityFieldUpdater",
    "IEventBus",
    "IMessageService",
    "ITaskRepository",
    "IWorkflowEngine",
    "IWorkflowExecutionRepository",
    "IWorkflowRepository",
    "Sleeper",
]
