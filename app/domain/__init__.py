"""Domain layer: entities, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import (
    Condition,
    WorkflowAction,
    WorkflowEntity,
    WorkflowExecutionEntity,
)
from app.domain.enums import ActionKind, ConditionLogic, ConditionOperator, TriggerType
from app.domain.exceptions import (
    ActionError,
    ActionFailure,
    AutomationException,
    ExecutionStateError,
    MissingFieldError,
    NotFoundError,
    SqlNotConfiguredException,
    ValidationException,
    WebhookError,
)

__all__ = [
    # Entities
    "Condition",
    "WorkflowAction",
    "WorkflowEntity",
    "WorkflowExecutionEntity",
    # Enums
    "ActionKind",
    "ConditionLogic",
    "ConditionOperator",
    "TriggerType",
    # Exceptions
    "ActionError",
    "ActionFailure",
    "AutomationException",
    "ExecutionStateError",
    "MissingFieldError",
    "NotFoundError",
    "SqlNotConfiguredException",
    "ValidationException",
    "WebhookError",
]
