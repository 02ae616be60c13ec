"""Application services: interpolation, condition evaluation, action execution, run tracking."""

from app.application.services.action_executor import (
    ActionContext,
    ActionExecutor,
    CallWebhookHandler,
    CreateTaskHandler,
    SendMessageHandler,
    UpdateFieldHandler,
    WaitHandler,
)
from app.application.services.condition_evaluator import (
    apply_operator,
    evaluate_conditions,
    loose_equals,
)
from app.application.services.execution_tracker import ExecutionTracker
from app.application.services.template_interpolator import (
    get_nested_value,
    interpolate,
)

__all__ = [
    "ActionContext",
    "ActionExecutor",
    "CallWebhookHandler",
    "CreateTaskHandler",
    "ExecutionTracker",
    "SendMessageHandler",
    "UpdateFieldHandler",
    "WaitHandler",
    "apply_operator",
    "evaluate_conditions",
    "get_nested_value",
    "interpolate",
    "loose_equals",
]
