"""Shared enumerations for the automation engine.

Cross-cutting enums used by application and infrastructure (execution
lifecycle, persistence check constraints). Workflow definition enums
(trigger types, operators, action kinds) live in app.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class ExecutionStatus(_ValuesMixin, str, Enum):
    """Workflow execution lifecycle status.

    PAUSED is part of the stored vocabulary but no current action kind
    produces it.
    """

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"

    @property
    def is_terminal(self) -> bool:
        """Return True for statuses after which an execution is frozen."""
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)
