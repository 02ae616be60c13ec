"""Domain enumerations for workflow definitions.

Enums represent the closed vocabularies a stored workflow is written in:
what triggers it, how conditions compare, and which actions it runs.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings (e.g. for validation or serialization)."""
        return [member.value for member in cls]


class TriggerType(_ValuesMixin, str, Enum):
    """Domain event kind that makes a workflow eligible to run.

    SCHEDULED and MANUAL workflows are never matched by the event
    dispatcher; they run only when execute_workflow is called directly.
    """

    ENTITY_CREATED = "entity_created"
    ENTITY_STAGE_CHANGED = "entity_stage_changed"
    ENTITY_UPDATED = "entity_updated"
    SCHEDULED = "scheduled"
    MANUAL = "manual"


class ConditionOperator(_ValuesMixin, str, Enum):
    """Comparison applied between a trigger field and a condition value."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IN = "in"
    NOT_IN = "not_in"


class ConditionLogic(_ValuesMixin, str, Enum):
    """Per-condition short-circuit flag. A missing flag behaves like AND."""

    AND = "AND"
    OR = "OR"


class ActionKind(_ValuesMixin, str, Enum):
    """Closed set of action kinds; each has exactly one handler."""

    SEND_MESSAGE = "send_message"
    CREATE_TASK = "create_task"
    UPDATE_FIELD = "update_field"
    CALL_WEBHOOK = "call_webhook"
    WAIT = "wait"
