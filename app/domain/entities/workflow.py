"""Workflow domain entity.

A workflow is a stored automation definition: a trigger type, an ordered
list of conditions evaluated against the triggering event, and an ordered
list of actions run one after another. The engine works on a frozen
snapshot read at the start of a run, so edits made while a run is in
flight never affect it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.enums import TriggerType
from app.domain.exceptions import ValidationException


@dataclass(frozen=True)
class Condition:
    """Single comparison against the trigger document.

    operator and logic are kept as stored strings: an operator outside
    ConditionOperator evaluates to False instead of failing the load.
    """

    field: str
    operator: str
    value: Any = None
    logic: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Condition:
        """Build from the stored JSON shape ({field, operator, value, logic?})."""
        return cls(
            field=str(data.get("field") or ""),
            operator=str(data.get("operator") or ""),
            value=data.get("value"),
            logic=data.get("logic") or None,
        )


@dataclass(frozen=True)
class WorkflowAction:
    """One step of a workflow: kind, kind-specific config, optional delay in minutes."""

    kind: str
    config: Mapping[str, Any] = field(default_factory=dict)
    delay_minutes: float | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkflowAction:
        """Build from the stored JSON shape ({kind, config, delay_minutes?})."""
        return cls(
            kind=str(data.get("kind") or ""),
            config=dict(data.get("config") or {}),
            delay_minutes=data.get("delay_minutes"),
        )

    @property
    def delay_seconds(self) -> float:
        """Delay before this action runs, in seconds (0 when unset or non-positive)."""
        if not self.delay_minutes or self.delay_minutes <= 0:
            return 0.0
        return float(self.delay_minutes) * 60


@dataclass(frozen=True)
class WorkflowEntity:
    """Domain entity for a workflow definition (trigger + conditions + actions)."""

    id: str
    organization_id: str
    name: str
    trigger_type: TriggerType
    conditions: tuple[Condition, ...] = ()
    actions: tuple[WorkflowAction, ...] = ()
    is_active: bool = True
    description: str | None = None
    trigger_config: Mapping[str, Any] = field(default_factory=dict)
    execution_count: int = 0
    last_executed_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationException("Workflow ID is required", field="id")
        if not self.organization_id:
            raise ValidationException(
                "Workflow must belong to an organization", field="organization_id"
            )

    def belongs_to_organization(self, organization_id: str) -> bool:
        """Return whether this workflow belongs to the given organization."""
        return self.organization_id == organization_id

    def can_trigger_on(self, trigger_type: TriggerType | str) -> bool:
        """Return whether this workflow is active and matches the trigger type."""
        return self.is_active and self.trigger_type == trigger_type

    @property
    def step_count(self) -> int:
        """Number of actions; the upper bound for an execution's current_step."""
        return len(self.actions)
