"""Workflow schemas: versioned condition and per-kind action configs.

Workflow definitions are validated here when they are authored. The
action executor re-validates each stored config with the same models
right before running it, so a row edited out-of-band still fails as an
ActionError instead of a KeyError deep inside a handler. Trigger data is
deliberately not modelled: it comes from heterogeneous domain events.
"""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.domain.enums import ActionKind, ConditionLogic, ConditionOperator, TriggerType
from app.shared.enums import ExecutionStatus

SCHEMA_VERSION = 1


class _VersionedConfig(BaseModel):
    """Base for stored documents; unknown keys are ignored, version is pinned."""

    model_config = ConfigDict(extra="ignore")

    schema_version: Literal[1] = SCHEMA_VERSION


class ConditionSchema(_VersionedConfig):
    """Single condition: dot-path field, operator, comparison value, optional logic."""

    field: str = Field(..., min_length=1, max_length=255)
    operator: ConditionOperator
    value: Any = None
    logic: ConditionLogic | None = None


class SendMessageConfig(_VersionedConfig):
    """send_message: recipients, subject and body may contain {{path}} placeholders."""

    to: str | list[str] | None = None
    subject: str | None = None
    body: str | None = None


class CreateTaskConfig(_VersionedConfig):
    """create_task: follow-up task due now + due_date_offset_days.

    task_title/task_description are accepted for rows written before the
    keys were shortened.
    """

    title: str | None = Field(
        default=None, validation_alias=AliasChoices("title", "task_title")
    )
    description: str | None = Field(
        default=None, validation_alias=AliasChoices("description", "task_description")
    )
    assign_to: str | None = None
    due_date_offset_days: int | None = 0


class UpdateFieldConfig(_VersionedConfig):
    """update_field: entity type/id come from the trigger, field from here.

    field_name stays optional so a missing name surfaces as MissingFieldError
    at run time, alongside missing entity ids.
    """

    field_name: str | None = None
    field_value: Any = None


class CallWebhookConfig(_VersionedConfig):
    """call_webhook: HTTP call with an interpolated body template."""

    url: str = Field(..., min_length=1)
    method: str = "POST"
    headers: dict[str, str] | None = None
    body_template: Any = None

    @field_validator("url")
    @classmethod
    def _http_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v

    @field_validator("method")
    @classmethod
    def _upper_method(cls, v: str) -> str:
        return v.upper()


class WaitConfig(_VersionedConfig):
    """wait: suspend the current run only."""

    wait_minutes: float = Field(default=0, ge=0)


ACTION_CONFIG_MODELS: dict[ActionKind, type[_VersionedConfig]] = {
    ActionKind.SEND_MESSAGE: SendMessageConfig,
    ActionKind.CREATE_TASK: CreateTaskConfig,
    ActionKind.UPDATE_FIELD: UpdateFieldConfig,
    ActionKind.CALL_WEBHOOK: CallWebhookConfig,
    ActionKind.WAIT: WaitConfig,
}


class _ActionBase(BaseModel):
    delay_minutes: float | None = Field(default=None, ge=0)


class SendMessageAction(_ActionBase):
    kind: Literal["send_message"]
    config: SendMessageConfig


class CreateTaskAction(_ActionBase):
    kind: Literal["create_task"]
    config: CreateTaskConfig


class UpdateFieldAction(_ActionBase):
    kind: Literal["update_field"]
    config: UpdateFieldConfig


class CallWebhookAction(_ActionBase):
    kind: Literal["call_webhook"]
    config: CallWebhookConfig


class WaitAction(_ActionBase):
    kind: Literal["wait"]
    config: WaitConfig = Field(default_factory=WaitConfig)


WorkflowActionSchema = Annotated[
    SendMessageAction | CreateTaskAction | UpdateFieldAction | CallWebhookAction | WaitAction,
    Field(discriminator="kind"),
]


class WorkflowCreateRequest(BaseModel):
    """Request body for creating a workflow."""

    name: str = Field(..., min_length=1, max_length=255)
    trigger_type: TriggerType
    actions: list[WorkflowActionSchema] = Field(..., min_length=1)
    description: str | None = None
    trigger_config: dict[str, Any] = Field(default_factory=dict)
    conditions: list[ConditionSchema] = Field(default_factory=list)
    is_active: bool = True
    created_by: str | None = None

    def conditions_json(self) -> list[dict[str, Any]]:
        """Conditions in the stored JSON shape (enum values, no None logic)."""
        return [c.model_dump(mode="json", exclude_none=True) for c in self.conditions]

    def actions_json(self) -> list[dict[str, Any]]:
        """Actions in the stored JSON shape ({kind, config, delay_minutes?})."""
        return [a.model_dump(mode="json", exclude_none=True) for a in self.actions]


class WorkflowResponse(BaseModel):
    """Workflow as returned by listings (and cached per organization)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str
    name: str
    description: str | None
    trigger_type: TriggerType
    trigger_config: dict[str, Any]
    conditions: list[dict[str, Any]]
    actions: list[dict[str, Any]]
    is_active: bool
    execution_count: int
    last_executed_at: datetime | None
    created_by: str | None
    created_at: datetime | None


class WorkflowExecutionResponse(BaseModel):
    """Workflow execution history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    organization_id: str
    status: ExecutionStatus
    current_step: int
    error_message: str | None
    started_at: datetime
    completed_at: datetime | None
