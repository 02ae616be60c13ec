"""Action executor: one handler per ActionKind (closed variant set).

Each stored action is re-validated with the pydantic config model of its
kind, turned into a frozen handler and awaited. Handlers raise
ActionFailure subclasses; anything else escaping a handler is wrapped in
ActionError so the engine always sees a located failure.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from pydantic import ValidationError

from app.application.services.template_interpolator import interpolate
from app.domain.enums import ActionKind
from app.domain.exceptions import (
    ActionError,
    ActionFailure,
    MissingFieldError,
    WebhookError,
)
from app.schemas.workflow import (
    ACTION_CONFIG_MODELS,
    CallWebhookConfig,
    CreateTaskConfig,
    SendMessageConfig,
    UpdateFieldConfig,
    WaitConfig,
)
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from app.application.interfaces.repositories import ITaskRepository
    from app.application.interfaces.services import (
        IEntityFieldUpdater,
        IMessageService,
        Sleeper,
    )
    from app.core.config import Settings
    from app.domain.entities.workflow import WorkflowAction

logger = get_logger(__name__)

DEFAULT_WEBHOOK_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class ActionContext:
    """What a handler may read: the trigger snapshot and where it runs."""

    trigger_data: Mapping[str, Any]
    organization_id: str
    step_index: int


class ActionHandler(Protocol):
    async def execute(self, context: ActionContext) -> None: ...


@dataclass(frozen=True)
class SendMessageHandler:
    config: SendMessageConfig
    message_service: IMessageService
    from_address: str
    default_subject: str

    def _recipients(self, data: Mapping[str, Any]) -> list[str]:
        to = self.config.to
        if to is None:
            return []
        if isinstance(to, str):
            return [interpolate(to, data)]
        return [interpolate(address, data) for address in to]

    async def execute(self, context: ActionContext) -> None:
        data = context.trigger_data
        subject = interpolate(self.config.subject, data) or self.default_subject
        try:
            await self.message_service.send_message(
                organization_id=context.organization_id,
                from_address=self.from_address,
                to=self._recipients(data),
                subject=subject,
                body=interpolate(self.config.body, data),
            )
        except ActionFailure:
            raise
        except Exception as e:
            raise ActionError(
                f"Message delivery failed: {e}",
                step_index=context.step_index,
                organization_id=context.organization_id,
                action_kind=ActionKind.SEND_MESSAGE.value,
            ) from e
        logger.info("Message sent via workflow (organization_id=%s)", context.organization_id)


@dataclass(frozen=True)
class CreateTaskHandler:
    config: CreateTaskConfig
    task_repo: ITaskRepository

    async def execute(self, context: ActionContext) -> None:
        data = context.trigger_data
        due_date = utc_now() + timedelta(days=self.config.due_date_offset_days or 0)
        try:
            task = await self.task_repo.create(
                context.organization_id,
                interpolate(self.config.title, data),
                description=interpolate(self.config.description, data),
                assigned_to=self.config.assign_to,
                due_date=due_date,
                status="pending",
            )
        except ActionFailure:
            raise
        except Exception as e:
            raise ActionError(
                f"Task creation failed: {e}",
                step_index=context.step_index,
                organization_id=context.organization_id,
                action_kind=ActionKind.CREATE_TASK.value,
            ) from e
        logger.info("Task created via workflow: %s", task.id)


@dataclass(frozen=True)
class UpdateFieldHandler:
    config: UpdateFieldConfig
    field_updater: IEntityFieldUpdater

    async def execute(self, context: ActionContext) -> None:
        data = context.trigger_data
        entity_type = data.get("entity_type")
        entity_id = data.get("entity_id")
        field_name = self.config.field_name
        missing = [
            name
            for name, value in (
                ("entity_type", entity_type),
                ("entity_id", entity_id),
                ("field_name", field_name),
            )
            if not value
        ]
        if missing:
            raise MissingFieldError(
                missing,
                step_index=context.step_index,
                organization_id=context.organization_id,
            )
        try:
            await self.field_updater.update_field(
                str(entity_type),
                str(entity_id),
                context.organization_id,
                str(field_name),
                interpolate(self.config.field_value, data),
            )
        except ActionFailure:
            raise
        except Exception as e:
            raise ActionError(
                f"Field update failed: {e}",
                step_index=context.step_index,
                organization_id=context.organization_id,
                action_kind=ActionKind.UPDATE_FIELD.value,
            ) from e
        logger.info("Field %s updated via workflow", field_name)


@dataclass(frozen=True)
class CallWebhookHandler:
    config: CallWebhookConfig
    http_client: httpx.AsyncClient

    def _content(self, data: Mapping[str, Any]) -> str | None:
        body = interpolate(self.config.body_template, data)
        if body is None:
            return None
        if isinstance(body, str):
            return body
        return json.dumps(body)

    async def execute(self, context: ActionContext) -> None:
        url = self.config.url
        try:
            response = await self.http_client.request(
                self.config.method,
                url,
                headers=self.config.headers or DEFAULT_WEBHOOK_HEADERS,
                content=self._content(context.trigger_data),
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            raise ActionError(
                f"Webhook request failed: {e}",
                step_index=context.step_index,
                organization_id=context.organization_id,
                action_kind=ActionKind.CALL_WEBHOOK.value,
            ) from e
        if not response.is_success:
            raise WebhookError(
                response.status_code,
                url,
                step_index=context.step_index,
                organization_id=context.organization_id,
            )
        logger.info("Webhook executed successfully (status=%s)", response.status_code)


@dataclass(frozen=True)
class WaitHandler:
    config: WaitConfig
    sleep: Sleeper

    async def execute(self, context: ActionContext) -> None:
        await self.sleep(self.config.wait_minutes * 60)


class ActionExecutor:
    """Builds and runs the handler for one stored action."""

    def __init__(
        self,
        message_service: IMessageService,
        task_repo: ITaskRepository,
        field_updater: IEntityFieldUpdater,
        http_client: httpx.AsyncClient,
        settings: Settings,
        *,
        sleep: Sleeper | None = None,
    ) -> None:
        self._message_service = message_service
        self._task_repo = task_repo
        self._field_updater = field_updater
        self._http_client = http_client
        self._settings = settings
        self._sleep = sleep or asyncio.sleep

    def build_handler(self, kind: ActionKind, config: Any) -> ActionHandler:
        """Return the handler for kind bound to its validated config."""
        match kind:
            case ActionKind.SEND_MESSAGE:
                return SendMessageHandler(
                    config,
                    self._message_service,
                    self._settings.message_from_address,
                    self._settings.default_message_subject,
                )
            case ActionKind.CREATE_TASK:
                return CreateTaskHandler(config, self._task_repo)
            case ActionKind.UPDATE_FIELD:
                return UpdateFieldHandler(config, self._field_updater)
            case ActionKind.CALL_WEBHOOK:
                return CallWebhookHandler(config, self._http_client)
            case ActionKind.WAIT:
                return WaitHandler(config, self._sleep)
        raise ValueError(f"No handler for action kind: {kind}")

    async def execute(
        self,
        action: WorkflowAction,
        trigger_data: Mapping[str, Any],
        organization_id: str,
        step_index: int,
    ) -> None:
        """Run one action. Unknown kinds are logged and treated as success.

        Raises:
            ActionFailure: MissingFieldError, WebhookError or ActionError,
                located at step_index within organization_id.
        """
        try:
            kind = ActionKind(action.kind)
        except ValueError:
            logger.warning(
                "Unknown action type: %s (step_index=%s, organization_id=%s)",
                action.kind,
                step_index,
                organization_id,
            )
            return

        try:
            config = ACTION_CONFIG_MODELS[kind].model_validate(dict(action.config))
        except ValidationError as e:
            raise ActionError(
                f"Invalid {kind.value} config: {e.error_count()} error(s)",
                step_index=step_index,
                organization_id=organization_id,
                action_kind=kind.value,
            ) from e

        handler = self.build_handler(kind, config)
        context = ActionContext(trigger_data, organization_id, step_index)
        try:
            await handler.execute(context)
        except ActionFailure as e:
            raise e.locate(step_index, organization_id)
        except Exception as e:
            raise ActionError(
                str(e) or e.__class__.__name__,
                step_index=step_index,
                organization_id=organization_id,
                action_kind=kind.value,
            ) from e
