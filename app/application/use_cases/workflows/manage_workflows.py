"""Workflow authoring and history: create, list per organization, list executions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from app.core.constants import CHANNEL_WORKFLOW_CREATED
from app.domain.exceptions import ValidationException
from app.schemas.workflow import (
    WorkflowCreateRequest,
    WorkflowExecutionResponse,
    WorkflowResponse,
)
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from app.application.interfaces.repositories import (
        IWorkflowExecutionRepository,
        IWorkflowRepository,
    )
    from app.application.interfaces.services import IEventBus
    from app.domain.entities.workflow import WorkflowEntity

logger = get_logger(__name__)


def workflow_to_response(workflow: WorkflowEntity) -> WorkflowResponse:
    """Map the domain snapshot to its listing shape (stored JSON for conditions/actions)."""
    return WorkflowResponse(
        id=workflow.id,
        organization_id=workflow.organization_id,
        name=workflow.name,
        description=workflow.description,
        trigger_type=workflow.trigger_type,
        trigger_config=dict(workflow.trigger_config),
        conditions=[asdict(c) for c in workflow.conditions],
        actions=[asdict(a) for a in workflow.actions],
        is_active=workflow.is_active,
        execution_count=workflow.execution_count,
        last_executed_at=workflow.last_executed_at,
        created_by=workflow.created_by,
        created_at=workflow.created_at,
    )


def _first_error_field(error: ValidationError) -> str | None:
    errors = error.errors()
    if not errors:
        return None
    return ".".join(str(part) for part in errors[0]["loc"]) or None


class WorkflowService:
    """Authoring side of workflows; the engine only ever reads what this writes."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        execution_repo: IWorkflowExecutionRepository,
        *,
        event_bus: IEventBus | None = None,
        history_limit: int = 50,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._execution_repo = execution_repo
        self._event_bus = event_bus
        self._history_limit = history_limit

    async def create_workflow(
        self,
        organization_id: str,
        data: WorkflowCreateRequest | Mapping[str, Any],
    ) -> WorkflowEntity:
        """Validate and persist a workflow, then announce it on workflow.created.

        Raises:
            ValidationException: Definition does not match the workflow schema.
        """
        if not isinstance(data, WorkflowCreateRequest):
            try:
                data = WorkflowCreateRequest.model_validate(dict(data))
            except ValidationError as e:
                raise ValidationException(
                    f"Invalid workflow definition: {e.error_count()} error(s)",
                    field=_first_error_field(e),
                ) from e

        workflow = await self._workflow_repo.create_workflow(
            organization_id,
            data.name,
            data.trigger_type,
            data.conditions_json(),
            data.actions_json(),
            description=data.description,
            trigger_config=data.trigger_config,
            is_active=data.is_active,
            created_by=data.created_by,
        )
        logger.info(
            "Workflow created: %s (organization_id=%s, trigger=%s)",
            workflow.id,
            organization_id,
            workflow.trigger_type.value,
        )
        await self._publish_created(workflow)
        return workflow

    async def _publish_created(self, workflow: WorkflowEntity) -> None:
        if self._event_bus is None:
            return
        published = await self._event_bus.publish(
            CHANNEL_WORKFLOW_CREATED,
            {
                "workflow_id": workflow.id,
                "organization_id": workflow.organization_id,
                "trigger_type": workflow.trigger_type.value,
                "timestamp": utc_now().isoformat(),
            },
        )
        if not published:
            logger.warning(
                "workflow.created not published for %s (event bus unavailable)",
                workflow.id,
            )

    async def list_workflows(self, organization_id: str) -> list[WorkflowResponse]:
        """All workflows of the organization, newest first."""
        workflows = await self._workflow_repo.list_by_organization(organization_id)
        return [workflow_to_response(w) for w in workflows]

    async def get_workflow_executions(
        self, workflow_id: str, limit: int | None = None
    ) -> list[WorkflowExecutionResponse]:
        """Execution history of a workflow, most recent first."""
        executions = await self._execution_repo.list_by_workflow(
            workflow_id, limit=limit or self._history_limit
        )
        return [WorkflowExecutionResponse.model_validate(e) for e in executions]
