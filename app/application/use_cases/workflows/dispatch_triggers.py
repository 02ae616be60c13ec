"""Trigger dispatcher: fan domain events out to matching workflows.

Each matched workflow runs in its own asyncio task, so one slow or
failing workflow never holds up its siblings or the event bus listener.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from app.core.constants import (
    CHANNEL_ENTITY_CREATED,
    CHANNEL_ENTITY_STAGE_CHANGED,
    CHANNEL_ENTITY_UPDATED,
)
from app.domain.enums import TriggerType
from app.domain.exceptions import ActionFailure, NotFoundError
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.application.interfaces.repositories import IWorkflowRepository
    from app.application.interfaces.services import (
        EventHandler,
        IEventBus,
        IWorkflowEngine,
    )

logger = get_logger(__name__)

CHANNEL_TRIGGERS: dict[str, TriggerType] = {
    CHANNEL_ENTITY_CREATED: TriggerType.ENTITY_CREATED,
    CHANNEL_ENTITY_STAGE_CHANGED: TriggerType.ENTITY_STAGE_CHANGED,
    CHANNEL_ENTITY_UPDATED: TriggerType.ENTITY_UPDATED,
}


class TriggerDispatcher:
    """Maps event channels to trigger types and starts one run per matching workflow."""

    def __init__(
        self, workflow_repo: IWorkflowRepository, engine: IWorkflowEngine
    ) -> None:
        self.workflow_repo = workflow_repo
        self.engine = engine
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        """Number of workflow runs started and not yet finished."""
        return len(self._tasks)

    def register(self, bus: IEventBus) -> None:
        """Subscribe one handler per recognized domain event channel."""
        for channel, trigger_type in CHANNEL_TRIGGERS.items():
            bus.subscribe(channel, self._handler_for(trigger_type))
            logger.debug("Dispatcher subscribed %s -> %s", channel, trigger_type.value)

    def _handler_for(self, trigger_type: TriggerType) -> EventHandler:
        async def _handle(payload: dict[str, Any]) -> None:
            await self.handle_event(trigger_type, payload)

        return _handle

    async def handle_event(
        self, trigger_type: TriggerType, payload: Mapping[str, Any]
    ) -> list[asyncio.Task[None]]:
        """Start a run for every active workflow of the payload's organization.

        Returns the started tasks; payloads without organization_id are dropped.
        """
        if not isinstance(payload, Mapping):
            logger.warning(
                "Dropping %s event: payload is not an object", trigger_type.value
            )
            return []
        organization_id = payload.get("organization_id")
        if not organization_id:
            logger.warning(
                "Dropping %s event without organization_id", trigger_type.value
            )
            return []

        workflows = await self.workflow_repo.get_active_by_trigger(
            str(organization_id), trigger_type
        )
        trigger_data = dict(payload)
        started: list[asyncio.Task[None]] = []
        for workflow in workflows:
            task = asyncio.create_task(
                self._run(workflow.id, trigger_data),
                name=f"workflow-run-{workflow.id}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            started.append(task)
        if started:
            logger.info(
                "Dispatched %s event to %d workflow(s) (organization_id=%s)",
                trigger_type.value,
                len(started),
                organization_id,
            )
        return started

    async def _run(self, workflow_id: str, trigger_data: dict[str, Any]) -> None:
        try:
            await self.engine.execute_workflow(workflow_id, trigger_data)
        except NotFoundError:
            logger.info("Workflow %s deactivated before it could run", workflow_id)
        except ActionFailure as e:
            logger.error(
                "Error executing workflow %s at step %s (%s): %s",
                workflow_id,
                e.step_index,
                e.error_code,
                e.message,
            )
        except Exception:
            logger.exception("Error executing workflow %s", workflow_id)

    async def drain(self) -> None:
        """Wait until every in-flight run has finished (shutdown and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
