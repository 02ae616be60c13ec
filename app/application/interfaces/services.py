"""Service interfaces (ports) for the application layer.

Protocols define contracts for collaborators the engine drives (DIP).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.workflow import WorkflowExecutionResult

# Handler invoked with the decoded payload of one domain event.
EventHandler = Callable[[dict[str, Any]], Awaitable[None]]

# Awaitable sleep used for delays and wait actions (asyncio.sleep in production).
Sleeper = Callable[[float], Awaitable[None]]


# Message service interface (send_message action)
class IMessageService(Protocol):
    """Protocol for sending a message (e.g. email) on behalf of an organization."""

    async def send_message(
        self,
        *,
        organization_id: str,
        from_address: str,
        to: list[str],
        subject: str,
        body: str | None,
    ) -> None:
        """Send one message. Raise on delivery failure."""


# Entity field updater interface (update_field action)
class IEntityFieldUpdater(Protocol):
    """Protocol for updating one field of a CRM entity, scoped to an organization."""

    async def update_field(
        self,
        entity_type: str,
        entity_id: str,
        organization_id: str,
        field_name: str,
        field_value: Any,
    ) -> None:
        """Set field_name = field_value on the entity. Raise on failure."""


# Event bus interface (domain event delivery)
class IEventBus(Protocol):
    """Protocol for subscribing to and publishing domain events."""

    def subscribe(self, channel: str, handler: EventHandler) -> None:
        """Register handler for every event delivered on channel."""

    async def publish(self, channel: str, payload: dict[str, Any]) -> bool:
        """Publish payload on channel. Returns False when the bus is unavailable."""


# Workflow engine interface
class IWorkflowEngine(Protocol):
    """Protocol for running one workflow against one trigger document."""

    async def execute_workflow(
        self, workflow_id: str, trigger_data: dict[str, Any]
    ) -> WorkflowExecutionResult:
        """Run the workflow; raise NotFoundError or an ActionFailure subclass on failure."""

