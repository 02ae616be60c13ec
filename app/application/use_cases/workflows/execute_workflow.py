"""Workflow engine: run one workflow against one trigger document (IWorkflowEngine)."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from app.application.dtos.workflow import WorkflowExecutionResult
from app.application.services.condition_evaluator import evaluate_conditions
from app.application.services.execution_tracker import ExecutionTracker
from app.domain.exceptions import ActionError, ActionFailure, NotFoundError
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import (
    TracedOperation,
    add_span_attributes,
    add_span_event,
    traced,
)
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_cuid

if TYPE_CHECKING:
    from app.application.interfaces.repositories import (
        IWorkflowExecutionRepository,
        IWorkflowRepository,
    )
    from app.application.interfaces.services import Sleeper
    from app.application.services.action_executor import ActionExecutor
    from app.domain.entities.workflow import WorkflowAction

logger = get_logger(__name__)


def _located_failure(
    error: Exception, action: WorkflowAction, step_index: int, organization_id: str
) -> ActionFailure:
    if isinstance(error, ActionFailure):
        return error.locate(step_index, organization_id)
    return ActionError(
        str(error) or error.__class__.__name__,
        step_index=step_index,
        organization_id=organization_id,
        action_kind=action.kind,
    )


class WorkflowEngine:
    """Evaluates conditions, then runs actions in order with fail-fast semantics.

    A run whose conditions fail returns a transient skipped result and
    writes nothing. A run whose conditions pass owns one execution row
    (through ExecutionTracker) that records every successful step, and
    bumps the workflow's execution counter only when all actions succeed.
    """

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        execution_repo: IWorkflowExecutionRepository,
        action_executor: ActionExecutor,
        *,
        sleep: Sleeper | None = None,
    ) -> None:
        self.workflow_repo = workflow_repo
        self.execution_repo = execution_repo
        self.action_executor = action_executor
        self._sleep = sleep or asyncio.sleep

    @traced("workflow.execute")
    async def execute_workflow(
        self, workflow_id: str, trigger_data: Mapping[str, Any]
    ) -> WorkflowExecutionResult:
        """Run the workflow against trigger_data and return the final execution state.

        Raises:
            NotFoundError: Workflow is missing or inactive.
            ActionFailure: An action failed; the execution is already marked failed.
        """
        workflow = await self.workflow_repo.get_active_by_id(workflow_id)
        if workflow is None:
            raise NotFoundError("workflow", workflow_id)
        add_span_attributes(
            workflow_id=workflow.id,
            organization_id=workflow.organization_id,
            trigger_type=workflow.trigger_type.value,
        )

        data = dict(trigger_data)
        if not evaluate_conditions(workflow.conditions, data):
            add_span_event("workflow.skipped", conditions=len(workflow.conditions))
            logger.info(
                "Workflow %s skipped: conditions not met (organization_id=%s)",
                workflow.id,
                workflow.organization_id,
            )
            return WorkflowExecutionResult.skipped(
                generate_cuid(),
                workflow.id,
                workflow.organization_id,
                data,
                utc_now(),
            )

        tracker = await ExecutionTracker.start(self.execution_repo, workflow, data)
        add_span_attributes(execution_id=tracker.execution_id)

        for index, action in enumerate(workflow.actions):
            try:
                if action.delay_seconds:
                    await self._sleep(action.delay_seconds)
                async with TracedOperation(
                    "workflow.action", {"kind": action.kind, "step_index": index}
                ):
                    await self.action_executor.execute(
                        action, data, workflow.organization_id, index
                    )
                await tracker.advance(index + 1)
            except Exception as e:
                failure = _located_failure(e, action, index, workflow.organization_id)
                await tracker.fail(failure.message)
                logger.warning(
                    "Workflow %s execution %s failed at step %s: %s",
                    workflow.id,
                    tracker.execution_id,
                    index,
                    failure.message,
                )
                if failure is e:
                    raise
                raise failure from e

        try:
            await tracker.complete()
        except Exception as e:
            await tracker.fail(f"Failed to record completion: {e}")
            raise
        await self.workflow_repo.increment_execution_count(workflow.id, utc_now())
        logger.info(
            "Workflow %s execution %s completed (%s actions)",
            workflow.id,
            tracker.execution_id,
            workflow.step_count,
        )
        return tracker.snapshot()
