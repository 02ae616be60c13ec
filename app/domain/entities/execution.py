"""Workflow execution domain entity.

The persisted record of one run of a workflow against one trigger event.
Lifecycle rules live here so every store (SQL, in-memory) sees the same
transitions: running -> completed | failed, and nothing after that.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.exceptions import ExecutionStateError
from app.shared.enums import ExecutionStatus


@dataclass
class WorkflowExecutionEntity:
    """Execution record with step cursor and terminal-state guard."""

    id: str
    workflow_id: str
    organization_id: str
    total_steps: int
    started_at: datetime
    trigger_data: dict[str, Any] = field(default_factory=dict)
    status: ExecutionStatus = ExecutionStatus.RUNNING
    current_step: int = 0
    error_message: str | None = None
    completed_at: datetime | None = None

    def _ensure_running(self) -> None:
        if self.status.is_terminal:
            raise ExecutionStateError(
                self.id, f"execution is already {self.status.value}"
            )

    def advance_to(self, step: int) -> None:
        """Move the cursor to step (exactly one past the current step)."""
        self._ensure_running()
        if step != self.current_step + 1:
            raise ExecutionStateError(
                self.id,
                f"current_step must advance by one (at {self.current_step}, got {step})",
            )
        if step > self.total_steps:
            raise ExecutionStateError(
                self.id, f"current_step {step} exceeds {self.total_steps} actions"
            )
        self.current_step = step

    def mark_completed(self, at: datetime) -> None:
        """Terminal success."""
        self._ensure_running()
        self.status = ExecutionStatus.COMPLETED
        self.completed_at = at

    def mark_failed(self, error_message: str, at: datetime) -> None:
        """Terminal failure; current_step stays at the last successful action."""
        self._ensure_running()
        self.status = ExecutionStatus.FAILED
        self.error_message = error_message
        self.completed_at = at
