"""DTOs for workflow-created tasks (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TaskResult:
    """Follow-up task created by the create_task action."""

    id: str
    organization_id: str
    title: str | None
    description: str | None
    assigned_to: str | None
    due_date: datetime
    status: str
    created_at: datetime | None = None
