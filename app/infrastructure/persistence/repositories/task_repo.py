"""Task repository for workflow create_task action."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.task import TaskResult
from app.infrastructure.persistence.models.task import Task


def _to_result(t: Task) -> TaskResult:
    """Map Task ORM to TaskResult DTO."""
    return TaskResult(
        id=t.id,
        organization_id=t.organization_id,
        title=t.title,
        description=t.description,
        assigned_to=t.assigned_to,
        due_date=t.due_date,
        status=t.status,
        created_at=t.created_at,
    )


class TaskRepository:
    """Task repository. Implements ITaskRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(
        self,
        organization_id: str,
        title: str | None,
        *,
        description: str | None = None,
        assigned_to: str | None = None,
        due_date: datetime,
        status: str = "pending",
    ) -> TaskResult:
        """Create a task in its own transaction and return the result DTO."""
        async with self._session_factory.begin() as session:
            task = Task(
                organization_id=organization_id,
                title=title,
                description=description,
                assigned_to=assigned_to,
                due_date=due_date,
                status=status,
            )
            session.add(task)
            await session.flush()
            await session.refresh(task)
            return _to_result(task)
