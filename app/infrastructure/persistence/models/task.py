"""Task ORM model. Follow-up task created by the create_task workflow action."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import OrganizationModel


class Task(OrganizationModel, Base):
    """Task created by workflow (create_task action). Table: task."""

    __tablename__ = "task"

    # Interpolated from the trigger; may be empty when the template has no title.
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_to: Mapped[str | None] = mapped_column(String, nullable=True)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="pending", server_default="pending"
    )

    __table_args__ = (
        Index("ix_task_org_assigned", "organization_id", "assigned_to"),
    )
