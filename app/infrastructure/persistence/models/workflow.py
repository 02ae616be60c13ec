"""Workflow and WorkflowExecution ORM models. Event-driven automation."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    CheckConstraint,
    Index,
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.enums import TriggerType
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import OrganizationModel
from app.shared.enums import ExecutionStatus


def _in_values(column: str, values: list[str]) -> str:
    return "{} IN ({})".format(
        column, ", ".join("'{}'".format(v.replace("'", "''")) for v in values)
    )


class Workflow(OrganizationModel, Base):
    """Workflow definition. Table: workflow. Trigger + conditions + actions JSON."""

    __tablename__ = "workflow"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger_type: Mapped[str] = mapped_column(String(64), nullable=False)
    trigger_config: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    conditions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    actions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )
    execution_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    last_executed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        Index(
            "ix_workflow_org_trigger_active",
            "organization_id",
            "trigger_type",
            "is_active",
        ),
        CheckConstraint(
            _in_values("trigger_type", TriggerType.values()),
            name="workflow_trigger_type_check",
        ),
    )


class WorkflowExecution(OrganizationModel, Base):
    """One run of a workflow whose conditions passed. Table: workflow_execution."""

    __tablename__ = "workflow_execution"

    workflow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    trigger_data: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ExecutionStatus.RUNNING.value,
        index=True,
    )
    current_step: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    total_steps: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index(
            "ix_workflow_execution_workflow_started",
            "workflow_id",
            "started_at",
        ),
        CheckConstraint(
            _in_values("status", ExecutionStatus.values()),
            name="workflow_execution_status_check",
        ),
        CheckConstraint("current_step >= 0", name="workflow_execution_step_check"),
    )
