"""create workflow, workflow_execution and task tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19

Workflow definitions (trigger, conditions, actions JSON, execution counter),
execution history with a status check, and follow-up tasks created by the
create_task action.
"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1c2e3f4b5d6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_TRIGGER_TYPES = (
    "entity_created",
    "entity_stage_changed",
    "entity_updated",
    "scheduled",
    "manual",
)
_EXECUTION_STATUSES = ("running", "completed", "failed", "paused")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _in_values(column: str, values: Sequence[str]) -> str:
    return "{} IN ({})".format(column, ", ".join(f"'{v}'" for v in values))


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "workflow",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger_type", sa.String(length=64), nullable=False),
        sa.Column("trigger_config", sa.JSON(), nullable=False),
        sa.Column("conditions", sa.JSON(), nullable=False),
        sa.Column("actions", sa.JSON(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column(
            "execution_count", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("last_executed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            _in_values("trigger_type", _TRIGGER_TYPES),
            name="workflow_trigger_type_check",
        ),
    )
    op.create_index("ix_workflow_organization_id", "workflow", ["organization_id"])
    op.create_index(
        "ix_workflow_org_trigger_active",
        "workflow",
        ["organization_id", "trigger_type", "is_active"],
    )

    op.create_table(
        "workflow_execution",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("trigger_data", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column(
            "current_step", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "total_steps", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflow.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            _in_values("status", _EXECUTION_STATUSES),
            name="workflow_execution_status_check",
        ),
        sa.CheckConstraint("current_step >= 0", name="workflow_execution_step_check"),
    )
    op.create_index(
        "ix_workflow_execution_organization_id", "workflow_execution", ["organization_id"]
    )
    op.create_index(
        "ix_workflow_execution_workflow_id", "workflow_execution", ["workflow_id"]
    )
    op.create_index("ix_workflow_execution_status", "workflow_execution", ["status"])
    op.create_index(
        "ix_workflow_execution_workflow_started",
        "workflow_execution",
        ["workflow_id", "started_at"],
    )

    op.create_table(
        "task",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("assigned_to", sa.String(), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status", sa.String(length=32), nullable=False, server_default="pending"
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_task_organization_id", "task", ["organization_id"])
    op.create_index("ix_task_org_assigned", "task", ["organization_id", "assigned_to"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_task_org_assigned", table_name="task")
    op.drop_index("ix_task_organization_id", table_name="task")
    op.drop_table("task")
    op.drop_index(
        "ix_workflow_execution_workflow_started", table_name="workflow_execution"
    )
    op.drop_index("ix_workflow_execution_status", table_name="workflow_execution")
    op.drop_index("ix_workflow_execution_workflow_id", table_name="workflow_execution")
    op.drop_index(
        "ix_workflow_execution_organization_id", table_name="workflow_execution"
    )
    op.drop_table("workflow_execution")
    op.drop_index("ix_workflow_org_trigger_active", table_name="workflow")
    op.drop_index("ix_workflow_organization_id", table_name="workflow")
    op.drop_table("workflow")
