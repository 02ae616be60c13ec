"""Unit tests for WorkflowRepository row mapping and its listing cache (no database)."""

from datetime import UTC, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from app.domain.enums import TriggerType
from app.infrastructure.persistence.models.workflow import WorkflowExecution
from app.infrastructure.persistence.repositories import WorkflowRepository
from app.infrastructure.persistence.repositories.workflow_repo import (
    _execution_to_entity,
    _workflow_from_cache,
    _workflow_to_cache,
)

CACHED = [
    {
        "id": "wf-1",
        "organization_id": "org-1",
        "name": "Welcome",
        "description": None,
        "trigger_type": "entity_created",
        "trigger_config": {},
        "conditions": [{"field": "lead.score", "operator": "greater_than", "value": 5, "logic": None}],
        "actions": [{"kind": "wait", "config": {"wait_minutes": 1}, "delay_minutes": None}],
        "is_active": True,
        "execution_count": 3,
        "last_executed_at": "2025-01-01T12:00:00+00:00",
        "created_by": None,
        "created_at": "2024-12-31T09:30:00+00:00",
    }
]


def _cache(cached=None) -> MagicMock:
    cache = MagicMock()
    cache.is_available.return_value = True
    cache.get = AsyncMock(return_value=cached)
    cache.set = AsyncMock(return_value=True)
    cache.delete = AsyncMock(return_value=True)
    return cache


async def test_cached_listing_skips_database() -> None:
    factory = MagicMock()
    repo = WorkflowRepository(factory, _cache(CACHED))

    (workflow,) = await repo.list_by_organization("org-1")

    factory.assert_not_called()
    assert workflow.id == "wf-1"
    assert workflow.trigger_type == TriggerType.ENTITY_CREATED
    assert workflow.execution_count == 3
    assert workflow.conditions[0].field == "lead.score"
    assert workflow.actions[0].config == {"wait_minutes": 1}
    assert workflow.last_executed_at.year == 2025


def test_cache_shape_survives_a_round_trip() -> None:
    workflow = _workflow_from_cache(CACHED[0])
    assert _workflow_to_cache(workflow) == CACHED[0]


def test_row_datetimes_are_read_as_utc() -> None:
    row = WorkflowExecution(
        id="exec-1",
        workflow_id="wf-1",
        organization_id="org-1",
        trigger_data={},
        status="completed",
        current_step=1,
        total_steps=1,
        started_at=datetime(2025, 1, 1, 12, 0),
        completed_at=datetime(2025, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2))),
    )

    execution = _execution_to_entity(row)

    assert execution.started_at == datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
    assert execution.completed_at.tzinfo is UTC
    assert execution.completed_at.hour == 12


def test_cached_timestamp_without_offset_is_utc() -> None:
    workflow = _workflow_from_cache({**CACHED[0], "created_at": "2024-12-31T09:30:00"})
    assert workflow.created_at == datetime(2024, 12, 31, 9, 30, tzinfo=UTC)
