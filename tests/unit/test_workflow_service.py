"""WorkflowService: authoring validation, workflow.created events, listings."""

from datetime import timedelta

import pytest

from app.application.use_cases.workflows import WorkflowService
from app.domain.entities.execution import WorkflowExecutionEntity
from app.domain.enums import TriggerType
from app.domain.exceptions import ValidationException
from app.shared.enums import ExecutionStatus
from app.shared.utils.datetime import utc_now

DEFINITION = {
    "name": "Hot lead follow-up",
    "trigger_type": "entity_created",
    "conditions": [{"field": "lead.score", "operator": "greater_than", "value": 50}],
    "actions": [
        {"kind": "send_message", "config": {"to": "{{lead.email}}", "subject": "Hi"}},
        {"kind": "wait", "delay_minutes": 5},
    ],
}


@pytest.fixture
def service(workflow_repo, execution_repo, event_bus) -> WorkflowService:
    return WorkflowService(workflow_repo, execution_repo, event_bus=event_bus, history_limit=3)


async def test_create_workflow_persists_and_publishes(service, workflow_repo, event_bus) -> None:
    workflow = await service.create_workflow("org-1", DEFINITION)

    assert workflow_repo.workflows[workflow.id] is workflow
    assert workflow.organization_id == "org-1"
    assert workflow.trigger_type == TriggerType.ENTITY_CREATED
    assert workflow.is_active is True
    assert workflow.execution_count == 0
    assert workflow.conditions[0].operator == "greater_than"
    assert [a.kind for a in workflow.actions] == ["send_message", "wait"]
    assert workflow.actions[1].delay_minutes == 5

    ((channel, payload),) = event_bus.published
    assert channel == "workflow.created"
    assert payload["workflow_id"] == workflow.id
    assert payload["organization_id"] == "org-1"
    assert payload["trigger_type"] == "entity_created"
    assert "timestamp" in payload


async def test_create_workflow_when_bus_unavailable_still_persists(
    service, workflow_repo, event_bus, caplog
) -> None:
    event_bus.available = False

    workflow = await service.create_workflow("org-1", DEFINITION)

    assert workflow.id in workflow_repo.workflows
    assert event_bus.published == []
    assert "workflow.created not published" in caplog.text


async def test_create_workflow_rejects_invalid_definition(service, workflow_repo, event_bus) -> None:
    with pytest.raises(ValidationException) as exc_info:
        await service.create_workflow("org-1", {**DEFINITION, "actions": []})

    assert exc_info.value.error_code == "VALIDATION_ERROR"
    assert exc_info.value.details["field"] == "actions"
    assert workflow_repo.workflows == {}
    assert event_bus.published == []


async def test_create_workflow_rejects_unknown_action_kind(service) -> None:
    definition = {**DEFINITION, "actions": [{"kind": "send_fax", "config": {}}]}
    with pytest.raises(ValidationException):
        await service.create_workflow("org-1", definition)


async def test_create_workflow_rejects_bad_webhook_url(service) -> None:
    definition = {
        **DEFINITION,
        "actions": [{"kind": "call_webhook", "config": {"url": "ftp://example.com"}}],
    }
    with pytest.raises(ValidationException) as exc_info:
        await service.create_workflow("org-1", definition)
    assert exc_info.value.details["field"].startswith("actions.0")


async def test_list_workflows_is_org_scoped_newest_first(service, make_workflow) -> None:
    older = make_workflow(name="older")
    newer = make_workflow(name="newer")
    make_workflow(name="other org", organization_id="org-2")

    listed = await service.list_workflows("org-1")

    assert [w.id for w in listed] == [newer.id, older.id]
    assert listed[0].name == "newer"
    assert listed[0].trigger_type == TriggerType.ENTITY_CREATED


async def test_list_workflows_returns_stored_json_shapes(service) -> None:
    await service.create_workflow("org-1", DEFINITION)

    (listed,) = await service.list_workflows("org-1")

    assert listed.conditions[0]["field"] == "lead.score"
    assert listed.actions[0]["kind"] == "send_message"
    assert listed.actions[0]["config"]["to"] == "{{lead.email}}"


async def test_get_workflow_executions_newest_first_and_limited(
    service, execution_repo
) -> None:
    start = utc_now()
    for minutes in range(5):
        await execution_repo.create(
            WorkflowExecutionEntity(
                id=f"exec-{minutes}",
                workflow_id="wf-1",
                organization_id="org-1",
                total_steps=1,
                started_at=start + timedelta(minutes=minutes),
            )
        )

    history = await service.get_workflow_executions("wf-1")
    assert [e.id for e in history] == ["exec-4", "exec-3", "exec-2"]
    assert history[0].status == ExecutionStatus.RUNNING

    assert len(await service.get_workflow_executions("wf-1", limit=10)) == 5
    assert await service.get_workflow_executions("wf-unknown") == []
