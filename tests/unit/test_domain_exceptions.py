"""Tests for domain exceptions (error_code, message, details)."""

import pytest

from app.domain.exceptions import (
    ActionError,
    ActionFailure,
    AutomationException,
    ExecutionStateError,
    MissingFieldError,
    NotFoundError,
    SqlNotConfiguredException,
    ValidationException,
    WebhookError,
)


def test_automation_exception_default_error_code() -> None:
    """Base AutomationException uses class name as error_code when not provided."""
    exc = AutomationException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "AutomationException"
    assert exc.details == {}
    assert str(exc) == "Something failed"


def test_automation_exception_to_dict() -> None:
    exc = AutomationException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {
        "error": "CUSTOM",
        "message": "Oops",
        "details": {"key": "value"},
    }


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("Invalid format", field="actions")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "actions"}
    assert ValidationException("Invalid").details == {}


def test_not_found_error() -> None:
    exc = NotFoundError("workflow", "wf-1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert "wf-1" in exc.message
    assert exc.details == {"resource_type": "workflow", "resource_id": "wf-1"}


def test_action_error_carries_location_and_kind() -> None:
    exc = ActionError(
        "boom", step_index=2, organization_id="org-1", action_kind="create_task"
    )
    assert isinstance(exc, ActionFailure)
    assert exc.error_code == "ACTION_ERROR"
    assert exc.step_index == 2
    assert exc.organization_id == "org-1"
    assert exc.details == {
        "action_kind": "create_task",
        "step_index": 2,
        "organization_id": "org-1",
    }


def test_locate_fills_only_unknown_location() -> None:
    """locate() never overwrites a step index the raiser already set."""
    unlocated = MissingFieldError(["field_name"])
    assert unlocated.locate(3, "org-1") is unlocated
    assert (unlocated.step_index, unlocated.organization_id) == (3, "org-1")
    assert unlocated.details["step_index"] == 3

    located = ActionError("x", step_index=1, organization_id="org-a")
    located.locate(5, "org-b")
    assert (located.step_index, located.organization_id) == (1, "org-a")


def test_missing_field_error() -> None:
    exc = MissingFieldError(["entity_type", "entity_id"], step_index=0)
    assert exc.error_code == "MISSING_FIELD"
    assert exc.message == "Missing required fields for update action: entity_type, entity_id"
    assert exc.details["missing"] == ["entity_type", "entity_id"]


def test_webhook_error() -> None:
    exc = WebhookError(404, "https://hooks.example.com", step_index=1)
    assert exc.error_code == "WEBHOOK_ERROR"
    assert exc.status_code == 404
    assert exc.message == "Webhook failed with status 404"
    assert exc.details["url"] == "https://hooks.example.com"


def test_execution_state_error() -> None:
    exc = ExecutionStateError("exec-1", "execution is already completed")
    assert exc.error_code == "EXECUTION_STATE_ERROR"
    assert exc.details == {"execution_id": "exec-1", "reason": "execution is already completed"}


def test_sql_not_configured_exception() -> None:
    exc = SqlNotConfiguredException()
    assert exc.error_code == "SERVICE_UNAVAILABLE"
    assert "SQL" in exc.message


@pytest.mark.parametrize(
    "exc",
    [
        ValidationException("x"),
        NotFoundError("workflow", "1"),
        ActionError("x"),
        MissingFieldError(["field_name"]),
        WebhookError(500, "https://h"),
        ExecutionStateError("e", "r"),
        SqlNotConfiguredException(),
    ],
)
def test_all_inherit_from_automation_exception(exc: Exception) -> None:
    assert isinstance(exc, AutomationException)
