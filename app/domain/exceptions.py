"""Domain exceptions for the automation engine.

Defines domain-level exceptions for workflow lookup, action failures and
execution bookkeeping. These exceptions are independent of infrastructure
concerns; callers (dispatcher, composition root, an eventual API layer)
decide how to surface them.

A condition set that evaluates false is not an exception: the engine
returns a result with conditions_met=False instead.
"""

from typing import Any


class AutomationException(Exception):
    """Base exception for all automation engine errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. step_index, workflow_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and API error bodies."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(AutomationException):
    """Raised when a workflow definition fails validation at the authoring boundary."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(AutomationException):
    """Raised when a workflow is missing or inactive."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'workflow').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found or inactive: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ActionFailure(AutomationException):
    """Base for failures raised while executing a single workflow action.

    Carries the failing step index and the workflow's organization so a
    caller can tell which action aborted the run.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        *,
        step_index: int | None = None,
        organization_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.step_index = step_index
        self.organization_id = organization_id
        merged = dict(details or {})
        merged["step_index"] = step_index
        merged["organization_id"] = organization_id
        super().__init__(message, error_code, merged)

    def locate(self, step_index: int, organization_id: str) -> "ActionFailure":
        """Fill in step index and organization when the raiser did not know them."""
        if self.step_index is None:
            self.step_index = step_index
            self.details["step_index"] = step_index
        if self.organization_id is None:
            self.organization_id = organization_id
            self.details["organization_id"] = organization_id
        return self


class ActionError(ActionFailure):
    """Raised when an action fails for any reason without a more specific type.

    Wraps collaborator failures (message service, task store, transport
    errors) and invalid action configuration.
    """

    def __init__(
        self,
        message: str,
        *,
        step_index: int | None = None,
        organization_id: str | None = None,
        action_kind: str | None = None,
    ) -> None:
        details = {"action_kind": action_kind} if action_kind else {}
        super().__init__(
            message,
            "ACTION_ERROR",
            step_index=step_index,
            organization_id=organization_id,
            details=details,
        )


class MissingFieldError(ActionFailure):
    """Raised when an update_field action lacks entity type, entity id or field name."""

    def __init__(
        self,
        missing: list[str],
        *,
        step_index: int | None = None,
        organization_id: str | None = None,
    ) -> None:
        super().__init__(
            f"Missing required fields for update action: {', '.join(missing)}",
            "MISSING_FIELD",
            step_index=step_index,
            organization_id=organization_id,
            details={"missing": missing},
        )


class WebhookError(ActionFailure):
    """Raised when a call_webhook action receives a non-2xx response."""

    def __init__(
        self,
        status_code: int,
        url: str,
        *,
        step_index: int | None = None,
        organization_id: str | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(
            f"Webhook failed with status {status_code}",
            "WEBHOOK_ERROR",
            step_index=step_index,
            organization_id=organization_id,
            details={"status_code": status_code, "url": url},
        )


class ExecutionStateError(AutomationException):
    """Raised when an execution record would be mutated against its lifecycle rules.

    Examples: advancing a completed execution, moving current_step
    backwards or past the number of actions.
    """

    def __init__(self, execution_id: str, reason: str) -> None:
        super().__init__(
            f"Invalid execution state change for {execution_id}: {reason}",
            "EXECUTION_STATE_ERROR",
            {"execution_id": execution_id, "reason": reason},
        )


class SqlNotConfiguredException(AutomationException):
    """Raised when a SQL repository is used but DATABASE_URL is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
