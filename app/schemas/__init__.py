"""Pydantic schemas for workflow definitions and history listings."""

from app.schemas.workflow import (
    ACTION_CONFIG_MODELS,
    ConditionSchema,
    WorkflowCreateRequest,
    WorkflowExecutionResponse,
    WorkflowResponse,
)

__all__ = [
    "ACTION_CONFIG_MODELS",
    "ConditionSchema",
    "WorkflowCreateRequest",
    "WorkflowExecutionResponse",
    "WorkflowResponse",
]
