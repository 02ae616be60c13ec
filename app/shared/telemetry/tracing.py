"""Span helpers for workflow runs and the actions inside them."""

import inspect
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

T = TypeVar("T")

# Only these argument names are copied onto spans; trigger payloads and
# action configs may carry personal data (emails, names) and are never recorded.
_SAFE_SPAN_ATTR_KEYS = frozenset({
    "workflow_id", "organization_id", "execution_id", "trigger_type",
    "kind", "step_index", "limit",
})

_tracer = trace.get_tracer("app.workflows")


def _record_arguments(
    span: trace.Span, signature: inspect.Signature, args: tuple, kwargs: dict
) -> None:
    try:
        bound = signature.bind_partial(*args, **kwargs)
    except TypeError:
        return
    for name, value in bound.arguments.items():
        if name in _SAFE_SPAN_ATTR_KEYS and value is not None:
            span.set_attribute(f"arg.{name}", str(value))


def traced(
    operation_name: str | None = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Wrap a coroutine function in a span named operation_name.

    Allowlisted arguments (workflow_id, organization_id, ...) become span
    attributes whether passed by position or keyword. Exceptions mark the
    span as failed and propagate unchanged.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        span_name = operation_name or f"{func.__module__}.{func.__qualname__}"
        signature = inspect.signature(func)

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            with _tracer.start_as_current_span(span_name, record_exception=True) as span:
                _record_arguments(span, signature, args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span (no-op when nothing is recording)."""
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


def add_span_event(name: str, **attributes: str | int | float | bool) -> None:
    """Record a point-in-time event (e.g. workflow.skipped) on the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes=attributes)


class TracedOperation:
    """Async context manager opening a child span around one unit of work.

    The engine wraps every action in one, so a trace shows which step of a
    run was slow or failed.
    """

    def __init__(
        self, operation_name: str, attributes: dict[str, Any] | None = None
    ) -> None:
        self.operation_name = operation_name
        self.attributes = attributes or {}
        self._cm: Any = None
        self.span: trace.Span | None = None

    async def __aenter__(self) -> "TracedOperation":
        self._cm = _tracer.start_as_current_span(
            self.operation_name, attributes=self.attributes, record_exception=True
        )
        self.span = self._cm.__enter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        if self.span is not None:
            if exc_val is not None:
                self.span.set_status(Status(StatusCode.ERROR, str(exc_val)))
            else:
                self.span.set_status(Status(StatusCode.OK))
        self._cm.__exit__(exc_type, exc_val, exc_tb)
