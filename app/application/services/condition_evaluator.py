"""Condition evaluation against a trigger document (pure functions).

Conditions are checked in order. Each one may short-circuit the whole
set: a passing OR condition returns True immediately, a failing AND (or
unflagged) condition returns False immediately. This is not a boolean
expression tree; workflows authored against it rely on that order.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from app.application.services.template_interpolator import get_nested_value
from app.domain.entities.workflow import Condition
from app.domain.enums import ConditionLogic, ConditionOperator


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _to_float(value: Any) -> float:
    """Coerce for ordering comparisons; anything non-numeric becomes NaN."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def loose_equals(left: Any, right: Any) -> bool:
    """Equality where numeric strings match numbers and None only matches None."""
    if left is None or right is None:
        return left is None and right is None
    if _is_number(left) and isinstance(right, str):
        return left == _to_float(right)
    if isinstance(left, str) and _is_number(right):
        return _to_float(left) == right
    return left == right


def _contains(field_value: Any, value: Any) -> bool:
    return _stringify(value) in _stringify(field_value)


def _greater_than(field_value: Any, value: Any) -> bool:
    return _to_float(field_value) > _to_float(value)


def _less_than(field_value: Any, value: Any) -> bool:
    return _to_float(field_value) < _to_float(value)


def _in(field_value: Any, value: Any) -> bool:
    return isinstance(value, list | tuple) and field_value in value


def _not_in(field_value: Any, value: Any) -> bool:
    return isinstance(value, list | tuple) and field_value not in value


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS.value: loose_equals,
    ConditionOperator.NOT_EQUALS.value: lambda a, b: not loose_equals(a, b),
    ConditionOperator.CONTAINS.value: _contains,
    ConditionOperator.GREATER_THAN.value: _greater_than,
    ConditionOperator.LESS_THAN.value: _less_than,
    ConditionOperator.IN.value: _in,
    ConditionOperator.NOT_IN.value: _not_in,
}


def apply_operator(operator: str, field_value: Any, value: Any) -> bool:
    """Compare field_value to value. An unknown operator is False, never an error."""
    op = _OPERATORS.get(str(operator))
    if op is None:
        return False
    return op(field_value, value)


def evaluate_conditions(
    conditions: Iterable[Condition], data: Mapping[str, Any]
) -> bool:
    """Return whether the trigger document passes the condition list.

    Empty list passes. OR short-circuits on a pass; AND and a missing
    logic flag short-circuit on a failure; reaching the end passes.
    """
    for condition in conditions:
        field_value = get_nested_value(data, condition.field)
        result = apply_operator(condition.operator, field_value, condition.value)
        logic = condition.logic
        if logic == ConditionLogic.OR.value and result:
            return True
        if logic in (ConditionLogic.AND.value, None) and not result:
            return False
    return True
