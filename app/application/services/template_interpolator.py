"""{{path}} placeholder substitution for action configs.

A placeholder is replaced only when its dot path resolves to a truthy
value. Anything else (missing key, None, "", 0, False) leaves the
placeholder text in place, so a half-filled template is visible in the
delivered message instead of silently collapsing.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")


def get_nested_value(data: Any, path: str) -> Any:
    """Walk JSON data by dot-separated keys; return None on any miss.

    Only mapping keys and list indexes (``items.0.sku``) are followed;
    attributes of the values themselves are never reachable.
    """
    current = data
    for key in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, list | tuple) and key.isdigit():
            index = int(key)
            current = current[index] if index < len(current) else None
        else:
            return None
    return current


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    return str(value)


def interpolate(template: Any, data: Mapping[str, Any]) -> Any:
    """Replace {{path}} tokens in a string template; other inputs pass through.

    Example:
        interpolate("Hi {{lead.name}}", {"lead": {"name": "Ada"}}) -> "Hi Ada"
        interpolate("Hi {{lead.phone}}", {"lead": {}}) -> "Hi {{lead.phone}}"
    """
    if not isinstance(template, str):
        return template

    def _replace(match: re.Match[str]) -> str:
        value = get_nested_value(data, match.group(1).strip())
        if not value:
            return match.group(0)
        return _render(value)

    return _PLACEHOLDER.sub(_replace, template)
