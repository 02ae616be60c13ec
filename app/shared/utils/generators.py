"""Identifier generators for workflows, executions and tasks (CUID2)."""

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Return a new collision-resistant identifier.

    Used as primary key default on every table and as the id of transient
    (skipped) execution results that are never persisted.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result
