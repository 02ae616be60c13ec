"""Cache key builders. Single place for key format (DRY).

Key components (organization_id etc.) must not contain CACHE_KEY_SEP to
avoid ambiguous or colliding keys.
"""

from app.core.constants import CACHE_KEY_SEP, CACHE_PREFIX_WORKFLOWS


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value contains CACHE_KEY_SEP.
    """
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def workflows_by_org_key(organization_id: str) -> str:
    """Cache key for the workflow listing of one organization."""
    _validate_key_component(organization_id, "organization_id")
    return f"{CACHE_PREFIX_WORKFLOWS}{CACHE_KEY_SEP}org{CACHE_KEY_SEP}{organization_id}"
