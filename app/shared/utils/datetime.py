"""
UTC datetime utilities for consistent timezone handling.

Execution timestamps, task due dates and workflow last-executed markers
are all timezone-aware UTC. Use these helpers instead of datetime.now().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Normalize a datetime read back from the database to aware UTC.

    Naive values (from a driver or a cache entry written without an
    offset) are assumed to already be UTC.

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
