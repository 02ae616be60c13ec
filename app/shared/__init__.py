"""Shared utilities: enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.enums import ExecutionStatus
from app.shared.utils import ensure_utc, generate_cuid, utc_now

__all__ = [
    "ExecutionStatus",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
]
