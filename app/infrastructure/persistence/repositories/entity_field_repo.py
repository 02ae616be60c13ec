"""SQL updater for the update_field workflow action (implements IEntityFieldUpdater).

CRM entity tables (leads, deals, contacts) are owned by the CRM core, so
they are addressed with lightweight table() constructs instead of mapped
models. Table and column names come from stored workflow data, so both
are checked against an allowlist before any SQL is built.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.exceptions import ValidationException
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_FIELD_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")
_PROTECTED_FIELDS = frozenset({"id", "organization_id", "created_at", "updated_at"})


class EntityFieldUpdater:
    """Sets one column on one organization-scoped entity row (table = <entity_type>s)."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        allowed_entity_types: Iterable[str],
    ) -> None:
        self._session_factory = session_factory
        self._allowed = frozenset(t.lower() for t in allowed_entity_types)

    def _table_for(self, entity_type: str, field_name: str) -> sa.TableClause:
        entity_type = entity_type.lower()
        if entity_type not in self._allowed:
            raise ValidationException(
                f"Entity type is not updatable by workflows: {entity_type}",
                field="entity_type",
            )
        if not _FIELD_NAME_RE.fullmatch(field_name) or field_name in _PROTECTED_FIELDS:
            raise ValidationException(
                f"Field is not updatable by workflows: {field_name}",
                field="field_name",
            )
        return sa.table(
            f"{entity_type}s",
            sa.column("id"),
            sa.column("organization_id"),
            sa.column("updated_at"),
            sa.column(field_name),
        )

    async def update_field(
        self,
        entity_type: str,
        entity_id: str,
        organization_id: str,
        field_name: str,
        field_value: Any,
    ) -> None:
        table = self._table_for(entity_type, field_name)
        stmt = (
            sa.update(table)
            .where(
                table.c.id == entity_id,
                table.c.organization_id == organization_id,
            )
            .values({field_name: field_value, "updated_at": sa.func.now()})
        )
        async with self._session_factory.begin() as session:
            result = await session.execute(stmt)
        if result.rowcount == 0:
            logger.warning(
                "update_field matched no %s row (entity_id=%s, organization_id=%s)",
                entity_type,
                entity_id,
                organization_id,
            )
            return
        logger.info("Field %s updated via workflow on %s %s", field_name, entity_type, entity_id)
