from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.bound_record import BoundRecord
from src.infrastructure.persistence.repositories.base import \
    TenantScopedRepository


class BoundRecordRepository(TenantScopedRepository[BoundRecord]):
    """Repository for records bound to a schema version"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, BoundRecord)

    async def create_record(
        self,
        tenant_id: str,
        definition_id: str,
        schema_version_id: str,
        version: int,
        field_values: dict[str, Any],
    ) -> BoundRecord:
        record = BoundRecord(
            tenant_id=tenant_id,
            definition_id=definition_id,
            schema_version_id=schema_version_id,
            version=version,
            field_values=field_values,
        )
        return await self.create(record)

    async def list_for_tenant(
        self,
        tenant_id: str,
        definition_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[BoundRecord]:
        """Get records for tenant, newest first, optionally for one definition"""
        query = self._scoped(tenant_id)
        if definition_id is not None:
            query = query.where(BoundRecord.definition_id == definition_id)
        result = await self.db.execute(
            query.order_by(BoundRecord.created_at.desc(), BoundRecord.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_for_definition(self, definition_id: str) -> int:
        """
        Count records referencing any version of a definition.

        Deliberately not tenant-scoped: a definition may not be deleted while
        any record anywhere still points at it.
        """
        result = await self.db.execute(
            select(func.count())
            .select_from(BoundRecord)
            .where(BoundRecord.definition_id == definition_id)
        )
        return int(result.scalar_one())
