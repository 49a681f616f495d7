from __future__ import annotations

from sqlalchemy import Select, delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.schema_definition import \
    SchemaDefinition
from src.infrastructure.persistence.repositories.base import \
    TenantScopedRepository


class SchemaDefinitionRepository(TenantScopedRepository[SchemaDefinition]):
    """
    Repository for SchemaDefinition rows.

    The definition row holds the active-version pointer (current_version)
    and the concurrency token (lock_version). Both only move through the
    compare-and-swap methods below, never through plain ORM updates.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(db, SchemaDefinition)

    def _scoped(self, tenant_id: str) -> Select:
        # current_version moves through Core UPDATEs, so never trust the identity map
        return super()._scoped(tenant_id).execution_options(populate_existing=True)

    async def get_by_name(self, tenant_id: str, name: str) -> SchemaDefinition | None:
        """Get a definition by its per-tenant unique name"""
        result = await self.db.execute(
            self._scoped(tenant_id).where(SchemaDefinition.name == name)
        )
        return result.scalar_one_or_none()

    async def list_for_tenant(
        self, tenant_id: str, skip: int = 0, limit: int = 100
    ) -> list[SchemaDefinition]:
        """Get all definitions for tenant ordered by name with pagination"""
        result = await self.db.execute(
            self._scoped(tenant_id)
            .order_by(SchemaDefinition.name)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def advance_version(
        self, tenant_id: str, definition_id: str, expected_version: int
    ) -> bool:
        """
        Move current_version from expected_version to expected_version + 1.

        Returns False when another writer got there first; nothing changes.
        """
        result = await self.db.execute(
            update(SchemaDefinition)
            .where(
                SchemaDefinition.id == definition_id,
                SchemaDefinition.tenant_id == tenant_id,
                SchemaDefinition.current_version == expected_version,
            )
            .values(
                current_version=expected_version + 1,
                lock_version=SchemaDefinition.lock_version + 1,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def claim(self, tenant_id: str, definition_id: str, expected_lock: int) -> bool:
        """Bump lock_version if it still equals expected_lock."""
        result = await self.db.execute(
            update(SchemaDefinition)
            .where(
                SchemaDefinition.id == definition_id,
                SchemaDefinition.tenant_id == tenant_id,
                SchemaDefinition.lock_version == expected_lock,
            )
            .values(lock_version=SchemaDefinition.lock_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def delete_for_tenant(self, tenant_id: str, definition_id: str) -> bool:
        """Delete the definition row; versions go with it via ON DELETE CASCADE."""
        result = await self.db.execute(
            delete(SchemaDefinition)
            .where(
                SchemaDefinition.id == definition_id,
                SchemaDefinition.tenant_id == tenant_id,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        return result.rowcount == 1

