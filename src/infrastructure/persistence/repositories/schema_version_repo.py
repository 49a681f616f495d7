from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities.field_spec import fields_from_dicts
from src.domain.entities.schema_version import SchemaVersionEntity
from src.infrastructure.cache.redis_cache import (CacheService,
                                                  definition_versions_pattern,
                                                  schema_version_key)
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.models.schema_version import SchemaVersion
from src.infrastructure.persistence.repositories.base import \
    TenantScopedRepository
from src.shared.utils.datetime import ensure_utc


class SchemaVersionRepository(TenantScopedRepository[SchemaVersion]):
    """
    Repository for SchemaVersion entity with Redis caching

    Versions are immutable, so a cached snapshot never goes stale. The only
    mutable column, is_active, is never cached: callers derive it from the
    definition's current_version.
    """

    def __init__(self, db: AsyncSession, cache_service: CacheService | None = None):
        super().__init__(db, SchemaVersion)
        self.cache = cache_service
        self.settings = get_settings()
        self.cache_ttl = self.settings.cache_ttl_schema_versions

    async def get_by_number(
        self, tenant_id: str, definition_id: str, version: int
    ) -> SchemaVersion | None:
        """Get specific schema version"""
        result = await self.db.execute(
            self._scoped(tenant_id).where(
                SchemaVersion.definition_id == definition_id,
                SchemaVersion.version == version,
            )
        )
        return result.scalar_one_or_none()

    async def get_snapshot(
        self, tenant_id: str, definition_id: str, version: int, *, active_version: int
    ) -> SchemaVersionEntity | None:
        """
        Get a version as a domain entity, served from cache when possible.

        active_version is the definition's current pointer, read by the caller
        in the same transaction.
        """
        cache_key = schema_version_key(tenant_id, definition_id, version)
        if self.cache and self.cache.is_available():
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return self._entity_from_cache(cached, active_version)

        row = await self.get_by_number(tenant_id, definition_id, version)
        if row is None:
            return None

        if self.cache and self.cache.is_available():
            await self.cache.set(cache_key, self._cache_payload(row), ttl=self.cache_ttl)

        return self._entity_from_row(row, active_version)

    async def list_for_definition(
        self, tenant_id: str, definition_id: str
    ) -> list[SchemaVersion]:
        """Get all schema versions for a definition, oldest first"""
        result = await self.db.execute(
            self._scoped(tenant_id)
            .where(SchemaVersion.definition_id == definition_id)
            .order_by(SchemaVersion.version.asc())
        )
        return list(result.scalars().all())

    async def deactivate_all(self, tenant_id: str, definition_id: str) -> None:
        """Clear the active flag on every version of a definition; content is untouched"""
        await self.db.execute(
            update(SchemaVersion)
            .where(
                SchemaVersion.tenant_id == tenant_id,
                SchemaVersion.definition_id == definition_id,
                SchemaVersion.is_active.is_(True),
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )

    async def delete_for_definition(self, tenant_id: str, definition_id: str) -> int:
        """Delete every version of a definition (only used by definition delete)"""
        result = await self.db.execute(
            delete(SchemaVersion)
            .where(
                SchemaVersion.tenant_id == tenant_id,
                SchemaVersion.definition_id == definition_id,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        return result.rowcount

    async def invalidate_definition(self, tenant_id: str, definition_id: str) -> None:
        """Invalidate cached snapshots when their definition is deleted"""
        if self.cache and self.cache.is_available():
            await self.cache.delete_pattern(definition_versions_pattern(tenant_id, definition_id))

    @staticmethod
    def _cache_payload(row: SchemaVersion) -> dict[str, Any]:
        created_at = ensure_utc(row.created_at)
        return {
            "id": row.id,
            "tenant_id": row.tenant_id,
            "definition_id": row.definition_id,
            "version": row.version,
            "fields": row.fields,
            "created_at": created_at.isoformat() if created_at else None,
        }

    @staticmethod
    def _entity_from_row(row: SchemaVersion, active_version: int) -> SchemaVersionEntity:
        return SchemaVersionEntity(
            id=row.id,
            tenant_id=row.tenant_id,
            definition_id=row.definition_id,
            version=row.version,
            fields=fields_from_dicts(row.fields),
            is_active=row.version == active_version,
            created_at=ensure_utc(row.created_at),
        )

    @staticmethod
    def _entity_from_cache(cached: dict[str, Any], active_version: int) -> SchemaVersionEntity:
        created_at = cached.get("created_at")
        return SchemaVersionEntity(
            id=cached["id"],
            tenant_id=cached["tenant_id"],
            definition_id=cached["definition_id"],
            version=cached["version"],
            fields=fields_from_dicts(cached["fields"]),
            is_active=cached["version"] == active_version,
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )
