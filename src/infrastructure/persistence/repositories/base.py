from abc import ABC
from enum import Enum
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import object_session

from src.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class RowLock(str, Enum):
    """Row lock taken by a tenant-scoped read (ignored by SQLite)."""

    SHARE = "share"  # SELECT ... FOR SHARE
    EXCLUSIVE = "exclusive"  # SELECT ... FOR UPDATE


class BaseRepository(ABC, Generic[ModelType]):
    """Base repository implementing common CRUD operations"""

    def __init__(self, db: AsyncSession, model: type[ModelType]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: str) -> ModelType | None:
        """Get a single record by ID"""
        # Cast to Any for SQLAlchemy dynamic attribute access (id comes from CuidMixin)
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == id))
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Create a new record"""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """
        Update an existing record.

        Handles potentially detached objects by merging back to session.
        """
        # Merge object back to session if detached
        if object_session(obj) is None:
            obj = await self.db.merge(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        """Delete a record"""
        await self.db.delete(obj)
        await self.db.flush()


class TenantScopedRepository(BaseRepository[ModelType]):
    """
    Repository for models carrying a tenant_id.

    Every lookup includes the tenant in its WHERE clause, so a row owned by
    another tenant is simply not found. Services never call the unscoped
    get_by_id on these repositories.
    """

    def _scoped(self, tenant_id: str) -> Select:
        model: Any = self.model
        return select(self.model).where(model.tenant_id == tenant_id)

    async def get_for_tenant(
        self, tenant_id: str, id: str, *, lock: RowLock | None = None
    ) -> ModelType | None:
        """Get a row by (tenant_id, id), optionally taking a row lock."""
        model: Any = self.model
        query = self._scoped(tenant_id).where(model.id == id)
        if lock is RowLock.SHARE:
            query = query.with_for_update(read=True)
        elif lock is RowLock.EXCLUSIVE:
            query = query.with_for_update()
        if lock is not None:
            # Locked reads must see committed state, not the identity map
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
