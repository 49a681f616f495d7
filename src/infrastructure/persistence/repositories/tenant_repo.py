from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.enums import TenantStatus
from src.infrastructure.persistence.models.tenant import Tenant
from src.infrastructure.persistence.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """
    Repository for Tenant entity.

    Tenants are the root of the hierarchy, so lookups are by id or code
    rather than tenant-scoped. Tenants are not cached: a status change must
    take effect on the next write.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(db, Tenant)

    async def get_by_code(self, code: str) -> Tenant | None:
        """Get tenant by unique code"""
        result = await self.db.execute(select(Tenant).where(Tenant.code == code))
        return result.scalar_one_or_none()

    async def list_tenants(
        self, skip: int = 0, limit: int = 100, *, active_only: bool = False
    ) -> list[Tenant]:
        """List tenants ordered by code with pagination"""
        query = select(Tenant).order_by(Tenant.code)
        if active_only:
            query = query.where(Tenant.status == TenantStatus.ACTIVE.value)
        result = await self.db.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())

    async def update_status(self, tenant: Tenant, status: TenantStatus) -> Tenant:
        """Persist a status change already approved by the tenant entity rules."""
        tenant.status = status.value
        return await self.update(tenant)
