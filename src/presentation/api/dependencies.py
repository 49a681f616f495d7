from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.record_binder import RecordBinder
from src.application.services.tenant_registry import TenantRegistry
from src.application.services.version_manager import VersionManager
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.database import get_db, get_db_transactional
from src.infrastructure.persistence.repositories import TenantRepository

# Global service instances (singletons)
_cache_service: CacheService | None = None


async def get_cache_service() -> CacheService:
    """
    Cache service dependency (singleton)

    Returns global cache service instance.
    Initialized on app startup in main.py
    """
    global _cache_service
    if _cache_service is None:
        # connect() is called on app startup in main.py; until then reads go to the database
        _cache_service = CacheService()
    return _cache_service


def set_cache_service(cache_service: CacheService | None):
    """Set global cache service (called on app startup)"""
    global _cache_service
    _cache_service = cache_service


async def get_tenant_id(request: Request) -> str:
    """
    Calling tenant from the tenant header.

    The header is set by the upstream authentication layer; whether the
    tenant exists is checked by the services.
    """
    header = get_settings().tenant_header_name
    tenant_id = request.headers.get(header, "").strip()
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing {header} header",
        )
    return tenant_id


# Read dependencies
async def get_version_manager(
    db: AsyncSession = Depends(get_db), cache: CacheService = Depends(get_cache_service)
) -> VersionManager:
    """Version manager dependency with snapshot caching"""
    return VersionManager.for_session(db, cache)


async def get_record_binder(
    db: AsyncSession = Depends(get_db), cache: CacheService = Depends(get_cache_service)
) -> RecordBinder:
    """Record binder dependency with snapshot caching"""
    return RecordBinder.for_session(db, cache)


async def get_tenant_registry(db: AsyncSession = Depends(get_db)) -> TenantRegistry:
    """Tenant registry dependency"""
    return TenantRegistry(TenantRepository(db))


# Transactional dependencies for write operations
async def get_version_manager_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    cache: CacheService = Depends(get_cache_service),
) -> VersionManager:
    """Version manager dependency with transaction management and caching"""
    return VersionManager.for_session(db, cache)


async def get_record_binder_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    cache: CacheService = Depends(get_cache_service),
) -> RecordBinder:
    """Record binder dependency with transaction management and caching"""
    return RecordBinder.for_session(db, cache)


async def get_tenant_registry_transactional(
    db: AsyncSession = Depends(get_db_transactional),
) -> TenantRegistry:
    """Tenant registry dependency with transaction management"""
    return TenantRegistry(TenantRepository(db))
