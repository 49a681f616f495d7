"""
Tenant isolation checks applied at every service entry point.

Lookups are already keyed by tenant id, so a foreign object is simply not
found. The guard adds the two checks that keys alone cannot express: the
caller's tenant must exist (and be writable for mutations), and any related
object loaded along the way must belong to the same tenant.
"""

from typing import Any

from src.domain.entities.tenant import TenantEntity
from src.domain.exceptions import (CrossTenantAccessException,
                                   TenantInactiveException,
                                   TenantNotFoundException)
from src.domain.value_objects import TenantId
from src.infrastructure.persistence.repositories.tenant_repo import \
    TenantRepository
from src.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class IsolationGuard:
    """Resolves the calling tenant and checks ownership of loaded objects"""

    def __init__(self, tenant_repo: TenantRepository):
        self.tenant_repo = tenant_repo

    async def require_tenant(self, tenant_id: str, *, write: bool = False) -> TenantEntity:
        """
        Resolve the calling tenant.

        Raises:
            TenantNotFoundException: unknown or empty tenant id
            TenantInactiveException: write requested by a suspended or archived tenant
        """
        try:
            TenantId(tenant_id)
        except ValueError as e:
            raise TenantNotFoundException(tenant_id) from e

        row = await self.tenant_repo.get_by_id(tenant_id)
        if row is None:
            raise TenantNotFoundException(tenant_id)

        tenant = row.to_entity()
        if write and not tenant.can_write():
            logger.warning("Write rejected for %s tenant %s", tenant.status.value, tenant_id)
            raise TenantInactiveException(tenant_id, tenant.status.value)
        return tenant


def ensure_owned(tenant_id: str, obj: Any, resource_type: str, resource_id: str) -> None:
    """
    Check that a loaded object belongs to the calling tenant.

    The raised error renders exactly like a missing resource.
    """
    owner = getattr(obj, "tenant_id", None)
    if owner != tenant_id:
        logger.warning(
            "Cross-tenant access blocked: %s %s requested by tenant %s",
            resource_type,
            resource_id,
            tenant_id,
        )
        raise CrossTenantAccessException(resource_type, resource_id)
