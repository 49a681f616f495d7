"""Tenant registration and lifecycle"""

from sqlalchemy.exc import IntegrityError

from src.domain.entities.tenant import TenantEntity
from src.domain.enums import TenantStatus
from src.domain.exceptions import (DuplicateNameException,
                                   InvalidValueException,
                                   TenantNotFoundException)
from src.domain.value_objects.core import TenantCode
from src.infrastructure.persistence.models.tenant import Tenant
from src.infrastructure.persistence.repositories.tenant_repo import \
    TenantRepository
from src.shared.telemetry.logging import get_logger
from src.shared.telemetry.tracing import traced

logger = get_logger(__name__)


class TenantRegistry:
    """
    Maps tenant identities to isolation boundaries.

    New tenants start ACTIVE. Status changes follow TenantEntity rules, so
    an archived tenant stays archived.
    """

    def __init__(self, tenant_repo: TenantRepository) -> None:
        self.tenant_repo = tenant_repo

    @traced("tenant_registry.register_tenant")
    async def register_tenant(self, code: str, name: str) -> TenantEntity:
        """
        Register a new tenant.

        Raises:
            InvalidValueException: code fails TenantCode rules or name is blank
            DuplicateNameException: code already registered
        """
        try:
            tenant_code = TenantCode(code)
        except ValueError as e:
            raise InvalidValueException("tenant code", str(e)) from e
        if not name or not name.strip():
            raise InvalidValueException("tenant name", "must not be blank")

        if await self.tenant_repo.get_by_code(tenant_code.value) is not None:
            raise DuplicateNameException("Tenant", tenant_code.value)

        try:
            row = await self.tenant_repo.create(
                Tenant(code=tenant_code.value, name=name.strip(), status=TenantStatus.ACTIVE.value)
            )
        except IntegrityError as e:
            raise DuplicateNameException("Tenant", tenant_code.value) from e

        logger.info("Registered tenant %s (%s)", row.id, row.code)
        return row.to_entity()

    async def get_tenant(self, tenant_id: str) -> TenantEntity:
        row = await self.tenant_repo.get_by_id(tenant_id)
        if row is None:
            raise TenantNotFoundException(tenant_id)
        return row.to_entity()

    async def get_by_code(self, code: str) -> TenantEntity:
        row = await self.tenant_repo.get_by_code(code)
        if row is None:
            raise TenantNotFoundException(code)
        return row.to_entity()

    async def list_tenants(
        self, skip: int = 0, limit: int = 100, *, active_only: bool = False
    ) -> list[TenantEntity]:
        rows = await self.tenant_repo.list_tenants(skip, limit, active_only=active_only)
        return [row.to_entity() for row in rows]

    @traced("tenant_registry.change_status")
    async def change_status(self, tenant_id: str, status: TenantStatus) -> TenantEntity:
        """
        Move a tenant to a new status.

        Raises:
            TenantNotFoundException: unknown tenant
            InvalidStateTransitionException: the tenant's rules forbid the move
        """
        row = await self.tenant_repo.get_by_id(tenant_id)
        if row is None:
            raise TenantNotFoundException(tenant_id)

        tenant = row.to_entity()
        previous = tenant.status
        tenant.transition_to(status)

        row = await self.tenant_repo.update_status(row, tenant.status)
        logger.info("Tenant %s status changed: %s -> %s", tenant_id, previous.value, tenant.status.value)
        return row.to_entity()
