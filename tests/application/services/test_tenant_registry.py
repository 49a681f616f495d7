"""Tests for tenant registration and lifecycle"""

import pytest

from src.application.services.tenant_registry import TenantRegistry
from src.domain.enums import TenantStatus
from src.domain.exceptions import (DuplicateNameException,
                                   InvalidStateTransitionException,
                                   InvalidValueException,
                                   TenantNotFoundException)
from src.infrastructure.persistence.repositories import TenantRepository


@pytest.fixture
def registry(test_db) -> TenantRegistry:
    return TenantRegistry(TenantRepository(test_db))


class TestTenantRegistry:
    """Unit tests for TenantRegistry."""

    @pytest.mark.asyncio
    async def test_register_tenant(self, registry):
        tenant = await registry.register_tenant("wood-co", "  Wood Co ")

        assert tenant.code.value == "wood-co"
        assert tenant.name == "Wood Co"
        assert tenant.status is TenantStatus.ACTIVE
        assert (await registry.get_by_code("wood-co")).id == tenant.id

    @pytest.mark.asyncio
    async def test_duplicate_code_is_rejected(self, registry):
        await registry.register_tenant("wood-co", "Wood Co")

        with pytest.raises(DuplicateNameException):
            await registry.register_tenant("wood-co", "Another Wood Co")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("code", "name"),
        [("WoodCo", "Wood Co"), ("ab", "Too short"), ("wood_co", "Underscore"), ("wood-co", " ")],
    )
    async def test_invalid_input_is_rejected(self, registry, code, name):
        with pytest.raises(InvalidValueException):
            await registry.register_tenant(code, name)

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, registry):
        with pytest.raises(TenantNotFoundException):
            await registry.get_tenant("missing")

    @pytest.mark.asyncio
    async def test_list_tenants_active_only(self, registry):
        wood = await registry.register_tenant("wood-co", "Wood Co")
        stone = await registry.register_tenant("stone-co", "Stone Co")
        await registry.change_status(stone.id, TenantStatus.SUSPENDED)

        everyone = await registry.list_tenants()
        active = await registry.list_tenants(active_only=True)

        assert [t.code.value for t in everyone] == ["stone-co", "wood-co"]
        assert [t.id for t in active] == [wood.id]

    @pytest.mark.asyncio
    async def test_status_lifecycle(self, registry):
        """
        GIVEN an active tenant
        WHEN it is suspended, reactivated and archived
        THEN each step applies, and nothing moves it out of archived.
        """
        tenant = await registry.register_tenant("wood-co", "Wood Co")

        assert (await registry.change_status(tenant.id, TenantStatus.SUSPENDED)).status is TenantStatus.SUSPENDED
        assert (await registry.change_status(tenant.id, TenantStatus.ACTIVE)).status is TenantStatus.ACTIVE
        assert (await registry.change_status(tenant.id, TenantStatus.ARCHIVED)).status is TenantStatus.ARCHIVED

        with pytest.raises(InvalidStateTransitionException):
            await registry.change_status(tenant.id, TenantStatus.ACTIVE)
