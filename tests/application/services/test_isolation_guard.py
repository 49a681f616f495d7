"""Tests for tenant isolation"""

from types import SimpleNamespace

import pytest

from src.application.services.isolation_guard import (IsolationGuard,
                                                      ensure_owned)
from src.application.services.tenant_registry import TenantRegistry
from src.domain.enums import TenantStatus
from src.domain.exceptions import (CrossTenantAccessException,
                                   ResourceNotFoundException,
                                   TenantInactiveException,
                                   TenantNotFoundException)
from src.infrastructure.persistence.repositories import TenantRepository

GOOD_PLANK = {"species": "oak", "length_mm": 2400, "grade": "A"}


async def _set_status(session_factory, tenant_id: str, status: TenantStatus) -> None:
    async with session_factory() as session, session.begin():
        await TenantRegistry(TenantRepository(session)).change_status(tenant_id, status)


class TestIsolationGuard:
    """Unit tests for IsolationGuard."""

    @pytest.mark.asyncio
    async def test_known_active_tenant_is_resolved(self, test_db, tenant):
        guard = IsolationGuard(TenantRepository(test_db))

        resolved = await guard.require_tenant(tenant.id, write=True)

        assert resolved.id == tenant.id
        assert resolved.can_write()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tenant_id", ["", "no-such-tenant"])
    async def test_unknown_tenant_is_rejected(self, test_db, tenant_id):
        guard = IsolationGuard(TenantRepository(test_db))

        with pytest.raises(TenantNotFoundException):
            await guard.require_tenant(tenant_id)

    @pytest.mark.asyncio
    async def test_suspended_tenant_can_read_but_not_write(
        self, session_factory, test_db, tenant
    ):
        await _set_status(session_factory, tenant.id, TenantStatus.SUSPENDED)
        guard = IsolationGuard(TenantRepository(test_db))

        assert (await guard.require_tenant(tenant.id)).status is TenantStatus.SUSPENDED
        with pytest.raises(TenantInactiveException):
            await guard.require_tenant(tenant.id, write=True)

    def test_ensure_owned_accepts_own_objects(self):
        ensure_owned("t1", SimpleNamespace(tenant_id="t1"), "BoundRecord", "r1")

    def test_foreign_object_looks_like_a_missing_one(self):
        """
        GIVEN an object owned by another tenant
        WHEN ownership is checked
        THEN the error is a not-found error with the same payload a missing object gets.
        """
        with pytest.raises(CrossTenantAccessException) as exc_info:
            ensure_owned("t1", SimpleNamespace(tenant_id="t2"), "BoundRecord", "r1")

        assert isinstance(exc_info.value, ResourceNotFoundException)
        assert exc_info.value.to_dict() == ResourceNotFoundException("BoundRecord", "r1").to_dict()


class TestCrossTenantAccess:
    """Scenario tests: one tenant cannot see or touch another tenant's data."""

    @pytest.fixture
    async def foreign_record(self, version_manager, record_binder, tenant, plank_fields):
        definition = await version_manager.create_definition(tenant.id, "Plank")
        await version_manager.publish_version(tenant.id, definition.id, plank_fields, 0)
        record = await record_binder.create_record(tenant.id, definition.id, GOOD_PLANK)
        return definition, record

    @pytest.mark.asyncio
    async def test_records_are_invisible_to_other_tenants(
        self, record_binder, other_tenant, foreign_record
    ):
        _, record = foreign_record

        assert await record_binder.list_records(other_tenant.id) == []
        with pytest.raises(ResourceNotFoundException):
            await record_binder.get_record(other_tenant.id, record.id)
        with pytest.raises(ResourceNotFoundException):
            await record_binder.update_record_values(other_tenant.id, record.id, GOOD_PLANK)
        with pytest.raises(ResourceNotFoundException):
            await record_binder.rebind_record(other_tenant.id, record.id, 1)
        with pytest.raises(ResourceNotFoundException):
            await record_binder.delete_record(other_tenant.id, record.id)

    @pytest.mark.asyncio
    async def test_versions_are_invisible_to_other_tenants(
        self, version_manager, record_binder, other_tenant, foreign_record
    ):
        definition, _ = foreign_record

        with pytest.raises(ResourceNotFoundException):
            await version_manager.get_version(other_tenant.id, definition.id, 1)
        with pytest.raises(ResourceNotFoundException):
            await version_manager.get_active_version(other_tenant.id, definition.id)
        with pytest.raises(ResourceNotFoundException):
            await version_manager.list_versions(other_tenant.id, definition.id)
        with pytest.raises(ResourceNotFoundException):
            await record_binder.create_record(other_tenant.id, definition.id, GOOD_PLANK)

    @pytest.mark.asyncio
    async def test_suspended_tenant_cannot_publish(
        self, session_factory, version_manager, tenant, plank_fields
    ):
        await _set_status(session_factory, tenant.id, TenantStatus.SUSPENDED)

        with pytest.raises(TenantInactiveException):
            await version_manager.create_definition(tenant.id, "Plank")
