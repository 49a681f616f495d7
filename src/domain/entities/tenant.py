"""
Tenant domain entity.

This represents the business concept of a tenant, independent of
how it's stored in the database.
"""

from dataclasses import dataclass

from src.domain.enums import TenantStatus
from src.domain.exceptions import InvalidStateTransitionException
from src.domain.value_objects.core import TenantCode


@dataclass
class TenantEntity:
    """
    Domain entity for Tenant (SRP - business logic separate from persistence)

    A tenant is the isolation boundary: every definition, version and record
    carries exactly one owning tenant id.
    """

    id: str
    code: TenantCode
    name: str
    status: TenantStatus

    def can_write(self) -> bool:
        """
        Business rule: only ACTIVE tenants can publish schemas or bind records
        """
        return self.status == TenantStatus.ACTIVE

    def activate(self) -> None:
        """
        Activate tenant.
        Archived tenants cannot be activated.
        Suspended tenants can be activated.
        """
        if self.status == TenantStatus.ARCHIVED:
            raise InvalidStateTransitionException(
                "Archived tenants cannot be activated", self.status.value, TenantStatus.ACTIVE.value
            )
        self.status = TenantStatus.ACTIVE

    def suspend(self) -> None:
        """
        Suspend tenant.
        Suspended tenants keep read access to their schemas and records.
        """
        if self.status == TenantStatus.ARCHIVED:
            raise InvalidStateTransitionException(
                "Archived tenants cannot be suspended", self.status.value, TenantStatus.SUSPENDED.value
            )
        self.status = TenantStatus.SUSPENDED

    def archive(self) -> None:
        """
        Archive tenant.
        Archiving is irreversible.
        """
        if self.status == TenantStatus.ARCHIVED:
            raise InvalidStateTransitionException(
                "Tenant is already archived", self.status.value, TenantStatus.ARCHIVED.value
            )
        self.status = TenantStatus.ARCHIVED

    def transition_to(self, status: TenantStatus) -> None:
        """Apply the transition rule matching the requested status."""
        if status == TenantStatus.ACTIVE:
            self.activate()
        elif status == TenantStatus.SUSPENDED:
            self.suspend()
        else:
            self.archive()
