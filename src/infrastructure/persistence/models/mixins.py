"""
SQLAlchemy mixins for common model patterns.

These mixins provide reusable column definitions to follow DRY principles
and ensure consistency across all models.
"""
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from src.shared.utils.generators import generate_cuid


class CuidMixin:
    """
    Mixin for models using CUID as primary key.

    Provides:
        - id: String primary key with automatic CUID generation
    """

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class TenantMixin:
    """
    Mixin for multi-tenant models.

    Provides:
        - tenant_id: Foreign key to tenant table

    Tenant rows are never hard-deleted while they own data, so the key
    restricts rather than cascades.
    """

    @declared_attr
    def tenant_id(cls) -> Mapped[str]:
        return mapped_column(
            String,
            ForeignKey("tenant.id", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        )


class TimestampMixin:
    """
    Mixin for timestamp tracking.

    Provides:
        - created_at: Timestamp set on creation (server-side default)
        - updated_at: Timestamp updated on modification (server-side default + onupdate)

    Note: Uses timezone-aware DateTime for consistency
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )


class VersionedMixin:
    """
    Optimistic locking with a concurrency token.

    Provides:
        - lock_version: Integer counter incremented on each guarded update

    Repositories compare-and-swap on it:
        result = await db.execute(
            update(Model)
            .where(Model.id == id, Model.lock_version == expected)
            .values(..., lock_version=Model.lock_version + 1)
        )
        if result.rowcount == 0:
            raise ConcurrentModificationException(...)
    """

    @declared_attr
    def lock_version(cls) -> Mapped[int]:
        return mapped_column(Integer, default=0, server_default="0", nullable=False)


class MultiTenantModel(CuidMixin, TenantMixin, TimestampMixin):
    """
    Complete mixin for standard multi-tenant models.

    Combines:
        - CuidMixin: CUID primary key
        - TenantMixin: Tenant foreign key
        - TimestampMixin: Created/updated timestamps
    """

    __abstract__ = True
