from datetime import datetime
from typing import Any

from sqlalchemy import (JSON, Boolean, CheckConstraint, DateTime, ForeignKey,
                        Integer, String, UniqueConstraint)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.domain.entities.field_spec import fields_from_dicts
from src.domain.entities.schema_version import SchemaVersionEntity
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import CuidMixin, TenantMixin
from src.shared.utils.datetime import ensure_utc


class SchemaVersion(CuidMixin, TenantMixin, Base):
    """
    Immutable snapshot of a definition's field structure.

    Inherits from CuidMixin and TenantMixin:
        - id: CUID primary key
        - tenant_id: Foreign key to tenant (copied from the definition)

    Immutable versioning: once created, fields never change. is_active is
    the only column ever updated, and exactly one row per definition has it
    set once the definition has published.
    """

    __tablename__ = "schema_version"

    definition_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("schema_definition.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    fields: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False
    )  # Immutable after creation
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("definition_id", "version", name="uq_schema_version_definition_version"),
        CheckConstraint("version >= 1", name="schema_version_positive_check"),
    )

    def to_entity(self) -> SchemaVersionEntity:
        return SchemaVersionEntity(
            id=self.id,
            tenant_id=self.tenant_id,
            definition_id=self.definition_id,
            version=self.version,
            fields=fields_from_dicts(self.fields),
            is_active=self.is_active,
            created_at=ensure_utc(self.created_at),
        )
