from typing import Any

from sqlalchemy import JSON, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.entities.bound_record import BoundRecordEntity
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import MultiTenantModel
from src.shared.utils.datetime import ensure_utc


class BoundRecord(MultiTenantModel, Base):
    """
    Downstream record pinned to one schema version.

    Inherits from MultiTenantModel:
        - id: CUID primary key
        - tenant_id: Foreign key to tenant
        - created_at: Creation timestamp
        - updated_at: Last update timestamp

    Both foreign keys restrict deletes, so a definition or version cannot
    disappear while a record still references it.
    """

    __tablename__ = "bound_record"

    definition_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("schema_definition.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    schema_version_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("schema_version.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)  # denormalized for reads
    field_values: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_bound_record_tenant_definition", "tenant_id", "definition_id"),
    )

    def to_entity(self) -> BoundRecordEntity:
        return BoundRecordEntity(
            id=self.id,
            tenant_id=self.tenant_id,
            definition_id=self.definition_id,
            schema_version_id=self.schema_version_id,
            version=self.version,
            values=dict(self.field_values),
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )
