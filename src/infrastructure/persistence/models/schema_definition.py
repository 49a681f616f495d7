from sqlalchemy import CheckConstraint, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.entities.schema_version import SchemaDefinitionEntity
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import (MultiTenantModel,
                                                          VersionedMixin)
from src.shared.utils.datetime import ensure_utc


class SchemaDefinition(MultiTenantModel, VersionedMixin, Base):
    """
    Named schema owned by one tenant.

    Inherits from MultiTenantModel:
        - id: CUID primary key
        - tenant_id: Foreign key to tenant
        - created_at: Creation timestamp
        - updated_at: Last update timestamp

    Inherits from VersionedMixin:
        - lock_version: concurrency token, bumped on every guarded write

    This small row is the only contended state per definition. Version
    content lives in schema_version and is never updated.
    """

    __tablename__ = "schema_definition"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    current_version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )  # 0 until the first publish

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_schema_definition_tenant_name"),
        CheckConstraint("current_version >= 0", name="schema_definition_current_version_check"),
    )

    def to_entity(self) -> SchemaDefinitionEntity:
        return SchemaDefinitionEntity(
            id=self.id,
            tenant_id=self.tenant_id,
            name=self.name,
            current_version=self.current_version,
            lock_version=self.lock_version,
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )
