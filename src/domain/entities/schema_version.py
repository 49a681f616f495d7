"""
Schema definition and schema version domain entities.

A definition is the named, evolving contract. A version is one immutable,
numbered snapshot of the definition's field structure.
"""

from dataclasses import dataclass
from datetime import datetime

from src.domain.entities.field_spec import FieldSpec


@dataclass(frozen=True)
class SchemaDefinitionEntity:
    """
    Domain entity for SchemaDefinition.

    current_version is 0 until the first version is published. lock_version
    is the concurrency token bumped by every mutation of the definition row.
    """

    id: str
    tenant_id: str
    name: str
    current_version: int
    lock_version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_published(self) -> bool:
        return self.current_version > 0


@dataclass(frozen=True)
class SchemaVersionEntity:
    """
    Domain entity for SchemaVersion.

    Immutable versioning: the field structure never changes once created.
    Only the active flag moves, and it is derived from the owning
    definition's current_version when the entity is loaded.
    """

    id: str
    tenant_id: str
    definition_id: str
    version: int
    fields: tuple[FieldSpec, ...]
    is_active: bool
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.version < 1:
            raise ValueError("Schema version must be positive")

    def same_content_as(self, other: "SchemaVersionEntity") -> bool:
        """Structural equality, ignoring the active flag."""
        return (
            self.definition_id == other.definition_id
            and self.version == other.version
            and self.fields == other.fields
        )
