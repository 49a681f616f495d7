"""Domain entities."""

from src.domain.entities.bound_record import BoundRecordEntity
from src.domain.entities.field_spec import (ArrayField, EnumField, FieldSpec,
                                            NestedField, PrimitiveField,
                                            fields_from_dicts, fields_to_dicts)
from src.domain.entities.schema_version import (SchemaDefinitionEntity,
                                                SchemaVersionEntity)
from src.domain.entities.tenant import TenantEntity

__all__ = [
    "ArrayField",
    "BoundRecordEntity",
    "EnumField",
    "FieldSpec",
    "NestedField",
    "PrimitiveField",
    "SchemaDefinitionEntity",
    "SchemaVersionEntity",
    "TenantEntity",
    "fields_from_dicts",
    "fields_to_dicts",
]
