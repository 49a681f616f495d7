from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.entities.schema_version import (SchemaDefinitionEntity,
                                                SchemaVersionEntity)
from src.domain.entities.field_spec import fields_to_dicts
from src.domain.enums import PrimitiveType, UnknownFieldPolicy
from src.domain.value_objects import ValidationResult

FieldName = Annotated[str, Field(min_length=1, max_length=64)]


class SchemaDefinitionCreate(BaseModel):
    """Schema for creating an empty schema definition"""

    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Definition name must be a non-empty string")
        if len(v) > 100:
            raise ValueError("Definition name must be 100 characters or less")
        return v.strip()


class SchemaDefinitionResponse(BaseModel):
    """Schema for schema definition responses"""

    id: str
    tenant_id: str
    name: str
    current_version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_entity(cls, definition: SchemaDefinitionEntity) -> "SchemaDefinitionResponse":
        return cls.model_validate(definition)


class _FieldIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: FieldName
    required: bool = False


class PrimitiveFieldIn(_FieldIn):
    kind: Literal["primitive"]
    type: PrimitiveType


class EnumFieldIn(_FieldIn):
    kind: Literal["enum"]
    values: list[Union[bool, int, float, str]]


class NestedFieldIn(_FieldIn):
    kind: Literal["nested"]
    fields: list["FieldIn"]


class ArrayFieldIn(_FieldIn):
    kind: Literal["array"]
    item_type: PrimitiveType


FieldIn = Annotated[
    Union[PrimitiveFieldIn, EnumFieldIn, NestedFieldIn, ArrayFieldIn],
    Field(discriminator="kind"),
]

NestedFieldIn.model_rebuild()


class SchemaVersionPublish(BaseModel):
    """Schema for publishing a new version of a definition"""

    expected_version: int = Field(ge=0, description="Version number the caller last saw (0 before the first publish)")
    fields: list[FieldIn]

    def raw_fields(self) -> list[dict[str, Any]]:
        return [f.model_dump(mode="json") for f in self.fields]


class SchemaVersionResponse(BaseModel):
    """Schema for schema version responses"""

    id: str
    tenant_id: str
    definition_id: str
    version: int
    is_active: bool
    fields: list[dict[str, Any]]
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, version: SchemaVersionEntity) -> "SchemaVersionResponse":
        return cls(
            id=version.id,
            tenant_id=version.tenant_id,
            definition_id=version.definition_id,
            version=version.version,
            is_active=version.is_active,
            fields=fields_to_dicts(version.fields),
            created_at=version.created_at,
        )


class ValidateValuesRequest(BaseModel):
    """Dry-run validation request"""

    values: Any
    policy: UnknownFieldPolicy | None = None


class ViolationOut(BaseModel):
    path: str
    kind: str


class ValidationResponse(BaseModel):
    valid: bool
    violations: list[ViolationOut]
    warnings: list[ViolationOut]

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls.model_validate(result.to_dict())
