from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.entities.bound_record import BoundRecordEntity
from src.domain.enums import UnknownFieldPolicy
from src.presentation.api.v1.schemas.schema_definition import \
    SchemaVersionResponse


class RecordCreate(BaseModel):
    """Schema for binding a new record to a definition's active version"""

    definition_id: str = Field(min_length=1)
    values: Any
    policy: UnknownFieldPolicy | None = None


class RecordValuesUpdate(BaseModel):
    """Schema for replacing a record's values"""

    values: Any
    policy: UnknownFieldPolicy | None = None


class RecordRebind(BaseModel):
    """Schema for explicitly moving a record to another version"""

    target_version: int = Field(ge=1)
    policy: UnknownFieldPolicy | None = None


class RecordResponse(BaseModel):
    """Schema for record responses"""

    id: str
    tenant_id: str
    definition_id: str
    schema_version_id: str
    version: int
    values: dict[str, Any]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_entity(cls, record: BoundRecordEntity) -> "RecordResponse":
        return cls.model_validate(record)


class RecordWithVersionResponse(BaseModel):
    """Record together with the schema version it is bound to"""

    record: RecordResponse
    schema_version: SchemaVersionResponse
