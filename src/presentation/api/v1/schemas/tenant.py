from pydantic import BaseModel, field_validator

from src.domain.entities.tenant import TenantEntity
from src.domain.enums import TenantStatus
from src.domain.value_objects.core import TenantCode


class TenantCreate(BaseModel):
    """Schema for creating a tenant - status is always ACTIVE by default"""

    code: str
    name: str

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        """Validate tenant code using TenantCode value object"""
        TenantCode(value=v)  # Raises ValueError if invalid
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Tenant name cannot be blank")
        return v.strip()


class TenantStatusUpdate(BaseModel):
    """Schema for updating tenant status"""

    new_status: TenantStatus


class TenantResponse(BaseModel):
    """Schema for tenant responses"""

    id: str
    code: str
    name: str
    status: TenantStatus

    @classmethod
    def from_entity(cls, tenant: TenantEntity) -> "TenantResponse":
        return cls(id=tenant.id, code=tenant.code.value, name=tenant.name, status=tenant.status)
