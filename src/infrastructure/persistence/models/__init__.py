from src.infrastructure.persistence.models.bound_record import BoundRecord
# Mixins for model composition
from src.infrastructure.persistence.models.mixins import (CuidMixin,
                                                          MultiTenantModel,
                                                          TenantMixin,
                                                          TimestampMixin,
                                                          VersionedMixin)
from src.infrastructure.persistence.models.schema_definition import \
    SchemaDefinition
from src.infrastructure.persistence.models.schema_version import SchemaVersion
from src.infrastructure.persistence.models.tenant import Tenant

__all__ = [
    # Models
    "Tenant",
    "SchemaDefinition",
    "SchemaVersion",
    "BoundRecord",
    # Mixins
    "CuidMixin",
    "TenantMixin",
    "TimestampMixin",
    "VersionedMixin",
    "MultiTenantModel",
]
