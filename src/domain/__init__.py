"""
Domain layer - Enterprise Business Rules.

This is the innermost layer containing business entities, value objects,
and domain exceptions. It has no dependencies on other layers.
"""

from src.domain.entities import (BoundRecordEntity, SchemaDefinitionEntity,
                                 SchemaVersionEntity, TenantEntity)
from src.domain.enums import (FieldKind, PrimitiveType, TenantStatus,
                              UnknownFieldPolicy, ViolationKind)
from src.domain.exceptions import (ConcurrentModificationException,
                                   CrossTenantAccessException,
                                   DuplicateNameException, FormvaultException,
                                   InvalidStateTransitionException,
                                   InvalidValueException,
                                   MalformedSchemaException,
                                   RecordValidationException,
                                   ResourceInUseException,
                                   ResourceNotFoundException,
                                   TenantInactiveException,
                                   TenantNotFoundException)
from src.domain.value_objects import (DefinitionName, TenantCode, TenantId,
                                      ValidationResult, Violation)

__all__ = [
    # Entities
    "BoundRecordEntity",
    "SchemaDefinitionEntity",
    "SchemaVersionEntity",
    "TenantEntity",
    # Value Objects
    "DefinitionName",
    "TenantCode",
    "TenantId",
    "ValidationResult",
    "Violation",
    # Enums
    "FieldKind",
    "PrimitiveType",
    "TenantStatus",
    "UnknownFieldPolicy",
    "ViolationKind",
    # Exceptions
    "FormvaultException",
    "TenantNotFoundException",
    "TenantInactiveException",
    "ResourceNotFoundException",
    "CrossTenantAccessException",
    "DuplicateNameException",
    "RecordValidationException",
    "MalformedSchemaException",
    "ConcurrentModificationException",
    "ResourceInUseException",
    "InvalidStateTransitionException",
    "InvalidValueException",
]
