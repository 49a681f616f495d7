"""Domain value objects."""

from src.domain.value_objects.core import (FIELD_NAME_MAX_LENGTH,
                                           FIELD_NAME_PATTERN, DefinitionName,
                                           TenantCode, TenantId,
                                           is_valid_field_name)
from src.domain.value_objects.validation import (ROOT_PATH, StructureProblem,
                                                 ValidationResult, Violation)

__all__ = [
    "TenantCode",
    "TenantId",
    "DefinitionName",
    "FIELD_NAME_MAX_LENGTH",
    "FIELD_NAME_PATTERN",
    "is_valid_field_name",
    "ROOT_PATH",
    "StructureProblem",
    "ValidationResult",
    "Violation",
]
