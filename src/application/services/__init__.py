"""Application services."""

from src.application.services.field_structure import (check_structure,
                                                       coerce_fields,
                                                       parse_fields,
                                                       to_json_schema)
from src.application.services.isolation_guard import (IsolationGuard,
                                                      ensure_owned)
from src.application.services.record_binder import RecordBinder
from src.application.services.schema_validator import (SchemaValidator,
                                                       validate_fields)
from src.application.services.tenant_registry import TenantRegistry
from src.application.services.version_manager import (VersionManager,
                                                      publish_with_retry)

__all__ = [
    "IsolationGuard",
    "RecordBinder",
    "SchemaValidator",
    "TenantRegistry",
    "VersionManager",
    "check_structure",
    "coerce_fields",
    "ensure_owned",
    "parse_fields",
    "publish_with_retry",
    "to_json_schema",
    "validate_fields",
]
