"""
Domain exceptions for the Formvault application.

This module defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns.
"""

from collections.abc import Sequence
from typing import Any


class FormvaultException(Exception):
    """
    Base exception for all Formvault application errors.

    All custom exceptions should inherit from this class to allow
    for consistent error handling and logging.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for API responses
        details: Additional error context
        retryable: Whether a caller may safely retry after re-reading state
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class TenantNotFoundException(FormvaultException):
    """Raised when the calling tenant is not registered."""

    def __init__(self, tenant_id: str):
        super().__init__(
            f"Tenant not found: {tenant_id}",
            "TENANT_NOT_FOUND",
            {"tenant_id": tenant_id},
        )


class TenantInactiveException(FormvaultException):
    """Raised when a suspended or archived tenant attempts a write."""

    def __init__(self, tenant_id: str, status: str):
        super().__init__(
            f"Tenant {tenant_id} is {status} and cannot modify data",
            "TENANT_INACTIVE",
            {"tenant_id": tenant_id, "status": status},
        )


class ResourceNotFoundException(FormvaultException):
    """
    Raised when a requested resource is not found.

    Also raised for resources owned by another tenant; callers cannot tell
    the two cases apart.
    """

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class CrossTenantAccessException(ResourceNotFoundException):
    """
    Raised when a loaded object belongs to a different tenant than the caller.

    Renders exactly like ResourceNotFoundException so existence never leaks
    across tenants. The distinct type exists for logging and tests only.
    """


class DuplicateNameException(FormvaultException):
    """Raised when a name must be unique within its scope and is not."""

    def __init__(self, resource_type: str, name: str):
        super().__init__(
            f"{resource_type} already exists: {name}",
            "DUPLICATE_NAME",
            {"resource_type": resource_type, "name": name},
        )


class RecordValidationException(FormvaultException):
    """Raised when record values fail validation against their schema version."""

    def __init__(self, violations: Sequence[Any], warnings: Sequence[Any] = ()):
        self.violations = list(violations)
        self.warnings = list(warnings)
        super().__init__(
            f"Validation failed with {len(self.violations)} violation(s)",
            "VALIDATION_FAILED",
            {
                "violations": [_as_dict(v) for v in self.violations],
                "warnings": [_as_dict(w) for w in self.warnings],
            },
        )


class MalformedSchemaException(FormvaultException):
    """Raised when a field structure submitted for publishing is not well-formed."""

    def __init__(self, problems: Sequence[Any]):
        self.problems = list(problems)
        super().__init__(
            f"Schema definition is malformed ({len(self.problems)} problem(s))",
            "MALFORMED_SCHEMA",
            {"problems": [_as_dict(p) for p in self.problems]},
        )


class ConcurrentModificationException(FormvaultException):
    """
    Raised when an optimistic concurrency check fails.

    Always safe to retry after re-reading the current state.
    """

    retryable = True

    def __init__(self, resource_type: str, resource_id: str, expected: int, actual: int | None = None):
        details: dict[str, Any] = {
            "resource_type": resource_type,
            "resource_id": resource_id,
            "expected_version": expected,
        }
        if actual is not None:
            details["current_version"] = actual
        super().__init__(
            f"{resource_type} {resource_id} was modified concurrently",
            "CONCURRENT_MODIFICATION",
            details,
        )


class ResourceInUseException(FormvaultException):
    """Raised when a delete is blocked by existing references."""

    def __init__(self, resource_type: str, resource_id: str, reference_count: int):
        super().__init__(
            f"{resource_type} {resource_id} is referenced by {reference_count} record(s)",
            "RESOURCE_IN_USE",
            {
                "resource_type": resource_type,
                "resource_id": resource_id,
                "reference_count": reference_count,
            },
        )


class InvalidValueException(FormvaultException):
    """Raised when an identifier or name fails its value object rules."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            f"Invalid {field}: {reason}",
            "INVALID_VALUE",
            {"field": field, "reason": reason},
        )


class InvalidStateTransitionException(FormvaultException):
    """Raised when an entity is asked to move to a state its rules forbid."""

    def __init__(self, message: str, current: str, requested: str):
        super().__init__(
            message,
            "INVALID_STATE_TRANSITION",
            {"current": current, "requested": requested},
        )


def _as_dict(item: Any) -> Any:
    to_dict = getattr(item, "to_dict", None)
    return to_dict() if callable(to_dict) else item
