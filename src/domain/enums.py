"""Domain enumerations for the Formvault application."""

from enum import Enum


class TenantStatus(str, Enum):
    """Tenant status enumeration"""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    ARCHIVED = "archived"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [status.value for status in cls]


class FieldKind(str, Enum):
    """Closed set of field kinds a schema may declare"""

    PRIMITIVE = "primitive"
    ENUM = "enum"
    NESTED = "nested"
    ARRAY = "array"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [kind.value for kind in cls]


class PrimitiveType(str, Enum):
    """Scalar value types for primitive and array fields"""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [kind.value for kind in cls]


class ViolationKind(str, Enum):
    """Reasons a candidate value fails validation"""

    MISSING_REQUIRED = "missing-required"
    WRONG_TYPE = "wrong-type"
    NOT_IN_ENUM = "not-in-enum"
    MALFORMED_NESTED = "malformed-nested"
    UNKNOWN_FIELD = "unknown-field"
    TOO_DEEP = "too-deep"


class UnknownFieldPolicy(str, Enum):
    """
    How the validator treats candidate keys the schema does not declare.

    WARN keeps the record valid and reports the key as a warning.
    REJECT reports the key as a violation.
    """

    WARN = "warn"
    REJECT = "reject"
