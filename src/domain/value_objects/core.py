import re
from dataclasses import dataclass

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
FIELD_NAME_MAX_LENGTH = 64


@dataclass(frozen=True)
class TenantCode:
    """
    Value object for Tenant Code (SRP - tenant code validation)

    Tenant codes must be:
    - 3-15 characters
    - lowercase
    - alphanumeric with optional hyphen
    """

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("Tenant code must be a non-empty string")

        if len(self.value) < 3 or len(self.value) > 15:
            raise ValueError("Tenant code must be 3-15 characters")

        if not re.match(r"^[a-z0-9]+(-[a-z0-9]+)*$", self.value):
            raise ValueError(
                "Tenant code must be lowercase alphanumeric with optional hyphens "
                "(e.g., 'acme', 'wood-co', 'abc123')"
            )


@dataclass(frozen=True)
class TenantId:
    """Value object for Tenant ID (SRP - single validation responsibility)"""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("Tenant ID must be a non-empty string")
        if len(self.value) > 255:
            raise ValueError("Tenant ID must not exceed 255 characters")


@dataclass(frozen=True)
class DefinitionName:
    """Value object for a schema definition name, unique per tenant"""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("Definition name must be a non-empty string")
        if self.value != self.value.strip():
            raise ValueError("Definition name must not have leading or trailing whitespace")
        if len(self.value) > 100:
            raise ValueError("Definition name must be 100 characters or less")


def is_valid_field_name(name: object) -> bool:
    """Field names are path segments, so dots and brackets are not allowed."""
    return (
        isinstance(name, str)
        and len(name) <= FIELD_NAME_MAX_LENGTH
        and FIELD_NAME_PATTERN.fullmatch(name) is not None
    )
