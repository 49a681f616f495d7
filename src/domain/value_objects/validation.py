"""
Validation result value objects.

Produced by the schema validator and the field structure checks. Both are
immutable so a result can be shared between callers and cached.
"""

from dataclasses import dataclass, field
from typing import Any

from src.domain.enums import ViolationKind

ROOT_PATH = "$"


@dataclass(frozen=True)
class Violation:
    """One failed check at a field path (e.g. ``address.city`` or ``tags[2]``)."""

    path: str
    kind: ViolationKind

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "kind": self.kind.value}


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating a candidate value against a schema version.

    violations: ordered hard failures; empty means the candidate is valid
    warnings: ordered soft findings (unknown fields under the lenient policy)
    """

    violations: tuple[Violation, ...] = ()
    warnings: tuple[Violation, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.is_valid,
            "violations": [v.to_dict() for v in self.violations],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class StructureProblem:
    """A reason a field structure cannot be published."""

    path: str
    reason: str
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path, "reason": self.reason}
        if self.extra:
            data.update(self.extra)
        return data
