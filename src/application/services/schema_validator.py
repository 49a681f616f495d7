"""Validation of candidate record values against a schema version"""

import math
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from src.domain.entities.field_spec import (ArrayField, EnumField, FieldSpec,
                                            NestedField, PrimitiveField)
from src.domain.entities.schema_version import SchemaVersionEntity
from src.domain.enums import PrimitiveType, UnknownFieldPolicy, ViolationKind
from src.domain.value_objects import ROOT_PATH, ValidationResult, Violation

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


class SchemaValidator:
    """
    Stateless validator for record values.

    Never raises and never touches storage; the same inputs always give the
    same result.
    """

    def __init__(self, policy: UnknownFieldPolicy = UnknownFieldPolicy.WARN):
        self.policy = policy

    def validate(
        self,
        version: SchemaVersionEntity,
        candidate: Any,
        policy: UnknownFieldPolicy | None = None,
    ) -> ValidationResult:
        return validate_fields(version.fields, candidate, policy or self.policy)


def validate_fields(
    fields: Sequence[FieldSpec],
    candidate: Any,
    policy: UnknownFieldPolicy = UnknownFieldPolicy.WARN,
) -> ValidationResult:
    """
    Validate a candidate mapping against a field structure.

    Violations follow field declaration order, depth first. Undeclared keys
    come after the declared fields of their level and are warnings or
    violations depending on policy.
    """
    if not isinstance(candidate, Mapping):
        return ValidationResult(violations=(Violation(ROOT_PATH, ViolationKind.MALFORMED_NESTED),))

    violations: list[Violation] = []
    warnings: list[Violation] = []
    _validate_level(fields, candidate, "", policy, violations, warnings)
    return ValidationResult(violations=tuple(violations), warnings=tuple(warnings))


def _validate_level(
    fields: Sequence[FieldSpec],
    values: Mapping,
    prefix: str,
    policy: UnknownFieldPolicy,
    violations: list[Violation],
    warnings: list[Violation],
) -> None:
    for spec in fields:
        path = _join(prefix, spec.name)
        value = values.get(spec.name)

        # null counts as absent
        if value is None:
            if spec.required:
                violations.append(Violation(path, ViolationKind.MISSING_REQUIRED))
            continue

        if isinstance(spec, PrimitiveField):
            if not matches_primitive(spec.type, value):
                violations.append(Violation(path, ViolationKind.WRONG_TYPE))
        elif isinstance(spec, EnumField):
            if not _is_enum_member(value, spec.values):
                violations.append(Violation(path, ViolationKind.NOT_IN_ENUM))
        elif isinstance(spec, NestedField):
            if not isinstance(value, Mapping):
                violations.append(Violation(path, ViolationKind.MALFORMED_NESTED))
            else:
                _validate_level(spec.fields, value, path, policy, violations, warnings)
        elif isinstance(spec, ArrayField):
            _validate_array(spec, value, path, violations)

    declared = {spec.name for spec in fields}
    for key in values:
        if key in declared:
            continue
        finding = Violation(_join(prefix, str(key)), ViolationKind.UNKNOWN_FIELD)
        if policy is UnknownFieldPolicy.REJECT:
            violations.append(finding)
        else:
            warnings.append(finding)


def _validate_array(spec: ArrayField, value: Any, path: str, violations: list[Violation]) -> None:
    if not isinstance(value, (list, tuple)):
        violations.append(Violation(path, ViolationKind.WRONG_TYPE))
        return
    for index, item in enumerate(value):
        if not matches_primitive(spec.item_type, item):
            violations.append(Violation(f"{path}[{index}]", ViolationKind.WRONG_TYPE))


def matches_primitive(primitive: PrimitiveType, value: Any) -> bool:
    """Whether a non-null value is acceptable for a primitive type"""
    if primitive is PrimitiveType.STRING:
        return isinstance(value, str)
    if primitive is PrimitiveType.BOOLEAN:
        return isinstance(value, bool)
    if primitive is PrimitiveType.NUMBER:
        if isinstance(value, bool):
            return False
        if isinstance(value, Decimal):
            return value.is_finite()
        if isinstance(value, (int, float)):
            return math.isfinite(value)
        return False
    return _is_date(value)


def _is_date(value: Any) -> bool:
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    if not isinstance(value, str) or not _ISO_DATE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _is_enum_member(value: Any, allowed: Sequence[Any]) -> bool:
    # True == 1 in Python, but a boolean is never a member of a numeric enum
    return any(
        isinstance(value, bool) == isinstance(option, bool) and value == option
        for option in allowed
    )


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name
