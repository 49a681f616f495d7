"""
Field structure parsing and well-formedness checks.

Raw structures arrive as JSON-like lists of field objects:

    [
        {"kind": "primitive", "name": "species", "type": "string", "required": true},
        {"kind": "enum", "name": "grade", "values": ["A", "B"]},
        {"kind": "nested", "name": "size", "fields": [...]},
        {"kind": "array", "name": "tags", "item_type": "string"}
    ]

They are checked in three passes: cycles and runaway nesting in the raw
data, shape against a JSON Schema meta-schema, then semantic rules on the
built field specs.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import jsonschema

from src.domain.entities.field_spec import (ArrayField, EnumField, FieldSpec,
                                            NestedField, PrimitiveField)
from src.domain.enums import FieldKind, PrimitiveType
from src.domain.exceptions import MalformedSchemaException
from src.domain.value_objects import (FIELD_NAME_MAX_LENGTH,
                                      FIELD_NAME_PATTERN, ROOT_PATH,
                                      StructureProblem, is_valid_field_name)
from src.infrastructure.config.settings import get_settings

JSON_SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"


def _kind_is(kind: FieldKind) -> dict[str, Any]:
    return {"required": ["kind"], "properties": {"kind": {"const": kind.value}}}


def get_field_structure_meta_schema() -> dict[str, Any]:
    """JSON Schema every raw field structure must satisfy before it is built"""
    primitive_types = PrimitiveType.values()
    return {
        "$schema": JSON_SCHEMA_DIALECT,
        "$defs": {
            "field": {
                "type": "object",
                "required": ["kind", "name"],
                "properties": {
                    "kind": {"enum": FieldKind.values()},
                    "name": {
                        "type": "string",
                        "pattern": FIELD_NAME_PATTERN.pattern,
                        "maxLength": FIELD_NAME_MAX_LENGTH,
                    },
                    "required": {"type": "boolean"},
                },
                "allOf": [
                    {
                        "if": _kind_is(FieldKind.PRIMITIVE),
                        "then": {
                            "required": ["type"],
                            "properties": {"type": {"enum": primitive_types}},
                        },
                    },
                    {
                        "if": _kind_is(FieldKind.ENUM),
                        "then": {
                            "required": ["values"],
                            "properties": {
                                "values": {
                                    "type": "array",
                                    "items": {"type": ["string", "number", "boolean"]},
                                }
                            },
                        },
                    },
                    {
                        "if": _kind_is(FieldKind.NESTED),
                        "then": {
                            "required": ["fields"],
                            "properties": {
                                "fields": {"type": "array", "items": {"$ref": "#/$defs/field"}}
                            },
                        },
                    },
                    {
                        "if": _kind_is(FieldKind.ARRAY),
                        "then": {
                            "required": ["item_type"],
                            "properties": {"item_type": {"enum": primitive_types}},
                        },
                    },
                ],
                "unevaluatedProperties": False,
            }
        },
        "type": "array",
        "items": {"$ref": "#/$defs/field"},
    }


_META_VALIDATOR = jsonschema.Draft202012Validator(get_field_structure_meta_schema())


def parse_fields(raw: Any, *, max_depth: int | None = None) -> tuple[FieldSpec, ...]:
    """
    Build field specs from a raw structure.

    Raises:
        MalformedSchemaException: with every problem found in the first
            failing pass
    """
    if max_depth is None:
        max_depth = get_settings().max_nesting_depth

    problems = _check_raw(raw, max_depth)
    if problems:
        raise MalformedSchemaException(problems)

    problems = [
        StructureProblem(
            path=_json_path(error.absolute_path),
            reason="invalid",
            extra={"message": error.message},
        )
        for error in sorted(_META_VALIDATOR.iter_errors(raw), key=_error_sort_key)
    ]
    if problems:
        raise MalformedSchemaException(problems)

    fields = tuple(_build_field(item) for item in raw)
    problems = check_structure(fields, max_depth=max_depth)
    if problems:
        raise MalformedSchemaException(problems)
    return fields


def coerce_fields(fields: Any, *, max_depth: int | None = None) -> tuple[FieldSpec, ...]:
    """
    Accept either built field specs or a raw structure.

    Built specs are checked as they are; anything else goes through
    parse_fields.
    """
    if isinstance(fields, (list, tuple)) and fields and all(
        isinstance(f, (PrimitiveField, EnumField, NestedField, ArrayField)) for f in fields
    ):
        problems = check_structure(tuple(fields), max_depth=max_depth)
        if problems:
            raise MalformedSchemaException(problems)
        return tuple(fields)
    return parse_fields(fields, max_depth=max_depth)


def check_structure(
    fields: Sequence[FieldSpec], *, max_depth: int | None = None
) -> list[StructureProblem]:
    """Return every semantic problem in a built field structure, in walk order"""
    if max_depth is None:
        max_depth = get_settings().max_nesting_depth

    problems: list[StructureProblem] = []
    if not fields:
        problems.append(StructureProblem(path=ROOT_PATH, reason="empty-structure"))
        return problems

    _check_level(fields, "", 1, max_depth, [], problems)
    return problems


def _check_level(
    fields: Sequence[FieldSpec],
    prefix: str,
    depth: int,
    max_depth: int,
    ancestors: list[int],
    problems: list[StructureProblem],
) -> None:
    if depth > max_depth:
        problems.append(
            StructureProblem(
                path=prefix or ROOT_PATH,
                reason="too-deep",
                extra={"max_depth": max_depth},
            )
        )
        return

    seen: set[str] = set()
    for spec in fields:
        path = f"{prefix}.{spec.name}" if prefix else spec.name

        if not is_valid_field_name(spec.name):
            problems.append(StructureProblem(path=path, reason="invalid-name"))
        if spec.name in seen:
            problems.append(StructureProblem(path=path, reason="duplicate-name"))
        seen.add(spec.name)

        if isinstance(spec, EnumField):
            _check_enum(spec, path, problems)
        elif isinstance(spec, NestedField):
            if id(spec) in ancestors:
                problems.append(StructureProblem(path=path, reason="cyclic-reference"))
                continue
            if not spec.fields:
                problems.append(StructureProblem(path=path, reason="empty-nested"))
                continue
            ancestors.append(id(spec))
            _check_level(spec.fields, path, depth + 1, max_depth, ancestors, problems)
            ancestors.pop()


def _check_enum(spec: EnumField, path: str, problems: list[StructureProblem]) -> None:
    if not spec.values:
        problems.append(StructureProblem(path=path, reason="empty-enum"))
        return

    seen = set()
    for value in spec.values:
        key = _enum_key(value)
        if key in seen:
            problems.append(
                StructureProblem(path=path, reason="duplicate-enum-value", extra={"value": value})
            )
        seen.add(key)


def _enum_key(value: Any) -> tuple[str, Any]:
    # Keeps True distinct from 1 while 1 and 1.0 stay equal
    if isinstance(value, bool):
        return ("boolean", value)
    if isinstance(value, (int, float)):
        return ("number", value)
    return (type(value).__name__, value)


def _build_field(item: Mapping[str, Any]) -> FieldSpec:
    kind = FieldKind(item["kind"])
    name = item["name"]
    required = item.get("required", False)
    if kind is FieldKind.PRIMITIVE:
        return PrimitiveField(name=name, type=PrimitiveType(item["type"]), required=required)
    if kind is FieldKind.ENUM:
        return EnumField(name=name, values=tuple(item["values"]), required=required)
    if kind is FieldKind.NESTED:
        return NestedField(
            name=name,
            fields=tuple(_build_field(child) for child in item["fields"]),
            required=required,
        )
    return ArrayField(name=name, item_type=PrimitiveType(item["item_type"]), required=required)


def _error_sort_key(error: jsonschema.ValidationError) -> list[str]:
    return [str(part) for part in error.absolute_path]


def _raw_depth_limit(max_depth: int) -> int:
    # Each nested level is a field object plus its "fields" list. The slack
    # lets a group one level too deep reach check_structure, which names it.
    return 2 * max_depth + 6


def _check_raw(raw: Any, max_depth: int) -> list[StructureProblem]:
    problems: list[StructureProblem] = []
    _walk_raw(raw, [], [], max_depth, problems)
    return problems


def _walk_raw(
    node: Any, parts: list, ancestors: list[int], max_depth: int, problems: list[StructureProblem]
) -> None:
    if isinstance(node, Mapping):
        children = list(node.items())
    elif isinstance(node, (list, tuple)):
        children = list(enumerate(node))
    else:
        return

    if id(node) in ancestors:
        problems.append(StructureProblem(path=_json_path(parts), reason="cyclic-reference"))
        return
    if len(ancestors) >= _raw_depth_limit(max_depth):
        problems.append(
            StructureProblem(
                path=_json_path(parts),
                reason="too-deep",
                extra={"max_depth": max_depth},
            )
        )
        return

    ancestors.append(id(node))
    for key, child in children:
        _walk_raw(child, parts + [key], ancestors, max_depth, problems)
    ancestors.pop()


def _json_path(parts: Sequence[Any]) -> str:
    path = ROOT_PATH
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}"
    return path


def to_json_schema(fields: Sequence[FieldSpec], title: str | None = None) -> dict[str, Any]:
    """
    Export a field structure as a Draft 2020-12 JSON Schema.

    Optional fields also accept null, matching the validator's treatment of
    null as absent. Undeclared keys are allowed since the default policy
    only warns about them.
    """
    schema = {"$schema": JSON_SCHEMA_DIALECT, **_object_schema(fields)}
    if title:
        schema["title"] = title
    return schema


def _object_schema(fields: Sequence[FieldSpec]) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {spec.name: _field_schema(spec) for spec in fields},
    }
    required = [spec.name for spec in fields if spec.required]
    if required:
        schema["required"] = required
    return schema


def _field_schema(spec: FieldSpec) -> dict[str, Any]:
    if isinstance(spec, PrimitiveField):
        schema = _primitive_schema(spec.type)
    elif isinstance(spec, EnumField):
        schema = {"enum": list(spec.values)}
    elif isinstance(spec, NestedField):
        schema = _object_schema(spec.fields)
    else:
        schema = {"type": "array", "items": _primitive_schema(spec.item_type)}

    if not spec.required:
        return {"anyOf": [schema, {"type": "null"}]}
    return schema


def _primitive_schema(primitive: PrimitiveType) -> dict[str, Any]:
    if primitive is PrimitiveType.DATE:
        return {"type": "string", "format": "date"}
    return {"type": primitive.value}
