import jsonschema
import pytest

from src.application.services.field_structure import (check_structure,
                                                      coerce_fields,
                                                      parse_fields,
                                                      to_json_schema)
from src.domain.entities.field_spec import (EnumField, NestedField,
                                            PrimitiveField)
from src.domain.enums import PrimitiveType
from src.domain.exceptions import MalformedSchemaException
from src.domain.value_objects import StructureProblem


def _reasons(exc_info) -> list[tuple[str, str]]:
    return [(p.path, p.reason) for p in exc_info.value.problems]


def _nested(name: str, *children) -> dict:
    return {"kind": "nested", "name": name, "fields": list(children)}


LEAF = {"kind": "primitive", "name": "leaf", "type": "string"}


def _deep(levels: int) -> list[dict]:
    raw = [dict(LEAF)]
    for level in range(levels):
        raw = [_nested(f"g{level}", *raw)]
    return raw


class TestParseFields:
    """Tests for building field specs from raw structures."""

    def test_parses_every_kind(self, plank_fields):
        """
        GIVEN the Plank structure as raw JSON data
        WHEN it is parsed
        THEN one spec per field is built, in declaration order.
        """
        fields = parse_fields(plank_fields)

        assert [f.name for f in fields] == ["species", "length_mm", "grade", "dimensions", "tags"]
        assert fields[0] == PrimitiveField("species", PrimitiveType.STRING, required=True)
        assert fields[2] == EnumField("grade", ("A", "B", "C"), required=True)
        assert isinstance(fields[3], NestedField)
        assert not fields[3].required
        assert fields[4].item_type is PrimitiveType.STRING

    def test_structure_must_be_a_list(self):
        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields({"kind": "primitive", "name": "a", "type": "string"})

        assert _reasons(exc_info) == [("$", "invalid")]

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields([{"kind": "matrix", "name": "grid"}])

        assert ("$[0].kind", "invalid") in _reasons(exc_info)

    def test_primitive_needs_a_known_type(self):
        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields([{"kind": "primitive", "name": "when", "type": "timestamp"}])

        assert ("$[0].type", "invalid") in _reasons(exc_info)
        assert {reason for _, reason in _reasons(exc_info)} == {"invalid"}

    def test_unexpected_attribute_is_rejected(self):
        """
        GIVEN a primitive field carrying an attribute no kind declares
        WHEN it is parsed
        THEN the field is reported as invalid.
        """
        raw = [{"kind": "primitive", "name": "a", "type": "string", "colour": "red"}]

        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields(raw)

        assert _reasons(exc_info) == [("$[0]", "invalid")]
        assert "colour" in exc_info.value.problems[0].extra["message"]

    def test_attribute_of_another_kind_is_rejected(self):
        raw = [{"kind": "primitive", "name": "a", "type": "string", "values": ["x"]}]

        with pytest.raises(MalformedSchemaException):
            parse_fields(raw)

    @pytest.mark.parametrize("name", ["bad.name", "tags[0]", "1st", "", "a" * 65])
    def test_invalid_field_names(self, name):
        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields([{"kind": "primitive", "name": name, "type": "string"}])

        assert _reasons(exc_info) == [("$[0].name", "invalid")]

    def test_empty_structure(self):
        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields([])

        assert _reasons(exc_info) == [("$", "empty-structure")]

    def test_reports_every_semantic_problem(self):
        """
        GIVEN a structure with a duplicate name, an empty enum and an empty group
        WHEN it is parsed
        THEN every problem is reported together, in walk order.
        """
        raw = [
            {"kind": "primitive", "name": "a", "type": "string"},
            {"kind": "enum", "name": "a", "values": ["x"]},
            {"kind": "enum", "name": "grade", "values": []},
            _nested("size"),
        ]

        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields(raw)

        assert _reasons(exc_info) == [
            ("a", "duplicate-name"),
            ("grade", "empty-enum"),
            ("size", "empty-nested"),
        ]

    def test_duplicate_names_inside_nested_group(self):
        raw = [_nested("size", dict(LEAF), dict(LEAF))]

        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields(raw)

        assert _reasons(exc_info) == [("size.leaf", "duplicate-name")]

    def test_same_name_at_different_levels_is_allowed(self):
        raw = [dict(LEAF), _nested("size", dict(LEAF))]

        fields = parse_fields(raw)

        assert len(fields) == 2

    def test_duplicate_enum_values(self):
        raw = [{"kind": "enum", "name": "grade", "values": ["A", "B", "A"]}]

        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields(raw)

        assert _reasons(exc_info) == [("grade", "duplicate-enum-value")]
        assert exc_info.value.problems[0].extra == {"value": "A"}

    def test_boolean_and_number_enum_values_are_distinct(self):
        fields = parse_fields([{"kind": "enum", "name": "flag", "values": [1, True, 0, False]}])

        assert fields[0].values == (1, True, 0, False)

    def test_equal_numbers_are_duplicates(self):
        with pytest.raises(MalformedSchemaException):
            parse_fields([{"kind": "enum", "name": "size", "values": [1, 1.0]}])

    def test_nesting_up_to_the_limit_is_accepted(self):
        raw = [_nested("a", _nested("b", dict(LEAF)))]

        fields = parse_fields(raw, max_depth=3)

        assert fields[0].fields[0].fields[0].name == "leaf"

    def test_nesting_beyond_the_limit_is_rejected(self):
        """
        GIVEN a structure three levels deep
        WHEN it is parsed with a limit of two
        THEN the group that crosses the limit is reported as too deep.
        """
        raw = [_nested("a", _nested("b", dict(LEAF)))]

        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields(raw, max_depth=2)

        assert _reasons(exc_info) == [("a.b", "too-deep")]
        assert exc_info.value.problems[0].extra == {"max_depth": 2}

    def test_runaway_nesting_is_rejected_without_recursing(self):
        """
        GIVEN a structure nested 600 levels deep
        WHEN it is parsed
        THEN a single too-deep problem is reported before the shape is checked.
        """
        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields(_deep(600), max_depth=8)

        assert [p.reason for p in exc_info.value.problems] == ["too-deep"]
        assert exc_info.value.problems[0].path.startswith("$[0].fields[0]")
        assert exc_info.value.problems[0].extra == {"max_depth": 8}

    def test_runaway_nesting_in_unknown_attributes_is_rejected(self):
        blob: list = []
        for _ in range(2000):
            blob = [blob]

        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields([{**LEAF, "extra": blob}], max_depth=8)

        assert [p.reason for p in exc_info.value.problems] == ["too-deep"]

    def test_cyclic_raw_structure_is_rejected(self):
        """
        GIVEN a nested group whose field list contains the group itself
        WHEN it is parsed
        THEN a cyclic reference is reported instead of recursing forever.
        """
        group = {"kind": "nested", "name": "loop", "fields": []}
        group["fields"].append(group)

        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields([group])

        assert _reasons(exc_info) == [("$[0].fields[0]", "cyclic-reference")]

    def test_shared_but_acyclic_subtree_is_accepted(self):
        shared = dict(LEAF)

        fields = parse_fields([_nested("a", shared), _nested("b", shared)])

        assert len(fields) == 2

    def test_exception_serialises_problems(self):
        with pytest.raises(MalformedSchemaException) as exc_info:
            parse_fields([])

        assert exc_info.value.to_dict()["details"] == {
            "problems": [{"path": "$", "reason": "empty-structure"}]
        }


class TestCoerceFields:
    def test_built_specs_are_checked(self):
        specs = (
            PrimitiveField("a", PrimitiveType.STRING),
            PrimitiveField("a", PrimitiveType.NUMBER),
        )

        with pytest.raises(MalformedSchemaException) as exc_info:
            coerce_fields(specs, max_depth=8)

        assert _reasons(exc_info) == [("a", "duplicate-name")]

    def test_built_specs_pass_through(self):
        specs = (PrimitiveField("a", PrimitiveType.STRING),)

        assert coerce_fields(list(specs), max_depth=8) == specs

    def test_raw_input_is_parsed(self, plank_fields):
        fields = coerce_fields(plank_fields, max_depth=8)

        assert len(fields) == 5

    def test_built_spec_with_invalid_name(self):
        specs = (PrimitiveField("not.valid", PrimitiveType.STRING),)

        assert check_structure(specs, max_depth=8) == [
            StructureProblem(path="not.valid", reason="invalid-name")
        ]


class TestToJsonSchema:
    """Tests for exporting a field structure as JSON Schema."""

    @pytest.fixture
    def exported(self, plank_fields):
        return to_json_schema(parse_fields(plank_fields), title="Plank v1")

    def test_shape(self, exported):
        assert exported["$schema"] == "https://json-schema.org/draft/2020-12/schema"
        assert exported["title"] == "Plank v1"
        assert exported["type"] == "object"
        assert exported["required"] == ["species", "length_mm", "grade"]
        assert exported["properties"]["species"] == {"type": "string"}
        assert exported["properties"]["grade"] == {"enum": ["A", "B", "C"]}
        assert exported["properties"]["tags"] == {
            "anyOf": [{"type": "array", "items": {"type": "string"}}, {"type": "null"}]
        }

    def test_date_fields_use_date_format(self):
        fields = parse_fields([{"kind": "primitive", "name": "felled_on", "type": "date", "required": True}])

        schema = to_json_schema(fields)

        assert schema["properties"]["felled_on"] == {"type": "string", "format": "date"}
        assert "title" not in schema

    def test_exported_schema_agrees_with_validator(self, exported):
        """
        GIVEN the exported Plank schema
        WHEN third-party JSON Schema validation runs against sample records
        THEN valid records pass and records missing a required field fail.
        """
        validator = jsonschema.Draft202012Validator(exported)
        good = {
            "species": "oak",
            "length_mm": 2400,
            "grade": "A",
            "dimensions": {"width_mm": 145, "thickness_mm": 21},
            "tags": None,
        }

        assert validator.is_valid(good)
        assert not validator.is_valid({"length_mm": 2400, "grade": "A"})
        assert not validator.is_valid({**good, "dimensions": {"width_mm": 145}})
