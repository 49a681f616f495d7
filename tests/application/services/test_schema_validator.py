from datetime import date, datetime
from decimal import Decimal

import pytest

from src.application.services.schema_validator import (SchemaValidator,
                                                       matches_primitive,
                                                       validate_fields)
from src.domain.entities.field_spec import (ArrayField, EnumField, NestedField,
                                            PrimitiveField)
from src.domain.entities.schema_version import SchemaVersionEntity
from src.domain.enums import PrimitiveType, UnknownFieldPolicy, ViolationKind
from src.domain.value_objects import Violation

PLANK = (
    PrimitiveField("species", PrimitiveType.STRING, required=True),
    PrimitiveField("length_mm", PrimitiveType.NUMBER, required=True),
    EnumField("grade", ("A", "B", "C"), required=True),
    NestedField(
        "dimensions",
        (
            PrimitiveField("width_mm", PrimitiveType.NUMBER, required=True),
            PrimitiveField("thickness_mm", PrimitiveType.NUMBER, required=True),
        ),
    ),
    ArrayField("tags", PrimitiveType.STRING),
)


@pytest.fixture
def plank_version() -> SchemaVersionEntity:
    return SchemaVersionEntity(
        id="ver-1",
        tenant_id="tenant-1",
        definition_id="def-1",
        version=1,
        fields=PLANK,
        is_active=True,
    )


class TestSchemaValidator:
    """Unit tests for SchemaValidator."""

    def test_valid_candidate_has_no_violations(self, plank_version):
        """
        GIVEN the Plank version and a candidate that fills every field correctly
        WHEN it is validated
        THEN the result is valid with no warnings.
        """
        candidate = {
            "species": "oak",
            "length_mm": 2400,
            "grade": "A",
            "dimensions": {"width_mm": 145, "thickness_mm": 21.5},
            "tags": ["kiln-dried"],
        }

        result = SchemaValidator().validate(plank_version, candidate)

        assert result.is_valid
        assert result.violations == ()
        assert result.warnings == ()

    def test_reports_every_violation_in_declaration_order(self, plank_version):
        """
        GIVEN a candidate that breaks several fields at once
        WHEN it is validated
        THEN every violation is reported, ordered by field declaration, depth first.
        """
        candidate = {
            "length_mm": "long",
            "grade": "Z",
            "dimensions": {"width_mm": True},
            "tags": ["ok", 3, "fine", None],
        }

        result = SchemaValidator().validate(plank_version, candidate)

        assert not result.is_valid
        assert result.violations == (
            Violation("species", ViolationKind.MISSING_REQUIRED),
            Violation("length_mm", ViolationKind.WRONG_TYPE),
            Violation("grade", ViolationKind.NOT_IN_ENUM),
            Violation("dimensions.width_mm", ViolationKind.WRONG_TYPE),
            Violation("dimensions.thickness_mm", ViolationKind.MISSING_REQUIRED),
            Violation("tags[1]", ViolationKind.WRONG_TYPE),
            Violation("tags[3]", ViolationKind.WRONG_TYPE),
        )

    def test_scenario_species_missing(self, plank_version):
        """
        GIVEN the Plank version
        WHEN a record omits species
        THEN exactly one missing-required violation at species is reported.
        """
        candidate = {"length_mm": 2400, "grade": "A"}

        result = SchemaValidator().validate(plank_version, candidate)

        assert result.violations == (Violation("species", ViolationKind.MISSING_REQUIRED),)

    def test_null_counts_as_absent(self, plank_version):
        candidate = {"species": None, "length_mm": 1, "grade": "A", "tags": None}

        result = SchemaValidator().validate(plank_version, candidate)

        assert result.violations == (Violation("species", ViolationKind.MISSING_REQUIRED),)

    def test_non_mapping_root_is_malformed(self, plank_version):
        result = SchemaValidator().validate(plank_version, ["not", "a", "mapping"])

        assert result.violations == (Violation("$", ViolationKind.MALFORMED_NESTED),)

    def test_nested_value_must_be_a_mapping(self, plank_version):
        candidate = {"species": "oak", "length_mm": 1, "grade": "B", "dimensions": [145, 21]}

        result = SchemaValidator().validate(plank_version, candidate)

        assert result.violations == (Violation("dimensions", ViolationKind.MALFORMED_NESTED),)

    def test_array_value_must_be_a_list(self, plank_version):
        candidate = {"species": "oak", "length_mm": 1, "grade": "B", "tags": "kiln-dried"}

        result = SchemaValidator().validate(plank_version, candidate)

        assert result.violations == (Violation("tags", ViolationKind.WRONG_TYPE),)

    def test_unknown_fields_warn_by_default(self, plank_version):
        """
        GIVEN the default lenient policy
        WHEN a candidate carries keys the schema does not declare
        THEN the candidate stays valid and each key is reported as a warning.
        """
        candidate = {
            "species": "oak",
            "length_mm": 1,
            "grade": "A",
            "dimensions": {"width_mm": 1, "thickness_mm": 1, "colour": "red"},
            "supplier": "acme",
        }

        result = SchemaValidator().validate(plank_version, candidate)

        assert result.is_valid
        assert result.warnings == (
            Violation("dimensions.colour", ViolationKind.UNKNOWN_FIELD),
            Violation("supplier", ViolationKind.UNKNOWN_FIELD),
        )

    def test_unknown_fields_rejected_under_strict_policy(self, plank_version):
        candidate = {"species": "oak", "length_mm": 1, "grade": "A", "supplier": "acme"}

        result = SchemaValidator(UnknownFieldPolicy.REJECT).validate(plank_version, candidate)

        assert not result.is_valid
        assert result.violations == (Violation("supplier", ViolationKind.UNKNOWN_FIELD),)
        assert result.warnings == ()

    def test_per_call_policy_overrides_default(self, plank_version):
        candidate = {"species": "oak", "length_mm": 1, "grade": "A", "supplier": "acme"}

        result = SchemaValidator().validate(
            plank_version, candidate, UnknownFieldPolicy.REJECT
        )

        assert not result.is_valid

    def test_validation_is_deterministic(self, plank_version):
        """
        GIVEN the same version and candidate
        WHEN validated repeatedly
        THEN the results are identical.
        """
        candidate = {"length_mm": "x", "grade": 1, "extra": True}
        validator = SchemaValidator()

        results = {validator.validate(plank_version, candidate) for _ in range(5)}

        assert len(results) == 1

    def test_result_serialises_to_dict(self, plank_version):
        result = SchemaValidator().validate(plank_version, {"length_mm": 1, "grade": "A"})

        assert result.to_dict() == {
            "valid": False,
            "violations": [{"path": "species", "kind": "missing-required"}],
            "warnings": [],
        }


class TestEnumMembership:
    def test_boolean_is_not_a_numeric_enum_member(self):
        fields = (EnumField("level", (1, 2, 3), required=True),)

        assert not validate_fields(fields, {"level": True}).is_valid
        assert validate_fields(fields, {"level": 1}).is_valid

    def test_mixed_scalar_enum(self):
        fields = (EnumField("answer", ("yes", 0, False)),)

        assert validate_fields(fields, {"answer": False}).is_valid
        assert validate_fields(fields, {"answer": 0}).is_valid
        assert not validate_fields(fields, {"answer": "no"}).is_valid


class TestPrimitiveTypes:
    @pytest.mark.parametrize(
        ("primitive", "value", "expected"),
        [
            (PrimitiveType.STRING, "oak", True),
            (PrimitiveType.STRING, 1, False),
            (PrimitiveType.NUMBER, 3, True),
            (PrimitiveType.NUMBER, 2.5, True),
            (PrimitiveType.NUMBER, Decimal("1.25"), True),
            (PrimitiveType.NUMBER, True, False),
            (PrimitiveType.NUMBER, float("nan"), False),
            (PrimitiveType.NUMBER, float("inf"), False),
            (PrimitiveType.NUMBER, "3", False),
            (PrimitiveType.BOOLEAN, False, True),
            (PrimitiveType.BOOLEAN, 0, False),
            (PrimitiveType.DATE, date(2024, 2, 29), True),
            (PrimitiveType.DATE, "2024-02-29", True),
            (PrimitiveType.DATE, "2023-02-29", False),
            (PrimitiveType.DATE, "29/02/2024", False),
            (PrimitiveType.DATE, datetime(2024, 2, 29, 12, 0), False),
        ],
    )
    def test_matches_primitive(self, primitive, value, expected):
        assert matches_primitive(primitive, value) is expected
