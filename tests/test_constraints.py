"""Tests for cardinality formatting and per-field constraint resolution."""

import copy
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "packages" / "core_engine" / "src"))

from shrdoc_core.cardinality import format_card
from shrdoc_core.constraints import resolve_constraints
from shrdoc_core.errors import ModelIntegrityError, UnsupportedFixedValueError
from shrdoc_core.model import DataElement, Field
from shrdoc_core.registry import ElementRegistry, NamespaceRegistry


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _element(fqn: str, based_on: Optional[List[str]] = None, **extra: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {"fqn": fqn, "fields": []}
    if based_on:
        data["basedOn"] = based_on
    data.update(extra)
    return data


def _registry(*raw: Dict[str, Any]) -> ElementRegistry:
    elements = ElementRegistry()
    namespaces = NamespaceRegistry()
    for data in raw:
        element = DataElement.from_dict(data)
        elements.add(element)
        namespaces.add_element(element)
    elements.flatten()
    return elements


def _default_registry() -> ElementRegistry:
    return _registry(
        _element("shr.base.Entry"),
        _element("shr.base.Observation", based_on=["shr.base.Entry"]),
        _element("shr.vital.VitalSign", based_on=["shr.base.Observation"]),
        _element("shr.core.Coding"),
        _element("shr.core.Status"),
        _element("shr.core.Units"),
        _element("shr.core.Quantity"),
        _element("shr.core.Specimen"),
        _element("shr.core.BloodSpecimen", based_on=["shr.core.Specimen"]),
    )


def _field(name: str = "Status", constraints: Optional[Dict[str, Any]] = None, **extra: Any) -> Field:
    data: Dict[str, Any] = {
        "fqn": f"shr.core.{name}",
        "name": name,
        "valueType": "IdentifiableValue",
        "card": {"min": 1, "max": 1},
    }
    if constraints is not None:
        data["constraints"] = constraints
    data.update(extra)
    return Field.from_dict(data)


# ---------------------------------------------------------------------------
# Cardinality
# ---------------------------------------------------------------------------

class TestFormatCard:
    def test_missing_card_is_unbounded(self):
        assert format_card(None) == "0..*"

    def test_empty_card(self):
        assert format_card({}) == "0..*"

    def test_min_only(self):
        assert format_card({"min": 1}) == "1..*"

    def test_min_and_max(self):
        assert format_card({"min": 0, "max": 1}) == "0..1"

    def test_max_only(self):
        assert format_card({"max": 5}) == "0..5"

    def test_unbounded_max_has_only_string_form(self):
        rendered = format_card({"min": 2})
        low, high = rendered.split("..")
        assert low == "2"
        assert high == "*"


# ---------------------------------------------------------------------------
# Baseline rows
# ---------------------------------------------------------------------------

class TestBaseline:
    def test_plain_field_yields_datatype_then_cardinality(self):
        rows = resolve_constraints(_field(path="shr.core"), _default_registry(), False)
        assert [r.name for r in rows] == ["DataType", "Cardinality"]
        assert rows[0].value == "Status"
        assert rows[0].href == "../shr.core/Status.html"
        assert rows[1].value == "1..1"
        assert all(r.path == "Status" for r in rows)
        assert all(r.source == "Status" for r in rows)

    def test_reference_field_is_decorated(self):
        field = _field("Specimen", valueType="RefValue", card={"min": 0, "max": 1})
        rows = resolve_constraints(field, _default_registry(), False)
        assert rows[0].value == "ref(Specimen)"
        assert rows[1].value == "0..1"

    def test_no_path_hint_means_no_datatype_link(self):
        rows = resolve_constraints(_field(), _default_registry(), False)
        assert rows[0].href is None

    def test_inherited_field_without_constraints_is_empty(self):
        assert resolve_constraints(_field(), _default_registry(), True) == []

    def test_source_link_points_at_field_element(self):
        rows = resolve_constraints(_field(), _default_registry(), False)
        assert rows[0].source_href == "../shr.core/Status.html"

    def test_unregistered_field_element_has_no_source_link(self):
        field = Field.from_dict({"fqn": "primitive.string", "name": "string"})
        rows = resolve_constraints(field, _default_registry(), False)
        assert rows[0].source_href is None
        assert rows[1].value == "0..*"


# ---------------------------------------------------------------------------
# Constraint tags
# ---------------------------------------------------------------------------

class TestTypeConstraint:
    def test_top_level_type_narrows_datatype_in_place(self):
        field = _field(
            "Specimen",
            constraints={"type": {"fqn": "shr.core.BloodSpecimen"}},
            valueType="RefValue",
            path="shr.core",
        )
        rows = resolve_constraints(field, _default_registry(), False)
        assert len(rows) == 2
        assert rows[0].name == "DataType"
        assert rows[0].value == "BloodSpecimen"
        assert rows[0].href == "../shr.core/BloodSpecimen.html"
        assert rows[1].name == "Cardinality"

    def test_inherited_type_appends_datatype_row(self):
        field = _field(
            "Specimen",
            constraints={"type": {"fqn": "shr.core.BloodSpecimen", "lastModifiedBy": "shr.vital.VitalSign"}},
        )
        rows = resolve_constraints(field, _default_registry(), True)
        assert len(rows) == 1
        assert rows[0].name == "DataType"
        assert rows[0].path == "Specimen"
        assert rows[0].override == "VitalSign"
        assert rows[0].override_href == "../shr.vital/VitalSign.html"

    def test_nested_type_appends_scoped_datatype_row(self):
        field = _field(
            "Observation",
            constraints={"subpaths": {"shr.core.Specimen": {"type": {"fqn": "shr.core.BloodSpecimen"}}}},
        )
        rows = resolve_constraints(field, _default_registry(), False)
        assert [r.name for r in rows] == ["DataType", "Cardinality", "DataType"]
        assert rows[0].value == "Observation"
        assert rows[2].value == "BloodSpecimen"
        assert rows[2].path == "Observation.Specimen"

    def test_unknown_type_target_is_fatal(self):
        field = _field(constraints={"type": {"fqn": "shr.core.Missing"}})
        with pytest.raises(ModelIntegrityError):
            resolve_constraints(field, _default_registry(), False)


class TestIncludesType:
    def test_each_subtype_becomes_a_row_in_order(self):
        field = _field(
            "CodeableConcept",
            constraints={
                "includesType": [
                    {"fqn": "shr.core.Coding", "card": {"min": 1, "max": 1}},
                    {"fqn": "shr.core.Status", "card": {"min": 0}},
                ]
            },
        )
        rows = resolve_constraints(field, _default_registry(), True)
        assert [r.name for r in rows] == ["Includes Type", "Includes Type"]
        assert rows[0].value == "1..1 shr.core.Coding"
        assert rows[1].value == "0..* shr.core.Status"
        assert rows[0].href == "../shr.core/Coding.html"

    def test_subtype_override_uses_subtype_modifier(self):
        field = _field(
            "CodeableConcept",
            constraints={
                "includesType": [
                    {"fqn": "shr.core.Coding", "card": {"min": 1}, "lastModifiedBy": "shr.base.Observation"}
                ]
            },
        )
        rows = resolve_constraints(field, _default_registry(), False)
        assert len(rows) == 3
        assert rows[2].override == "Observation"
        assert rows[2].override_href == "../shr.base/Observation.html"
        assert rows[0].override is None

    def test_unknown_subtype_is_fatal(self):
        field = _field(constraints={"includesType": [{"fqn": "shr.core.Nope"}]})
        with pytest.raises(ModelIntegrityError):
            resolve_constraints(field, _default_registry(), False)


class TestCodesAndBindings:
    def test_includes_code_formats_system_and_code(self):
        field = _field(constraints={"includesCode": [{"system": "http://loinc.org", "code": "8302-2"}]})
        rows = resolve_constraints(field, _default_registry(), True)
        assert rows[0].name == "Includes Code"
        assert rows[0].value == "http://loinc.org#8302-2"

    def test_includes_code_without_system(self):
        field = _field(constraints={"includesCode": [{"code": "final"}]})
        rows = resolve_constraints(field, _default_registry(), True)
        assert rows[0].value == "#final"

    def test_value_set(self):
        uri = "http://hl7.org/fhir/ValueSet/observation-status"
        field = _field(constraints={"valueSet": {"uri": uri, "bindingStrength": "REQUIRED"}})
        rows = resolve_constraints(field, _default_registry(), False)
        assert rows[2].name == "Value Set"
        assert rows[2].value == uri
        assert rows[2].href == uri
        assert rows[2].binding == "(REQUIRED)"

    def test_fixed_code(self):
        field = _field(
            constraints={"fixedValue": {"type": "code", "value": {"system": "http://unitsofmeasure.org", "code": "kg"}}}
        )
        rows = resolve_constraints(field, _default_registry(), True)
        assert rows[0].name == "Fixed Value"
        assert rows[0].value == "http://unitsofmeasure.org#kg"

    def test_fixed_boolean(self):
        field = _field(constraints={"fixedValue": {"type": "boolean", "value": False}})
        rows = resolve_constraints(field, _default_registry(), True)
        assert rows[0].value == "false"

    def test_unsupported_fixed_value_fails_loudly(self):
        field = _field(constraints={"fixedValue": {"type": "string", "value": "abc"}})
        with pytest.raises(UnsupportedFixedValueError):
            resolve_constraints(field, _default_registry(), True)

    def test_card_constraint(self):
        field = _field(constraints={"card": {"min": 1, "max": 3, "lastModifiedBy": "shr.base.Observation"}})
        rows = resolve_constraints(field, _default_registry(), False)
        assert [r.name for r in rows] == ["DataType", "Cardinality", "Cardinality"]
        assert rows[1].value == "1..1"
        assert rows[2].value == "1..3"
        assert rows[2].override == "Observation"

    def test_missing_last_modifier_is_fatal(self):
        field = _field(constraints={"card": {"min": 1, "lastModifiedBy": "shr.base.Ghost"}})
        with pytest.raises(ModelIntegrityError) as excinfo:
            resolve_constraints(field, _default_registry(), False)
        assert excinfo.value.fqn == "shr.base.Ghost"


class TestSubpaths:
    def test_known_segment_extends_path(self):
        field = _field(
            "Quantity",
            constraints={"subpaths": {"shr.core.Units": {"card": {"min": 1, "max": 1}}}},
        )
        rows = resolve_constraints(field, _default_registry(), True)
        assert rows[0].path == "Quantity.Units"

    def test_nested_segments_chain(self):
        field = _field(
            "Quantity",
            constraints={
                "subpaths": {
                    "shr.core.Units": {
                        "subpaths": {"shr.core.Coding": {"includesCode": [{"system": "s", "code": "c"}]}}
                    }
                }
            },
        )
        rows = resolve_constraints(field, _default_registry(), True)
        assert rows[0].path == "Quantity.Units.Coding"
        assert rows[0].value == "s#c"

    def test_unknown_segment_keeps_path(self):
        field = _field(
            "Quantity",
            constraints={"subpaths": {"": {"card": {"min": 0, "max": 0}}, "not.an.Element": {"card": {"max": 1}}}},
        )
        rows = resolve_constraints(field, _default_registry(), True)
        assert [r.path for r in rows] == ["Quantity", "Quantity"]
        assert [r.value for r in rows] == ["0..0", "0..1"]


class TestResolutionOrder:
    def test_rows_follow_declaration_order(self):
        field = _field(
            constraints={
                "card": {"min": 1},
                "valueSet": {"uri": "urn:vs", "bindingStrength": "EXTENSIBLE"},
                "includesCode": [{"system": "a", "code": "1"}],
            }
        )
        rows = resolve_constraints(field, _default_registry(), False)
        assert [r.name for r in rows] == [
            "DataType",
            "Cardinality",
            "Cardinality",
            "Value Set",
            "Includes Code",
        ]

    def test_unknown_tag_is_logged_and_skipped(self, caplog):
        field = _field(
            constraints={
                "futureConstraint": {"anything": True},
                "card": {"min": 1, "max": 2},
            }
        )
        with caplog.at_level(logging.WARNING):
            rows = resolve_constraints(field, _default_registry(), False)
        assert [r.name for r in rows] == ["DataType", "Cardinality", "Cardinality"]
        assert rows[2].value == "1..2"
        assert "futureConstraint" in caplog.text

    def test_explicit_logger_receives_warnings(self, caplog):
        sink = logging.getLogger("shrdoc.test.sink")
        field = _field(constraints={"mystery": 1})
        with caplog.at_level(logging.WARNING, logger="shrdoc.test.sink"):
            resolve_constraints(field, _default_registry(), True, logger=sink)
        assert [r.name for r in caplog.records] == ["shrdoc.test.sink"]

    def test_inputs_are_not_mutated(self):
        constraints = {
            "type": {"fqn": "shr.core.BloodSpecimen"},
            "subpaths": {"shr.core.Units": {"card": {"min": 1}}},
        }
        field = _field("Specimen", constraints=constraints)
        before = copy.deepcopy(field)
        first = resolve_constraints(field, _default_registry(), False)
        second = resolve_constraints(field, _default_registry(), False)
        assert field == before
        assert first == second
