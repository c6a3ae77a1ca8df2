"""
Unit tests for the form -> JSON Schema compiler.

Tests cover:
- The full field type mapping table
- title / description / default emission
- Layout fields (section_header, divider) never become properties
- Required list matches required eligible fields, in compile order
- Step filtering and both property orders
- Validation rules, custom messages and conditional metadata
- Deterministic output (compile twice -> equal documents)
- Raw mappings accepted; malformed mappings raise FormDefinitionError
"""

import json
import logging

import pytest

from formschema.core.compiler import (
    PropertyOrder,
    build_property_schema,
    compile_form,
    select_fields,
)
from formschema.core.schema import FieldSpec, FormDefinition, FormDefinitionError


def make_field(field_type: str, **extra) -> FieldSpec:
    """Build a field of the given type with a fixed id/name/label."""
    data = {"id": "f", "name": "value", "type": field_type, "label": "Value"}
    data.update(extra)
    return FieldSpec.model_validate(data)


OPTIONS = [{"value": "us", "label": "United States"}, {"value": "ca", "label": "Canada"}]


# =============================================================
# Test: Property schema per field type
# =============================================================


class TestPropertySchema:
    """Tests for build_property_schema() across every field type."""

    @pytest.mark.parametrize("field_type", ["text", "textarea", "password", "hidden"])
    def test_plain_string_types(self, field_type):
        assert build_property_schema(make_field(field_type)) == {"type": "string", "title": "Value"}

    @pytest.mark.parametrize(
        "field_type, fmt",
        [
            ("email", "email"),
            ("url", "uri"),
            ("tel", "tel"),
            ("date", "date"),
            ("datetime", "date-time"),
            ("time", "time"),
        ],
    )
    def test_formatted_string_types(self, field_type, fmt):
        prop = build_property_schema(make_field(field_type))
        assert prop == {"type": "string", "format": fmt, "title": "Value"}

    @pytest.mark.parametrize("field_type", ["number", "range"])
    def test_number_types(self, field_type):
        assert build_property_schema(make_field(field_type))["type"] == "number"

    def test_checkbox(self):
        assert build_property_schema(make_field("checkbox"))["type"] == "boolean"

    @pytest.mark.parametrize("field_type", ["select", "radio"])
    def test_single_choice(self, field_type):
        prop = build_property_schema(make_field(field_type, options=OPTIONS))
        assert prop["type"] == "string"
        assert prop["enum"] == ["us", "ca"]

    def test_multiselect(self):
        prop = build_property_schema(make_field("multiselect", options=OPTIONS))
        assert prop["type"] == "array"
        assert prop["items"] == {"type": "string", "enum": ["us", "ca"]}
        assert "enum" not in prop

    @pytest.mark.parametrize("field_type", ["file", "image", "color", "signature"])
    def test_fallback_to_string(self, field_type):
        assert build_property_schema(make_field(field_type)) == {"type": "string", "title": "Value"}

    def test_help_text_becomes_description(self):
        prop = build_property_schema(make_field("text", helpText="Enter your full name"))
        assert prop == {
            "type": "string",
            "title": "Value",
            "description": "Enter your full name",
        }

    def test_no_label_no_title(self):
        field = FieldSpec(id="f", name="value", type="text")
        assert build_property_schema(field) == {"type": "string"}

    def test_default_value(self):
        prop = build_property_schema(make_field("text", defaultValue="United States"))
        assert prop["default"] == "United States"

    def test_falsy_default_value_kept(self):
        prop = build_property_schema(make_field("checkbox", defaultValue=False))
        assert prop["default"] is False

    def test_explicit_null_default_kept(self):
        prop = build_property_schema(make_field("text", defaultValue=None))
        assert "default" in prop
        assert prop["default"] is None

    def test_conditional_metadata(self):
        conditional = {"field": "country", "equals": "us"}
        prop = build_property_schema(make_field("text", conditional=conditional))
        assert prop["x-conditional"] == conditional


# =============================================================
# Test: Validation rules
# =============================================================


class TestValidationRules:
    """Tests that referenced validation rules become schema constraints."""

    def _form(self, rules: list[dict], validation: dict) -> FormDefinition:
        return FormDefinition.model_validate({
            "title": "Rules",
            "fields": [
                {"id": "1", "name": "code", "type": "text", "label": "Code", "validation": validation},
            ],
            "validationRules": rules,
        })

    def test_length_and_pattern_rules(self):
        form = self._form(
            rules=[
                {"id": "min", "type": "min_length", "parameters": {"value": 2}},
                {"id": "max", "type": "max_length", "parameters": {"value": 8}},
                {"id": "pat", "type": "pattern", "parameters": {"pattern": "^[A-Z]+$"}},
            ],
            validation={"rules": ["min", "max", "pat"]},
        )
        prop = compile_form(form)["properties"]["code"]
        assert prop["minLength"] == 2
        assert prop["maxLength"] == 8
        assert prop["pattern"] == "^[A-Z]+$"
        assert "x-validation-message" not in prop

    def test_zero_parameter_is_honoured(self):
        form = self._form(
            rules=[{"id": "min", "type": "min_value", "parameters": {"value": 0}}],
            validation={"rules": ["min"]},
        )
        assert compile_form(form)["properties"]["code"]["minimum"] == 0

    def test_json_schema_fragment_merged(self):
        form = self._form(
            rules=[{"id": "raw", "type": "custom", "jsonSchema": {"minLength": 3, "maxLength": 5}}],
            validation={"rules": ["raw"]},
        )
        prop = compile_form(form)["properties"]["code"]
        assert prop["minLength"] == 3
        assert prop["maxLength"] == 5

    def test_rule_message_emitted(self):
        form = self._form(
            rules=[{"id": "min", "type": "min_length", "parameters": {"value": 2}, "message": "Too short"}],
            validation={"rules": ["min"]},
        )
        assert compile_form(form)["properties"]["code"]["x-validation-message"] == "Too short"

    def test_output_does_not_alias_form(self):
        form = FormDefinition.model_validate({
            "title": "Aliasing",
            "fields": [
                {"id": "1", "name": "tags", "type": "text", "defaultValue": ["a"],
                 "conditional": {"show": True}, "validation": {"rules": ["raw"]}},
            ],
            "validationRules": [{"id": "raw", "type": "custom", "jsonSchema": {"examples": ["x"]}}],
        })
        prop = compile_form(form)["properties"]["tags"]
        prop["x-conditional"]["show"] = False
        prop["default"].append("b")
        prop["examples"].append("y")

        field = form.fields[0]
        assert field.conditional == {"show": True}
        assert field.default_value == ["a"]
        assert form.validation_rules[0].json_schema == {"examples": ["x"]}
        assert compile_form(form)["properties"]["tags"]["x-conditional"] == {"show": True}

    def test_custom_message_wins(self):
        form = self._form(
            rules=[{"id": "min", "type": "min_length", "parameters": {"value": 2}, "message": "Too short"}],
            validation={"rules": ["min"], "customMessage": "Bad code"},
        )
        assert compile_form(form)["properties"]["code"]["x-validation-message"] == "Bad code"


# =============================================================
# Test: Document compilation
# =============================================================


class TestCompileForm:
    """Tests for compile_form() document structure."""

    def test_reference_scenario(self, email_form):
        assert compile_form(email_form) == {
            "type": "object",
            "title": "Test Form Form Data",
            "properties": {
                "email": {"type": "string", "format": "email", "title": "Email Address"},
            },
            "required": ["email"],
            "additionalProperties": False,
        }

    def test_simple_form(self):
        schema = compile_form({
            "title": "Contact Form",
            "fields": [
                {"id": "1", "name": "name", "type": "text", "label": "Full Name", "required": True},
                {"id": "2", "name": "email", "type": "email", "label": "Email", "required": True},
                {"id": "3", "name": "message", "type": "textarea", "label": "Message"},
            ],
        })
        assert schema["title"] == "Contact Form Form Data"
        assert list(schema["properties"]) == ["name", "email", "message"]
        assert schema["required"] == ["name", "email"]
        assert schema["additionalProperties"] is False

    def test_empty_form(self):
        schema = compile_form({"title": "Empty Form", "fields": []})
        assert schema["type"] == "object"
        assert schema["properties"] == {}
        assert schema["required"] == []

    def test_layout_fields_skipped(self):
        schema = compile_form({
            "title": "Test Form",
            "fields": [
                {"id": "1", "name": "name", "type": "text", "label": "Name", "required": True},
                {"id": "2", "name": "section", "type": "section_header", "label": "Personal", "required": True},
                {"id": "3", "name": "divider", "type": "divider"},
            ],
        })
        assert list(schema["properties"]) == ["name"]
        assert schema["required"] == ["name"]

    def test_contact_form(self, contact_form):
        schema = compile_form(contact_form)
        assert list(schema["properties"]) == [
            "fullName", "email", "phone", "topic", "message", "subscribe",
        ]
        assert schema["required"] == ["fullName", "email", "topic", "message"]
        assert schema["properties"]["topic"] == {
            "type": "string",
            "enum": ["sales", "support", "other"],
            "title": "Topic",
            "default": "support",
        }
        assert schema["properties"]["message"] == {
            "type": "string",
            "title": "Message",
            "minLength": 10,
            "maxLength": 2000,
            "x-validation-message": "Please write between 10 and 2000 characters",
        }

    def test_required_keys_exist_in_properties(self, contact_form, registration_form):
        for form in (contact_form, registration_form):
            schema = compile_form(form)
            assert set(schema["required"]) <= set(schema["properties"])

    def test_deterministic(self, contact_form):
        first = compile_form(contact_form)
        second = compile_form(contact_form)
        assert first == second
        assert json.dumps(first) == json.dumps(second)

    def test_unknown_type_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="formschema.core.compiler"):
            schema = compile_form({
                "title": "T",
                "fields": [{"id": "1", "name": "shade", "type": "color"}],
            })
        assert schema["properties"]["shade"]["type"] == "string"
        assert "unknown type 'color'" in caplog.text

    def test_duplicate_names_last_wins(self, caplog):
        # model_construct skips validation, as a cached or hand-built model might
        first = FieldSpec(id="1", name="dup", type="text", label="First", required=True)
        second = FieldSpec(id="2", name="dup", type="number", label="Second", required=True)
        form = FormDefinition.model_construct(title="Dup", fields=[first, second], steps=None)
        with caplog.at_level(logging.WARNING, logger="formschema.core.compiler"):
            schema = compile_form(form)
        assert schema["properties"]["dup"]["title"] == "Second"
        assert schema["required"] == ["dup"]
        assert "Duplicate field name 'dup'" in caplog.text

    def test_malformed_mapping_raises(self):
        with pytest.raises(FormDefinitionError):
            compile_form({"fields": []})

    def test_invalid_order_raises(self, email_form):
        with pytest.raises(ValueError):
            compile_form(email_form, order="alphabetical")


# =============================================================
# Test: Steps
# =============================================================


class TestSteps:
    """Tests for step-based field filtering and ordering."""

    STEPPED = {
        "title": "Multi-Step Form",
        "fields": [
            {"id": "1", "name": "name", "type": "text", "label": "Name", "required": True},
            {"id": "2", "name": "email", "type": "email", "label": "Email", "required": True},
            {"id": "3", "name": "phone", "type": "tel", "label": "Phone"},
        ],
    }

    def _form(self, steps):
        return FormDefinition.model_validate({**self.STEPPED, "steps": steps})

    def test_all_fields_in_steps(self):
        form = self._form([
            {"id": "step1", "title": "Basic Info", "fields": ["1", "2"]},
            {"id": "step2", "title": "Contact Info", "fields": ["3"]},
        ])
        schema = compile_form(form)
        assert list(schema["properties"]) == ["name", "email", "phone"]
        assert schema["required"] == ["name", "email"]

    def test_unreferenced_field_excluded(self):
        schema = compile_form(self._form([{"id": "s1", "fields": ["1", "2"]}]))
        assert list(schema["properties"]) == ["name", "email"]
        assert "phone" not in schema["properties"]

    def test_unknown_step_entries_select_nothing(self):
        form = self._form([{"id": "s1", "fields": ["1", "gone"]}, {"id": "s2", "fields": ["3"]}])
        for order in PropertyOrder:
            assert list(compile_form(form, order)["properties"]) == ["name", "phone"]

    def test_empty_steps_compile_all_fields(self):
        schema = compile_form(self._form([]))
        assert list(schema["properties"]) == ["name", "email", "phone"]

    def test_fields_order_ignores_step_order(self):
        form = self._form([
            {"id": "s1", "order": 1, "fields": ["3"]},
            {"id": "s2", "order": 2, "fields": ["2", "1"]},
        ])
        assert list(compile_form(form)["properties"]) == ["name", "email", "phone"]

    def test_steps_order_follows_steps(self):
        form = self._form([
            {"id": "s1", "order": 1, "fields": ["3"]},
            {"id": "s2", "order": 2, "fields": ["2", "1"]},
        ])
        schema = compile_form(form, PropertyOrder.STEPS)
        # Within a step, the form's field order is kept
        assert list(schema["properties"]) == ["phone", "name", "email"]
        assert schema["required"] == ["name", "email"]

    def test_steps_order_sorts_by_order_then_position(self):
        form = self._form([
            {"id": "late", "order": 5, "fields": ["1"]},
            {"id": "early-a", "order": 0, "fields": ["3"]},
            {"id": "early-b", "order": 0, "fields": ["2"]},
        ])
        assert [f.name for f in select_fields(form, PropertyOrder.STEPS)] == ["phone", "email", "name"]

    def test_field_in_two_steps_compiled_once(self):
        form = self._form([
            {"id": "s1", "fields": ["1", "2"]},
            {"id": "s2", "fields": ["1", "3"]},
        ])
        schema = compile_form(form, "steps")
        assert list(schema["properties"]) == ["name", "email", "phone"]
        assert schema["required"] == ["name", "email"]

    def test_registration_example(self, registration_form):
        by_fields = compile_form(registration_form)
        by_steps = compile_form(registration_form, PropertyOrder.STEPS)
        assert list(by_fields["properties"]) == [
            "name", "email", "arrivalDate", "arrivalTime", "languages", "guests",
        ]
        assert list(by_steps["properties"]) == [
            "name", "email", "languages", "guests", "arrivalDate", "arrivalTime",
        ]
        assert "website" not in by_fields["properties"]
        assert by_fields["properties"]["guests"]["minimum"] == 0
        assert by_fields["properties"]["guests"]["maximum"] == 10
