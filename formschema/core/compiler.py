"""
Form definition to JSON Schema compiler.

Walks a FormDefinition (fields, steps, options, validation rules) and
deterministically produces a draft-07 object schema describing valid
submission payloads. Compiling the same form twice yields equal output:
no timestamps, no generated ids. The output shares no mutable objects
with the form it was compiled from.
"""

import copy
import logging
from enum import Enum
from typing import Any

from formschema.core.schema import (
    FieldSpec,
    FieldType,
    FormDefinition,
    ValidationRuleType,
    parse_form_definition,
)

logger = logging.getLogger(__name__)

DOCUMENT_TITLE_SUFFIX = " Form Data"


class PropertyOrder(str, Enum):
    """How compiled properties are ordered when a form has steps."""

    FIELDS = "fields"
    STEPS = "steps"


# --- Type mapping ---

# FieldType -> (json type, format)
_SCALAR_TYPES: dict[FieldType, tuple[str, str | None]] = {
    FieldType.TEXT: ("string", None),
    FieldType.TEXTAREA: ("string", None),
    FieldType.PASSWORD: ("string", None),
    FieldType.HIDDEN: ("string", None),
    FieldType.EMAIL: ("string", "email"),
    FieldType.URL: ("string", "uri"),
    FieldType.TEL: ("string", "tel"),
    FieldType.NUMBER: ("number", None),
    FieldType.RANGE: ("number", None),
    FieldType.DATE: ("string", "date"),
    FieldType.DATETIME: ("string", "date-time"),
    FieldType.TIME: ("string", "time"),
    FieldType.CHECKBOX: ("boolean", None),
    FieldType.SELECT: ("string", None),
    FieldType.RADIO: ("string", None),
}

# Rule type -> (JSON Schema keyword, parameter name)
_RULE_KEYWORDS: dict[ValidationRuleType, tuple[str, str]] = {
    ValidationRuleType.MIN_LENGTH: ("minLength", "value"),
    ValidationRuleType.MAX_LENGTH: ("maxLength", "value"),
    ValidationRuleType.PATTERN: ("pattern", "pattern"),
    ValidationRuleType.MIN_VALUE: ("minimum", "value"),
    ValidationRuleType.MAX_VALUE: ("maximum", "value"),
}


def _option_values(field: FieldSpec) -> list[Any]:
    return [copy.deepcopy(option.value) for option in field.options or []]


def build_property_schema(field: FieldSpec, form: FormDefinition | None = None) -> dict[str, Any]:
    """Build the JSON Schema fragment for a single input field.

    Args:
        field: The field to describe.
        form: The owning form, needed to resolve referenced validation rules.

    Returns:
        A dict with type/format/enum/items plus title, description,
        default and x-* metadata where present.
    """
    prop: dict[str, Any] = {}

    if field.type == FieldType.MULTISELECT:
        items: dict[str, Any] = {"type": "string"}
        if field.options:
            items["enum"] = _option_values(field)
        prop["type"] = "array"
        prop["items"] = items
    else:
        json_type, fmt = _SCALAR_TYPES.get(field.type, ("string", None))
        prop["type"] = json_type
        if fmt is not None:
            prop["format"] = fmt
        if field.type in {FieldType.SELECT, FieldType.RADIO} and field.options:
            prop["enum"] = _option_values(field)

    if field.label is not None:
        prop["title"] = field.label
    if field.help_text is not None:
        prop["description"] = field.help_text

    if form is not None:
        _apply_validation_rules(field, form, prop)

    if field.conditional is not None:
        prop["x-conditional"] = copy.deepcopy(field.conditional)

    if field.has_default:
        prop["default"] = copy.deepcopy(field.default_value)

    return prop


def _apply_validation_rules(field: FieldSpec, form: FormDefinition, prop: dict[str, Any]) -> None:
    """Merge the constraints of every rule the field references into prop."""
    if field.validation is None:
        return

    for rule_id in field.validation.rules:
        rule = form.get_rule(rule_id)
        if rule is None:
            continue

        if rule.json_schema:
            prop.update(copy.deepcopy(rule.json_schema))

        mapping = _RULE_KEYWORDS.get(rule.type)
        if mapping is not None:
            keyword, param = mapping
            value = (rule.parameters or {}).get(param)
            if value is not None:
                prop[keyword] = value

        if rule.message:
            prop["x-validation-message"] = rule.message

    if field.validation.custom_message:
        prop["x-validation-message"] = field.validation.custom_message


def select_fields(
    form: FormDefinition,
    order: PropertyOrder = PropertyOrder.FIELDS,
) -> list[FieldSpec]:
    """Return the fields that take part in compilation, in compile order.

    Without steps every field is eligible. With steps, only fields
    referenced by at least one step are kept. FIELDS order keeps the
    form's field order; STEPS order walks steps by (order, position)
    and keeps the form's field order within a step. Layout fields are
    not filtered here.
    """
    if not form.steps:
        return list(form.fields)

    if order == PropertyOrder.STEPS:
        selected: list[FieldSpec] = []
        seen: set[str] = set()
        ordered_steps = sorted(enumerate(form.steps), key=lambda pair: (pair[1].order, pair[0]))
        for _, step in ordered_steps:
            step_ids = set(step.fields)
            for field in form.fields:
                if field.id in step_ids and field.id not in seen:
                    seen.add(field.id)
                    selected.append(field)
        return selected

    referenced = {field_id for step in form.steps for field_id in step.fields}
    return [field for field in form.fields if field.id in referenced]


def compile_form(
    form: FormDefinition | dict[str, Any],
    order: PropertyOrder | str = PropertyOrder.FIELDS,
) -> dict[str, Any]:
    """Compile a form definition into a JSON Schema document.

    Args:
        form: A FormDefinition, or a raw mapping in the stored JSON shape.
        order: Property order for stepped forms ("fields" or "steps").

    Returns:
        {type, title, properties, required, additionalProperties: False}

    Raises:
        FormDefinitionError: If a raw mapping is not a valid form.
    """
    form = parse_form_definition(form)
    order = PropertyOrder(order)

    properties: dict[str, Any] = {}
    required: list[str] = []

    for field in select_fields(form, order):
        if field.is_layout:
            continue

        if not isinstance(field.type, FieldType):
            logger.warning(
                "Field '%s' has unknown type '%s', compiling as string",
                field.name,
                field.type,
            )

        if field.name in properties:
            logger.warning("Duplicate field name '%s', last definition wins", field.name)

        if field.required and field.name not in required:
            required.append(field.name)

        properties[field.name] = build_property_schema(field, form)

    logger.debug(
        "Compiled form '%s': %d properties, %d required",
        form.title,
        len(properties),
        len(required),
    )

    return {
        "type": "object",
        "title": f"{form.title}{DOCUMENT_TITLE_SUFFIX}",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }
