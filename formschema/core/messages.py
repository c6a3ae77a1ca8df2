"""
Human-readable messages for validation errors.

Messages always lead with the field label. A field's customMessage
wins, then the message of a referenced rule matching the failed
keyword, then the built-in table below.
"""

from typing import Any

from formschema.core.schema import FieldSpec, FormDefinition, ValidationRuleType

# Rule type -> engine keywords it is responsible for
_RULE_KEYWORDS: dict[ValidationRuleType, frozenset[str]] = {
    ValidationRuleType.REQUIRED: frozenset({"required"}),
    ValidationRuleType.MIN_LENGTH: frozenset({"minLength"}),
    ValidationRuleType.MAX_LENGTH: frozenset({"maxLength"}),
    ValidationRuleType.PATTERN: frozenset({"pattern"}),
    ValidationRuleType.EMAIL: frozenset({"format"}),
    ValidationRuleType.URL: frozenset({"format"}),
    ValidationRuleType.NUMERIC: frozenset({"type", "pattern"}),
    ValidationRuleType.MIN_VALUE: frozenset({"minimum"}),
    ValidationRuleType.MAX_VALUE: frozenset({"maximum"}),
}


def _join(constraint: Any) -> str:
    if isinstance(constraint, (list, tuple)):
        return ", ".join(str(item) for item in constraint)
    return str(constraint)


def default_message(keyword: str, label: str, constraint: Any, engine_message: str | None = None) -> str:
    """Render the built-in message for an engine keyword.

    Args:
        keyword: The failed JSON Schema keyword (required, type, enum, ...).
        label: Field label, or its name when no label exists.
        constraint: The schema value of the failed keyword.
        engine_message: The engine's own message, used for unmapped keywords.
    """
    match keyword:
        case "required":
            return f"{label} is required"
        case "type":
            return f"{label} must be of type {_join(constraint)}"
        case "format":
            return f"{label} must be a valid {constraint}"
        case "minLength":
            return f"{label} must be at least {constraint} characters long"
        case "maxLength":
            return f"{label} must not exceed {constraint} characters"
        case "minimum":
            return f"{label} must be at least {constraint}"
        case "maximum":
            return f"{label} must not exceed {constraint}"
        case "pattern":
            return f"{label} format is invalid"
        case "enum":
            return f"{label} must be one of: {_join(constraint)}"

    return engine_message or f"{label} is invalid"


def rule_message(field: FieldSpec, form: FormDefinition, keyword: str) -> str | None:
    """Return the designer-supplied message for this field and keyword, if any."""
    if field.validation is None:
        return None

    if field.validation.custom_message:
        return field.validation.custom_message

    for rule_id in field.validation.rules:
        rule = form.get_rule(rule_id)
        if rule is None or not rule.message:
            continue
        if keyword in _RULE_KEYWORDS.get(rule.type, frozenset()):
            return rule.message

    return None


def resolve_message(
    form: FormDefinition,
    field_path: str,
    keyword: str,
    constraint: Any,
    engine_message: str | None = None,
) -> str:
    """Resolve the message for one engine error.

    The label is looked up through the first segment of the field path,
    so item errors such as 'languages/1' still read 'Languages ...'.
    """
    field = form.get_field_by_name(field_path)
    if field is None and "/" in field_path:
        field = form.get_field_by_name(field_path.split("/", 1)[0])
    if field is None:
        return default_message(keyword, field_path, constraint, engine_message)

    custom = rule_message(field, form, keyword)
    if custom:
        return custom

    return default_message(keyword, field.display_name, constraint, engine_message)
