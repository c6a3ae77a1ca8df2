"""
Form definition models.

These Pydantic models define the contract between the form designer,
the form store, and the schema compiler. A FormDefinition is the
single source of truth for fields, steps, options, and validation
rules of a dynamic form.

Stored forms use camelCase keys (helpText, defaultValue, ...). The
models accept both camelCase and snake_case and dump to camelCase.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


# --- Enums ---


class FieldType(str, Enum):
    """Supported form field types."""

    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    NUMBER = "number"
    TEL = "tel"
    URL = "url"
    TEXTAREA = "textarea"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    FILE = "file"
    IMAGE = "image"
    RANGE = "range"
    HIDDEN = "hidden"
    SECTION_HEADER = "section_header"
    DIVIDER = "divider"


# Layout-only types never produce a schema property.
LAYOUT_FIELD_TYPES = frozenset({FieldType.SECTION_HEADER, FieldType.DIVIDER})

OPTION_FIELD_TYPES = frozenset({FieldType.SELECT, FieldType.RADIO, FieldType.MULTISELECT})


class ValidationRuleType(str, Enum):
    """Reusable validation rule kinds a designer can attach to fields."""

    REQUIRED = "required"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    PATTERN = "pattern"
    EMAIL = "email"
    URL = "url"
    NUMERIC = "numeric"
    MIN_VALUE = "min_value"
    MAX_VALUE = "max_value"
    CUSTOM = "custom"


class _FormModel(BaseModel):
    """Base for all form models: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# --- Options and Validation ---


class FieldOption(_FormModel):
    """One choice of a select, radio, or multiselect field."""

    value: Any = Field(..., description="Submitted value (becomes an enum member)")
    label: str | None = Field(default=None, description="Text shown to the user")


class ValidationRule(_FormModel):
    """A named, reusable validation rule declared at form level.

    Fields reference rules by id through `validation.rules`.
    """

    id: str = Field(..., min_length=1, description="Unique rule identifier")
    type: ValidationRuleType = Field(..., description="Rule kind")
    parameters: dict[str, Any] | None = Field(
        default=None,
        description="Rule parameters, e.g. {'value': 3} or {'pattern': '^[A-Z]+$'}",
    )
    message: str | None = Field(
        default=None,
        description="Message shown when this rule fails",
    )
    json_schema: dict[str, Any] | None = Field(
        default=None,
        description="Raw JSON Schema fragment merged into the field property",
    )


class FieldValidation(_FormModel):
    """Per-field validation settings."""

    rules: list[str] = Field(
        default_factory=list,
        description="Ids of form-level validation rules applied to this field",
    )
    custom_message: str | None = Field(
        default=None,
        description="Message that replaces every generated message for this field",
    )


# --- Fields and Steps ---


class FieldSpec(_FormModel):
    """Definition of a single form field.

    Known type strings are coerced to FieldType. Unknown strings are
    kept as-is; the compiler treats them as plain strings.
    """

    id: str = Field(..., min_length=1, description="Unique field identifier")
    name: str = Field(..., min_length=1, description="Property key in submitted data")
    label: str | None = Field(default=None, description="Human label")
    type: FieldType | str = Field(..., description="The widget type for this field")
    required: bool = Field(default=False, description="Whether a value must be submitted")
    placeholder: str | None = None
    help_text: str | None = Field(default=None, description="Becomes the schema description")
    default_value: Any = Field(default=None, description="Becomes the schema default")
    options: list[FieldOption] | None = Field(
        default=None,
        description="Available options (required for select, radio, and multiselect)",
    )
    validation: FieldValidation | None = None
    conditional: dict[str, Any] | None = Field(
        default=None,
        description="Opaque conditional-display logic, carried as x-conditional",
    )

    @field_validator("type", mode="before")
    @classmethod
    def coerce_known_type(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, FieldType):
            try:
                return FieldType(value)
            except ValueError:
                return value
        return value

    @model_validator(mode="after")
    def validate_options_for_type(self) -> "FieldSpec":
        """Choice fields must have options defined."""
        if self.type in OPTION_FIELD_TYPES and not self.options:
            raise ValueError(
                f"Field '{self.id}' of type '{self.type_name}' must have non-empty 'options'"
            )
        return self

    @property
    def type_name(self) -> str:
        """The field type as a plain string."""
        return self.type.value if isinstance(self.type, FieldType) else str(self.type)

    @property
    def is_layout(self) -> bool:
        return self.type in LAYOUT_FIELD_TYPES

    @property
    def has_default(self) -> bool:
        """True when a default was supplied, even an explicit null."""
        return "default_value" in self.model_fields_set

    @property
    def display_name(self) -> str:
        return self.label or self.name


class StepSpec(_FormModel):
    """A named, ordered subset of fields shown together (wizard page)."""

    id: str = Field(..., min_length=1)
    title: str = ""
    order: int = 0
    fields: list[str] = Field(
        default_factory=list,
        description="Field ids shown on this step",
    )


# --- Top-Level Form Definition ---


class FormDefinition(_FormModel):
    """Top-level form definition.

    Validates field id and name uniqueness. Steps and field validation
    settings that point at unknown ids are logged and left in place:
    unknown step entries select nothing, unknown rules apply nothing.
    """

    id: str | None = None
    title: str = Field(..., min_length=1, description="Form title")
    description: str | None = None
    version: str | None = None
    fields: list[FieldSpec] = Field(..., description="Ordered form fields")
    steps: list[StepSpec] | None = None
    validation_rules: list[ValidationRule] | None = None

    @model_validator(mode="after")
    def validate_cross_field_references(self) -> "FormDefinition":
        """Validate uniqueness and references between fields, steps, and rules."""
        field_ids = set()
        names = set()

        for f in self.fields:
            if f.id in field_ids:
                raise ValueError(f"Duplicate field ID: '{f.id}'")
            field_ids.add(f.id)

            # Layout fields never become properties, so their names may repeat
            if f.is_layout:
                continue
            if f.name in names:
                raise ValueError(f"Duplicate field name: '{f.name}'")
            names.add(f.name)

        for step in self.steps or []:
            for field_id in step.fields:
                if field_id not in field_ids:
                    logger.warning(
                        "Step '%s' references non-existent field '%s', ignoring it",
                        step.id,
                        field_id,
                    )

        rule_ids = {rule.id for rule in self.validation_rules or []}
        for f in self.fields:
            if f.validation is None:
                continue
            for rule_id in f.validation.rules:
                if rule_id not in rule_ids:
                    logger.warning(
                        "Field '%s' references non-existent validation rule '%s', ignoring it",
                        f.id,
                        rule_id,
                    )

        return self

    def get_field_by_name(self, name: str) -> FieldSpec | None:
        for f in self.fields:
            if f.name == name and not f.is_layout:
                return f
        return None

    def get_rule(self, rule_id: str) -> ValidationRule | None:
        for rule in self.validation_rules or []:
            if rule.id == rule_id:
                return rule
        return None


# --- Loading ---


class FormDefinitionError(Exception):
    """Raised when a form definition cannot be read or is malformed."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)


def describe_validation_error(exc: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into readable one-line messages."""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        text = err.get("msg", "invalid value")
        # Errors raised inside our validators carry pydantic's "Value error, " prefix
        text = text.removeprefix("Value error, ")
        messages.append(f"{location}: {text}" if location else text)
    return messages


def parse_form_definition(data: Any) -> FormDefinition:
    """Build a FormDefinition from a raw mapping.

    Raises:
        FormDefinitionError: If the data does not describe a valid form.
    """
    if isinstance(data, FormDefinition):
        return data
    if not isinstance(data, dict):
        raise FormDefinitionError(
            f"Form definition must be an object, got {type(data).__name__}"
        )
    try:
        return FormDefinition.model_validate(data)
    except ValidationError as e:
        errors = describe_validation_error(e)
        raise FormDefinitionError(f"Invalid form definition: {'; '.join(errors)}", errors) from e


def load_form_definition(path: str | Path) -> FormDefinition:
    """Read a form definition from a .json, .yaml, or .yml file.

    Args:
        path: Location of the form file.

    Returns:
        The validated FormDefinition.

    Raises:
        FormDefinitionError: If the file cannot be read, parsed, or validated.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FormDefinitionError(f"Cannot read form file '{path}': {e}") from e

    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise FormDefinitionError(f"Cannot parse form file '{path}': {e}") from e

    return parse_form_definition(data)
