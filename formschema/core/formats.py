"""
Validation engine configuration.

Builds the draft-07 validator class and format checker used to match
payloads against compiled form schemas. Both are created once by
build_engine() and handed to FormValidator explicitly; nothing here
is modified after construction.
"""

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from jsonschema import Draft7Validator, FormatChecker, ValidationError, validators

from formschema.core.utils import parse_date, parse_datetime, parse_time

TEL_PATTERN = re.compile(r"^[+]?[0-9\s\-\(\)]+$")

_EMAIL_PATTERN = re.compile(
    r"^[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$",
    re.IGNORECASE,
)

# Schema keywords that carry designer metadata only
METADATA_KEYWORDS = ("x-field-type", "x-validation-message", "x-conditional")


# --- Format checks ---


def _is_tel(value: Any) -> bool:
    if not isinstance(value, str):
        return True
    return TEL_PATTERN.match(value) is not None


def _is_email(value: Any) -> bool:
    if not isinstance(value, str):
        return True
    return _EMAIL_PATTERN.match(value) is not None


def _is_uri(value: Any) -> bool:
    if not isinstance(value, str):
        return True
    if any(ch.isspace() for ch in value):
        return False
    parts = urlsplit(value)
    if not parts.scheme or not re.match(r"^[a-z][a-z0-9+.\-]*$", parts.scheme, re.IGNORECASE):
        return False
    # Hierarchical URIs need an authority or a path
    return bool(parts.netloc or parts.path)


def _is_date(value: Any) -> bool:
    if not isinstance(value, str):
        return True
    return parse_date(value) is not None


def _is_datetime(value: Any) -> bool:
    if not isinstance(value, str):
        return True
    return parse_datetime(value) is not None


def _is_time(value: Any) -> bool:
    if not isinstance(value, str):
        return True
    return parse_time(value) is not None


_FORMAT_CHECKS = {
    "tel": _is_tel,
    "email": _is_email,
    "uri": _is_uri,
    "date": _is_date,
    "date-time": _is_datetime,
    "time": _is_time,
}


def build_format_checker() -> FormatChecker:
    """Create a format checker holding only the formats forms compile to."""
    checker = FormatChecker(formats=())
    for name, check in _FORMAT_CHECKS.items():
        checker.checks(name)(check)
    return checker


# --- Keywords ---


def _metadata_keyword(validator, value, instance, schema):
    """Designer metadata never fails validation."""
    yield from ()


def _required(validator, required, instance, schema):
    """Like draft-07 `required`, but the error path names the missing property."""
    if not validator.is_type(instance, "object"):
        return
    for name in required:
        if name not in instance:
            yield ValidationError(f"{name!r} is a required property", path=[name])


FormSchemaValidator = validators.extend(
    Draft7Validator,
    validators={
        "required": _required,
        **{keyword: _metadata_keyword for keyword in METADATA_KEYWORDS},
    },
)


# --- Engine ---


@dataclass(frozen=True)
class ValidationEngine:
    """Validator class plus format checker, shared by every FormValidator."""

    validator_class: type
    format_checker: FormatChecker

    def compile(self, schema: dict[str, Any]):
        """Check the schema and return a reusable matcher for it.

        Raises:
            jsonschema.SchemaError: If the compiled document is not a valid schema.
        """
        self.validator_class.check_schema(schema)
        return self.validator_class(schema, format_checker=self.format_checker)


def build_engine() -> ValidationEngine:
    """Create the validation engine configuration."""
    return ValidationEngine(
        validator_class=FormSchemaValidator,
        format_checker=build_format_checker(),
    )
