"""
Validation result models.

The ValidationResult shape is passed through verbatim by callers
(HTTP layer, designer preview), so field names here are the wire names.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

ROOT_FIELD = "root"
SCHEMA_ERROR_CODE = "schema_error"

SUCCESS_MESSAGE = "Validation successful"
FAILURE_MESSAGE = "Validation failed"
SCHEMA_ERROR_MESSAGE = "Schema validation error"


class FieldError(BaseModel):
    """One validation failure, keyed by property name (or 'root')."""

    field: str
    code: str
    message: str
    value: Any = None


class ValidationResult(BaseModel):
    """Outcome of validating one payload against one form."""

    valid: bool
    errors: list[FieldError] = Field(default_factory=list)
    timestamp: str
    message: str


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2026-01-15T10:30:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success_result() -> ValidationResult:
    return ValidationResult(
        valid=True,
        errors=[],
        timestamp=utc_timestamp(),
        message=SUCCESS_MESSAGE,
    )


def failure_result(errors: list[FieldError]) -> ValidationResult:
    return ValidationResult(
        valid=False,
        errors=errors,
        timestamp=utc_timestamp(),
        message=FAILURE_MESSAGE,
    )


def schema_error_result(reason: str, value: Any = None) -> ValidationResult:
    """Build the result for a form that could not be compiled."""
    return ValidationResult(
        valid=False,
        errors=[
            FieldError(
                field=ROOT_FIELD,
                code=SCHEMA_ERROR_CODE,
                message=f"{SCHEMA_ERROR_MESSAGE}: {reason}",
                value=value,
            )
        ],
        timestamp=utc_timestamp(),
        message=SCHEMA_ERROR_MESSAGE,
    )
