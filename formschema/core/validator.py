"""
Form submission validator.

Compiles a form definition to JSON Schema, matches a payload against
it with the shared validation engine, and turns engine errors into
FieldError records with label-first messages.

validate() never raises: malformed forms come back as a single
'schema_error' FieldError on 'root'.
"""

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from functools import lru_cache
from typing import Any

from jsonschema import SchemaError
from pydantic import ValidationError

from formschema.core.compiler import PropertyOrder, compile_form
from formschema.core.formats import ValidationEngine, build_engine
from formschema.core.messages import resolve_message
from formschema.core.results import (
    ROOT_FIELD,
    FieldError,
    ValidationResult,
    failure_result,
    schema_error_result,
    success_result,
)
from formschema.core.schema import (
    FieldSpec,
    FormDefinition,
    FormDefinitionError,
    ValidationRule,
    describe_validation_error,
    parse_form_definition,
)
from formschema.core.settings import DEFAULT_CACHE_SIZE, load_settings

logger = logging.getLogger(__name__)

SINGLE_FIELD_FORM_TITLE = "Temp Schema"


def schema_fingerprint(schema: dict[str, Any]) -> str:
    """Stable hash of a compiled schema, used as the matcher cache key."""
    canonical = json.dumps(schema, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class FormValidator:
    """Validates submitted data against form definitions.

    Compiled matchers are cached by schema fingerprint. Entries are
    never mutated once stored, so the cache is safe to share between
    threads; a race on first insert just compiles the same matcher twice.

    Args:
        engine: Validation engine configuration (see build_engine()).
        cache_size: Max matchers kept, least recently used evicted first.
            0 disables caching.
        property_order: Property order used when compiling stepped forms.
    """

    def __init__(
        self,
        engine: ValidationEngine | None = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
        property_order: PropertyOrder = PropertyOrder.FIELDS,
    ):
        self._engine = engine or build_engine()
        self._cache_size = cache_size
        self._property_order = PropertyOrder(property_order)
        self._matchers: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.RLock()

    # -----------------------------------------------------------------
    # Matcher cache
    # -----------------------------------------------------------------

    def _get_matcher(self, schema: dict[str, Any]):
        key = schema_fingerprint(schema)

        with self._lock:
            matcher = self._matchers.get(key)
            if matcher is not None:
                self._matchers.move_to_end(key)
                logger.debug("Matcher cache hit: %s", key[:12])
                return matcher

        logger.debug("Matcher cache miss: %s", key[:12])
        matcher = self._engine.compile(schema)

        if self._cache_size > 0:
            with self._lock:
                self._matchers[key] = matcher
                self._matchers.move_to_end(key)
                while len(self._matchers) > self._cache_size:
                    self._matchers.popitem(last=False)

        return matcher

    def clear_cache(self) -> None:
        """Drop every compiled matcher."""
        with self._lock:
            self._matchers.clear()

    @property
    def cache_size(self) -> int:
        """Number of compiled matchers currently cached."""
        with self._lock:
            return len(self._matchers)

    # -----------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------

    def validate(self, form: FormDefinition | dict[str, Any], data: Any) -> ValidationResult:
        """Validate a payload against a form.

        Args:
            form: A FormDefinition or a raw mapping in the stored JSON shape.
            data: The submitted payload (normally a mapping of name -> value).

        Returns:
            A ValidationResult. Never raises for bad forms or payloads.
        """
        try:
            form = parse_form_definition(form)
            schema = compile_form(form, self._property_order)
            matcher = self._get_matcher(schema)
        except FormDefinitionError as e:
            logger.info("Rejected malformed form definition: %s", e.message)
            return schema_error_result(e.message, data)
        except SchemaError as e:
            logger.info("Compiled schema is invalid: %s", e.message)
            return schema_error_result(e.message, data)

        try:
            engine_errors = list(matcher.iter_errors(data))
        except Exception as e:
            logger.error("Error while matching payload for form '%s': %s", form.title, e, exc_info=True)
            return schema_error_result(str(e), data)

        if not engine_errors:
            return success_result()

        errors = [self._to_field_error(form, error) for error in engine_errors]
        logger.debug("Form '%s' failed validation with %d errors", form.title, len(errors))
        return failure_result(errors)

    def validate_field(
        self,
        field: FieldSpec | dict[str, Any],
        value: Any,
        validation_rules: list[ValidationRule | dict[str, Any]] | None = None,
    ) -> ValidationResult:
        """Validate a single value as if it were the only field of a form.

        Args:
            field: The field definition.
            value: The value submitted for it.
            validation_rules: Form-level rules the field references, if any.
        """
        try:
            form = FormDefinition.model_validate({
                "title": SINGLE_FIELD_FORM_TITLE,
                "fields": [field],
                "validation_rules": validation_rules,
            })
        except ValidationError as e:
            reason = "; ".join(describe_validation_error(e))
            return schema_error_result(f"Invalid field definition: {reason}", value)

        return self.validate(form, {form.fields[0].name: value})

    @staticmethod
    def _to_field_error(form: FormDefinition, error) -> FieldError:
        """Convert one engine error to a FieldError."""
        path = "/".join(str(part) for part in error.absolute_path)
        field = path or ROOT_FIELD
        keyword = error.validator

        return FieldError(
            field=field,
            code=keyword,
            message=resolve_message(
                form,
                field,
                keyword,
                error.validator_value,
                engine_message=error.message,
            ),
            value=None if keyword == "required" else error.instance,
        )


# --- Module-level helpers ---


@lru_cache(maxsize=1)
def get_default_validator() -> FormValidator:
    """Return the process-wide validator, configured from settings on first use."""
    settings = load_settings()
    return FormValidator(
        engine=build_engine(),
        cache_size=settings.cache_size,
        property_order=settings.property_order,
    )


def validate_form_data(form: FormDefinition | dict[str, Any], data: Any) -> ValidationResult:
    """Validate a payload with the process-wide validator."""
    return get_default_validator().validate(form, data)


def validate_field(
    field: FieldSpec | dict[str, Any],
    value: Any,
    validation_rules: list[ValidationRule | dict[str, Any]] | None = None,
) -> ValidationResult:
    """Validate a single field value with the process-wide validator."""
    return get_default_validator().validate_field(field, value, validation_rules)
