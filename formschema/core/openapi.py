"""
OpenAPI 3.0 document for a form's validation endpoint.

The document embeds the compiled form schema as components.schemas.FormData
and describes the ValidationResult shapes returned for 200 and 400.
"""

from typing import Any

from formschema.core.compiler import PropertyOrder, compile_form
from formschema.core.schema import FormDefinition, parse_form_definition
from formschema.core.utils import slugify, to_pascal_case

OPENAPI_VERSION = "3.0.3"
DEFAULT_API_VERSION = "1.0.0"


def _ref(name: str) -> dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def _json_content(schema_name: str) -> dict[str, Any]:
    return {"application/json": {"schema": _ref(schema_name)}}


def _response_schemas() -> dict[str, Any]:
    return {
        "ValidationSuccess": {
            "type": "object",
            "title": "Validation Success Response",
            "properties": {
                "valid": {"type": "boolean", "enum": [True]},
                "message": {"type": "string", "example": "Validation successful"},
                "errors": {"type": "array", "maxItems": 0, "items": _ref("FieldError")},
                "timestamp": {"type": "string", "format": "date-time"},
            },
            "required": ["valid"],
        },
        "ValidationError": {
            "type": "object",
            "title": "Validation Error Response",
            "properties": {
                "valid": {"type": "boolean", "enum": [False]},
                "message": {"type": "string", "example": "Validation failed"},
                "errors": {"type": "array", "items": _ref("FieldError")},
                "timestamp": {"type": "string", "format": "date-time"},
            },
            "required": ["valid", "errors"],
        },
        "FieldError": {
            "type": "object",
            "title": "Field Validation Error",
            "properties": {
                "field": {
                    "type": "string",
                    "description": "Field name that failed validation",
                    "example": "email",
                },
                "code": {
                    "type": "string",
                    "description": (
                        "The failed JSON Schema keyword (required, type, format, enum, ...),"
                        " or schema_error when the form itself is malformed"
                    ),
                    "example": "required",
                },
                "message": {
                    "type": "string",
                    "description": "Human-readable error message",
                    "example": "Email is required",
                },
                "value": {"description": "The invalid value that was provided"},
            },
            "required": ["field", "code", "message"],
        },
    }


def build_openapi_document(
    form: FormDefinition | dict[str, Any],
    order: PropertyOrder | str = PropertyOrder.FIELDS,
) -> dict[str, Any]:
    """Build an OpenAPI document describing POST /forms/{id}/validate.

    Args:
        form: A FormDefinition or a raw mapping in the stored JSON shape.
        order: Property order for stepped forms.

    Returns:
        The OpenAPI document as a plain dict.

    Raises:
        FormDefinitionError: If a raw mapping is not a valid form.
    """
    form = parse_form_definition(form)
    form_id = form.id or slugify(form.title)

    schemas = {"FormData": compile_form(form, order)}
    schemas.update(_response_schemas())

    return {
        "openapi": OPENAPI_VERSION,
        "info": {
            "title": f"{form.title} API",
            "description": form.description or f"Validation API for {form.title}",
            "version": form.version or DEFAULT_API_VERSION,
        },
        "servers": [{"url": "/api", "description": "API server"}],
        "paths": {
            f"/forms/{form_id}/validate": {
                "post": {
                    "summary": f"Validate {form.title} form data",
                    "description": f"Validates form data against the schema for {form.title}",
                    "operationId": f"validate{to_pascal_case(form.title)}",
                    "tags": ["Form Validation"],
                    "requestBody": {
                        "required": True,
                        "content": _json_content("FormData"),
                    },
                    "responses": {
                        "200": {
                            "description": "Validation successful",
                            "content": _json_content("ValidationSuccess"),
                        },
                        "400": {
                            "description": "Validation failed",
                            "content": _json_content("ValidationError"),
                        },
                    },
                }
            }
        },
        "components": {"schemas": schemas},
    }
