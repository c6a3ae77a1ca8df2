"""
Command-line entry point for formschema.

Commands:
- compile FORM: print the JSON Schema compiled from a form definition
- validate FORM DATA: validate a JSON payload, print the ValidationResult
- openapi FORM: print the OpenAPI document for the form's validate endpoint
- check FORM: load and check a form definition only

Exit codes: 0 success/valid, 1 invalid payload, 2 malformed input.

Run with:
    python -m formschema.cli.main validate form.json data.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from formschema.core.compiler import PropertyOrder, compile_form
from formschema.core.formats import build_engine
from formschema.core.openapi import build_openapi_document
from formschema.core.results import SCHEMA_ERROR_CODE, schema_error_result
from formschema.core.schema import FormDefinitionError, load_form_definition
from formschema.core.settings import Settings, load_settings
from formschema.core.validator import FormValidator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_MALFORMED = 2


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _read_payload(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formschema",
        description="Compile form definitions to JSON Schema and validate submissions.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    order_choices = [order.value for order in PropertyOrder]

    compile_cmd = sub.add_parser("compile", help="Print the compiled JSON Schema.")
    compile_cmd.add_argument("form", help="Path to a .json/.yaml form definition.")
    compile_cmd.add_argument("--order", choices=order_choices, help="Property order for stepped forms.")

    validate_cmd = sub.add_parser("validate", help="Validate a JSON payload against a form.")
    validate_cmd.add_argument("form", help="Path to a .json/.yaml form definition.")
    validate_cmd.add_argument("data", help="Path to the JSON payload.")
    validate_cmd.add_argument("--order", choices=order_choices, help="Property order for stepped forms.")

    openapi_cmd = sub.add_parser("openapi", help="Print the OpenAPI document for a form.")
    openapi_cmd.add_argument("form", help="Path to a .json/.yaml form definition.")
    openapi_cmd.add_argument("--order", choices=order_choices, help="Property order for stepped forms.")

    check_cmd = sub.add_parser("check", help="Check that a form definition is well formed.")
    check_cmd.add_argument("form", help="Path to a .json/.yaml form definition.")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the formschema command line."""
    load_dotenv(find_dotenv(usecwd=True))
    settings = load_settings()
    _configure_logging(settings)

    args = _build_parser().parse_args(argv)
    order = PropertyOrder(getattr(args, "order", None) or settings.property_order)

    if args.command == "validate":
        try:
            payload = _read_payload(args.data)
        except (OSError, json.JSONDecodeError) as e:
            print(f"ERROR: cannot read payload '{args.data}': {e}", file=sys.stderr)
            return EXIT_MALFORMED

        try:
            form = load_form_definition(args.form)
        except FormDefinitionError as e:
            # Reported through the result shape, like any malformed form
            logger.info("Form file rejected: %s", e.message)
            result = schema_error_result(e.message, payload)
        else:
            validator = FormValidator(
                engine=build_engine(),
                cache_size=settings.cache_size,
                property_order=order,
            )
            result = validator.validate(form, payload)

        _print_json(result.model_dump())
        if result.valid:
            return EXIT_OK
        if any(err.code == SCHEMA_ERROR_CODE for err in result.errors):
            return EXIT_MALFORMED
        return EXIT_INVALID

    try:
        form = load_form_definition(args.form)
    except FormDefinitionError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        for err in e.errors:
            print(f"  - {err}", file=sys.stderr)
        return EXIT_MALFORMED

    if args.command == "compile":
        _print_json(compile_form(form, order))
    elif args.command == "openapi":
        _print_json(build_openapi_document(form, order))
    else:
        print(f"OK: {form.title} ({len(form.fields)} fields)")

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
