"""
Shared fixtures for the formschema test suite.

Provides the example form definitions shipped in formschema/forms
and a fresh FormValidator per test, so cache assertions never see
entries left behind by other tests.
"""

from pathlib import Path

import pytest

from formschema.core.formats import build_engine
from formschema.core.schema import FormDefinition, load_form_definition
from formschema.core.validator import FormValidator

FORMS_DIR = Path(__file__).parent.parent / "forms"


@pytest.fixture
def forms_dir() -> Path:
    return FORMS_DIR


@pytest.fixture
def contact_form() -> FormDefinition:
    return load_form_definition(FORMS_DIR / "contact_form.json")


@pytest.fixture
def registration_form() -> FormDefinition:
    return load_form_definition(FORMS_DIR / "registration.yaml")


@pytest.fixture
def validator() -> FormValidator:
    return FormValidator(engine=build_engine(), cache_size=8)


@pytest.fixture
def email_form() -> dict:
    """The single-field form used throughout the reference scenarios."""
    return {
        "title": "Test Form",
        "fields": [
            {
                "id": "1",
                "name": "email",
                "type": "email",
                "label": "Email Address",
                "required": True,
            }
        ],
    }
