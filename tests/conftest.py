"""Shared pytest fixtures for formsmith tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from formsmith.core.ir import FormSchema


def make_schema(fields: list[dict[str, Any]], form_id: str = "test-form") -> FormSchema:
    """Build a schema from camelCase field dicts, as the builder stores them."""
    return FormSchema.model_validate({"id": form_id, "name": "Test Form", "fields": fields})


@pytest.fixture
def schema_factory() -> Callable[..., FormSchema]:
    """Return the schema builder for tests that declare their own fields."""
    return make_schema


@pytest.fixture
def order_schema() -> FormSchema:
    """A small order form: two inputs and a chain of derived fields."""
    return make_schema(
        [
            {"id": "price", "type": "number", "label": "Unit Price", "required": True},
            {"id": "qty", "type": "number", "label": "Quantity", "defaultValue": 1},
            {
                "id": "subtotal",
                "type": "number",
                "label": "Subtotal",
                "derivedFrom": {
                    "parentFields": ["price", "qty"],
                    "computationLogic": "price * qty",
                },
            },
            {
                "id": "total",
                "type": "number",
                "label": "Total",
                "derivedFrom": {
                    "parentFields": ["subtotal"],
                    "computationLogic": "Math.round(subtotal * 1.2)",
                },
            },
        ]
    )


@pytest.fixture
def signup_schema() -> FormSchema:
    """A sign-up form exercising every rule type."""
    return make_schema(
        [
            {
                "id": "name",
                "type": "text",
                "label": "Name",
                "required": True,
                "validation": [
                    {"type": "minLength", "value": 2, "message": "Name is too short"},
                    {"type": "maxLength", "value": 10, "message": "Name is too long"},
                ],
            },
            {
                "id": "email",
                "type": "text",
                "label": "Email",
                "validation": [{"type": "email", "message": "Invalid email"}],
            },
            {
                "id": "password",
                "type": "text",
                "label": "Password",
                "required": True,
                "validation": [{"type": "customPassword", "message": "Weak password"}],
            },
            {"id": "newsletter", "type": "checkbox", "label": "Newsletter"},
            {
                "id": "plan",
                "type": "select",
                "label": "Plan",
                "options": ["free", "pro"],
                "defaultValue": "free",
            },
        ],
        form_id="signup",
    )
