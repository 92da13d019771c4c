"""
Form session helpers.

Packages the preview loop a renderer runs on every edit: seed initial
values, then per change set the value, recompute derived fields and
revalidate. Every helper returns a new ``FormState``; the one passed in is
left untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from formsmith.core.config import DEFAULT_CONFIG, EngineConfig
from formsmith.core.derived.calculator import update_derived_fields
from formsmith.core.ir import FieldType, FormField, FormSchema, FormState
from formsmith.core.validation.form import validate_form

logger = logging.getLogger(__name__)


def initial_value(fld: FormField) -> Any:
    """Starting value for a field: its default, else an empty value of the right shape."""
    if fld.has_default:
        return fld.default_value
    if fld.type == FieldType.CHECKBOX:
        return [] if fld.options else False
    return ""


def initial_values(schema: FormSchema) -> dict[str, Any]:
    return {fld.id: initial_value(fld) for fld in schema.fields}


def initial_state(schema: FormSchema, config: EngineConfig | None = None) -> FormState:
    """
    Fresh session state.

    Derived values are computed from the initial values. Nothing is
    validated yet, so ``errors`` is empty and ``is_valid`` is False.
    """
    derived = update_derived_fields(initial_values(schema), schema, config or DEFAULT_CONFIG)
    return FormState(values=derived.values, derived_errors=derived.errors)


def apply_field_change(
    state: FormState,
    schema: FormSchema,
    field_id: str,
    value: Any,
    config: EngineConfig | None = None,
) -> FormState:
    """Set one field, recompute derived fields, and revalidate the whole form.

    Raises:
        KeyError: If ``field_id`` is not a field of the schema.
    """
    if schema.get_field(field_id) is None:
        raise KeyError(f"Unknown field '{field_id}' in form '{schema.id}'")

    config = config or DEFAULT_CONFIG
    values = dict(state.values)
    values[field_id] = value

    derived = update_derived_fields(values, schema, config)
    validation = validate_form(derived.values, schema, config)
    logger.debug(
        "Field '%s' changed: %d derived error(s), %d field(s) invalid",
        field_id,
        len(derived.errors),
        len(validation.field_errors),
    )

    return replace(
        state,
        values=derived.values,
        errors=validation.field_errors,
        touched={**state.touched, field_id: True},
        is_valid=validation.is_valid,
        derived_errors=derived.errors,
    )


def touch_field(state: FormState, field_id: str) -> FormState:
    """Mark a field as visited (its errors may now be displayed)."""
    return replace(state, touched={**state.touched, field_id: True})


def touch_all(state: FormState, schema: FormSchema) -> FormState:
    """Mark every field as visited, as a submit attempt does."""
    return replace(state, touched={**state.touched, **{fld.id: True for fld in schema.fields}})
