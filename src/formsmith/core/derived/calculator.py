"""
Derived field calculator.

Recomputes every derived field of a schema from the current value map.
Fields are computed parents-first; a field that fails keeps its previous
value and reports a structured ``DerivedFieldError`` instead. The caller's
value map is never modified and no sandbox exception escapes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from formsmith.core.config import DEFAULT_CONFIG, EngineConfig
from formsmith.core.derived.graph import resolve_evaluation_order
from formsmith.core.errors import ExpressionError, InvalidExpression
from formsmith.core.expression_lang.functions import FUNCTION_NAMESPACES
from formsmith.core.expression_lang.sandbox import evaluate_expression
from formsmith.core.expression_lang.screening import is_forbidden_identifier
from formsmith.core.expression_lang.tokenizer import is_identifier
from formsmith.core.ir import (
    ComputeResult,
    DerivedErrorType,
    DerivedFieldConfig,
    DerivedFieldError,
    DerivedUpdateResult,
    FormField,
    FormSchema,
)

logger = logging.getLogger(__name__)

CIRCULAR_DEPENDENCY_MESSAGE = "Circular dependency detected in derived fields"
INVALID_LOGIC_MESSAGE = "Computation logic must be a non-empty string"


def _is_bindable(name: str) -> bool:
    return (
        is_identifier(name)
        and name not in FUNCTION_NAMESPACES
        and not is_forbidden_identifier(name)
    )


def build_context(
    config: DerivedFieldConfig,
    values: Mapping[str, Any],
    aliases: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """
    Variables visible to a derived field's expression.

    Each parent is bound under its id. A parent's alias (normally its label
    as a variable name) is bound too when it is a usable identifier that
    does not shadow another binding.
    """
    context = {parent_id: values[parent_id] for parent_id in config.parent_fields}
    for parent_id, alias in (aliases or {}).items():
        if parent_id in context and alias not in context and _is_bindable(alias):
            context[alias] = context[parent_id]
    return context


def compute_value(
    config: DerivedFieldConfig,
    values: Mapping[str, Any],
    *,
    aliases: Mapping[str, str] | None = None,
    engine_config: EngineConfig | None = None,
) -> ComputeResult:
    """Compute a single derived value.

    Args:
        config: The field's derivation (parents and expression).
        values: Current value map; every parent id must be a key.
        aliases: Optional parent id -> extra variable name.
        engine_config: Engine settings passed to the sandbox.

    Returns:
        ComputeResult with either ``value`` or ``error`` set.
    """
    missing = [p for p in config.parent_fields if p not in values]
    if missing:
        return ComputeResult(
            error=DerivedFieldError(
                type=DerivedErrorType.MISSING_PARENT,
                message=f"Missing parent field values: {', '.join(missing)}",
            )
        )

    logic = config.computation_logic
    if not isinstance(logic, str) or not logic.strip():
        return ComputeResult(
            error=DerivedFieldError(
                type=DerivedErrorType.INVALID_EXPRESSION,
                message=INVALID_LOGIC_MESSAGE,
            )
        )

    context = build_context(config, values, aliases)
    try:
        value = evaluate_expression(logic, context, config=engine_config)
    except InvalidExpression as e:
        return ComputeResult(
            error=DerivedFieldError(
                type=DerivedErrorType.INVALID_EXPRESSION,
                message=e.message,
                original_error=e,
            )
        )
    except ExpressionError as e:
        return ComputeResult(
            error=DerivedFieldError(
                type=DerivedErrorType.EVALUATION_ERROR,
                message=e.message,
                original_error=e,
            )
        )

    return ComputeResult(value=value)


def parent_aliases(fld: FormField, field_map: Mapping[str, FormField]) -> dict[str, str]:
    """Parent id -> label-derived variable name for a derived field."""
    if fld.derived_from is None:
        return {}
    return {
        parent_id: field_map[parent_id].variable_name
        for parent_id in fld.derived_from.parent_fields
        if parent_id in field_map
    }


def update_derived_fields(
    values: Mapping[str, Any],
    schema: FormSchema,
    config: EngineConfig | None = None,
) -> DerivedUpdateResult:
    """
    Recompute every derived field of a schema.

    Args:
        values: Current value map. Not modified.
        schema: Form definition.
        config: Engine settings; ``cycle_policy`` decides whether a cycle
            blocks every derived field or only the affected ones.

    Returns:
        DerivedUpdateResult with a fresh value map and per-field errors.
    """
    config = config or DEFAULT_CONFIG
    new_values = dict(values)
    errors: dict[str, DerivedFieldError] = {}

    derived = schema.derived_fields()
    if not derived:
        return DerivedUpdateResult(values=new_values)

    resolution = resolve_evaluation_order(derived, isolate_cycles=config.isolate_cycles)
    circular = DerivedFieldError(
        type=DerivedErrorType.CIRCULAR_DEPENDENCY,
        message=CIRCULAR_DEPENDENCY_MESSAGE,
    )
    for field_id in resolution.blocked:
        errors[field_id] = circular.with_field(field_id)

    field_map = schema.field_map()
    for fld in resolution.order:
        assert fld.derived_from is not None
        result = compute_value(
            fld.derived_from,
            new_values,
            aliases=parent_aliases(fld, field_map),
            engine_config=config,
        )
        if result.error is not None:
            logger.debug("Derived field '%s' not updated: %s", fld.id, result.error.message)
            errors[fld.id] = result.error.with_field(fld.id)
        else:
            new_values[fld.id] = result.value

    return DerivedUpdateResult(values=new_values, errors=errors)
