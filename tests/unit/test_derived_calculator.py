"""Tests for derived field recomputation."""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

import pytest

from formsmith.core.config import EngineConfig
from formsmith.core.derived import compute_value, update_derived_fields
from formsmith.core.derived.calculator import (
    CIRCULAR_DEPENDENCY_MESSAGE,
    INVALID_LOGIC_MESSAGE,
    build_context,
)
from formsmith.core.errors import EvaluationError
from formsmith.core.ir import DerivedErrorType, DerivedFieldConfig, FormSchema

SchemaFactory = Callable[..., FormSchema]


def number(field_id: str, label: str | None = None) -> dict[str, Any]:
    return {"id": field_id, "type": "number", "label": label or field_id.upper()}


def derived(
    field_id: str, parents: list[str], logic: str, label: str | None = None
) -> dict[str, Any]:
    return {
        **number(field_id, label),
        "derivedFrom": {"parentFields": parents, "computationLogic": logic},
    }


# ============================================================================
# Recompute pass
# ============================================================================


class TestUpdateDerivedFields:
    def test_chain(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory(
            [number("a"), derived("c", ["b"], "b + 1"), derived("b", ["a"], "a * 2")]
        )
        result = update_derived_fields({"a": 2, "b": None, "c": None}, schema)
        assert result.errors == {}
        assert result.values == {"a": 2, "b": 4, "c": 5}

    def test_order_form(self, order_schema: FormSchema) -> None:
        result = update_derived_fields({"price": "10", "qty": 2}, order_schema)
        assert result.values["subtotal"] == 20
        assert result.values["total"] == 24

    def test_no_derived_fields(self, signup_schema: FormSchema) -> None:
        values = {"name": "Ada"}
        result = update_derived_fields(values, signup_schema)
        assert result.values == values
        assert result.values is not values
        assert result.errors == {}

    def test_input_not_mutated(self, order_schema: FormSchema) -> None:
        values = {"price": 3, "qty": 2, "subtotal": None, "total": None}
        snapshot = dict(values)
        update_derived_fields(values, order_schema)
        assert values == snapshot

    def test_idempotent(self, order_schema: FormSchema) -> None:
        first = update_derived_fields({"price": 3, "qty": 2}, order_schema)
        second = update_derived_fields(first.values, order_schema)
        assert second.values == first.values
        assert second.errors == first.errors

    def test_null_result(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory([number("a"), derived("b", ["a"], "a ?? null")])
        assert update_derived_fields({"a": None, "b": 7}, schema).values["b"] is None

    def test_division_by_zero_stores_infinity(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory([number("a"), derived("b", ["a"], "1 / a")])
        result = update_derived_fields({"a": 0}, schema)
        assert result.errors == {}
        assert result.values["b"] == math.inf


# ============================================================================
# Failures
# ============================================================================


class TestFailures:
    def test_cycle_leaves_values_untouched(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory([derived("x", ["y"], "y + 1"), derived("y", ["x"], "x + 1")])
        result = update_derived_fields({"x": 1, "y": 2}, schema)
        assert result.values == {"x": 1, "y": 2}
        assert set(result.errors) == {"x", "y"}
        for field_id, error in result.errors.items():
            assert error.type == DerivedErrorType.CIRCULAR_DEPENDENCY
            assert error.message == CIRCULAR_DEPENDENCY_MESSAGE
            assert error.field_id == field_id

    def test_cycle_blocks_unrelated_fields_by_default(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory(
            [
                number("a"),
                derived("w", ["a"], "a * 10"),
                derived("x", ["y"], "y"),
                derived("y", ["x"], "x"),
            ]
        )
        result = update_derived_fields({"a": 1, "w": 0, "x": 1, "y": 2}, schema)
        assert result.values["w"] == 0
        assert result.errors["w"].type == DerivedErrorType.CIRCULAR_DEPENDENCY

    def test_isolate_policy_computes_unaffected_fields(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory(
            [
                number("a"),
                derived("w", ["a"], "a * 10"),
                derived("x", ["y"], "y"),
                derived("y", ["x"], "x"),
            ]
        )
        config = EngineConfig(cycle_policy="isolate")
        result = update_derived_fields({"a": 1, "w": 0, "x": 1, "y": 2}, schema, config)
        assert result.values["w"] == 10
        assert set(result.errors) == {"x", "y"}

    def test_missing_parent(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory([number("a"), derived("d", ["a", "ghost"], "a + ghost")])
        result = update_derived_fields({"a": 1}, schema)
        error = result.errors["d"]
        assert error.type == DerivedErrorType.MISSING_PARENT
        assert error.message == "Missing parent field values: ghost"
        assert "d" not in result.values

    @pytest.mark.parametrize("logic", ["", "   "])
    def test_empty_logic(self, schema_factory: SchemaFactory, logic: str) -> None:
        schema = schema_factory([number("a"), derived("d", ["a"], logic)])
        error = update_derived_fields({"a": 1}, schema).errors["d"]
        assert error.type == DerivedErrorType.INVALID_EXPRESSION
        assert error.message == INVALID_LOGIC_MESSAGE

    def test_syntax_error(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory([number("a"), derived("d", ["a"], "a +")])
        error = update_derived_fields({"a": 1}, schema).errors["d"]
        assert error.type == DerivedErrorType.INVALID_EXPRESSION
        assert error.original_error is not None

    def test_forbidden_construct_is_evaluation_error(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory([number("a"), derived("d", ["a"], "process.exit(a)")])
        error = update_derived_fields({"a": 1}, schema).errors["d"]
        assert error.type == DerivedErrorType.EVALUATION_ERROR

    def test_failure_keeps_previous_value(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory([number("a"), derived("d", ["a"], "a + offset")])
        result = update_derived_fields({"a": 1, "d": 99}, schema)
        assert result.values["d"] == 99
        error = result.errors["d"]
        assert error.type == DerivedErrorType.EVALUATION_ERROR
        assert isinstance(error.original_error, EvaluationError)

    def test_child_of_failed_field_uses_previous_value(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory(
            [number("a"), derived("d", ["a"], "a + offset"), derived("e", ["d"], "d + 1")]
        )
        result = update_derived_fields({"a": 1, "d": 5, "e": None}, schema)
        assert result.values["e"] == 6
        assert set(result.errors) == {"d"}

    def test_complex_result_rejected(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory([number("a"), derived("d", ["a"], "a")])
        result = update_derived_fields({"a": {"nested": 1}, "d": 0}, schema)
        assert result.values["d"] == 0
        assert result.errors["d"].type == DerivedErrorType.EVALUATION_ERROR

    def test_error_to_dict(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory([derived("s", ["s"], "s")])
        error = update_derived_fields({"s": 1}, schema).errors["s"]
        assert error.to_dict() == {
            "type": "circular_dependency",
            "message": CIRCULAR_DEPENDENCY_MESSAGE,
            "fieldId": "s",
        }


# ============================================================================
# Single computations and variable binding
# ============================================================================


class TestComputeValue:
    def test_success(self) -> None:
        config = DerivedFieldConfig(parent_fields=["a", "b"], computation_logic="a + b")
        result = compute_value(config, {"a": 1, "b": 2})
        assert result.ok
        assert result.value == 3

    def test_only_parents_visible(self) -> None:
        config = DerivedFieldConfig(parent_fields=["a"], computation_logic="a + other")
        result = compute_value(config, {"a": 1, "other": 2})
        assert not result.ok
        assert result.error is not None
        assert result.error.type == DerivedErrorType.EVALUATION_ERROR

    def test_missing_parents_listed_in_order(self) -> None:
        config = DerivedFieldConfig(parent_fields=["b", "a"], computation_logic="a + b")
        result = compute_value(config, {})
        assert result.error is not None
        assert result.error.message == "Missing parent field values: b, a"

    def test_label_alias(self, schema_factory: SchemaFactory) -> None:
        schema = schema_factory(
            [number("price", "Unit Price"), derived("doubled", ["price"], "unit_price * 2")]
        )
        result = update_derived_fields({"price": 4}, schema)
        assert result.values["doubled"] == 8

    def test_build_context(self) -> None:
        config = DerivedFieldConfig(parent_fields=["a", "b", "c", "d"], computation_logic="a")
        context = build_context(
            config,
            {"a": 1, "b": 2, "c": 3, "d": 4},
            {"a": "b", "b": "Math", "c": "two words", "d": "fourth"},
        )
        assert context == {"a": 1, "b": 2, "c": 3, "d": 4, "fourth": 4}

    def test_forbidden_alias_not_bound(self) -> None:
        config = DerivedFieldConfig(parent_fields=["a"], computation_logic="a")
        assert build_context(config, {"a": 1}, {"a": "constructor"}) == {"a": 1}
