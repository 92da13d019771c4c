"""
Property-based tests using Hypothesis.

These tests verify invariants across a wide range of inputs: the sandbox
fails only with its own exception types, and validation and recomputation
never raise on arbitrary values.
"""

from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st

from formsmith.core.derived import update_derived_fields
from formsmith.core.errors import ExpressionError
from formsmith.core.expression_lang import evaluate_expression, validate_expression_syntax
from formsmith.core.ir import FormSchema, ValidationRule
from formsmith.core.validation import enhanced_message, validate_field, validate_form

scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(10**9), max_value=10**9),
    st.floats(allow_nan=True, allow_infinity=True),
    st.text(max_size=30),
)

values = st.one_of(scalars, st.lists(scalars, max_size=5))

small_ints = st.integers(min_value=-(10**6), max_value=10**6)

bounds = st.one_of(st.none(), small_ints, st.floats(), st.text(max_size=5))

RULE_TYPES = ["notEmpty", "minLength", "maxLength", "email", "customPassword"]

expression_alphabet = st.sampled_from(list("abxy0123456789 +-*/%()[].,'\"!=<>&|?:") + ["Math."])

SCHEMA = FormSchema.model_validate(
    {
        "id": "props",
        "name": "Props",
        "fields": [
            {
                "id": "a",
                "type": "text",
                "label": "A",
                "required": True,
                "validation": [
                    {"type": "minLength", "value": 2, "message": "short"},
                    {"type": "maxLength", "value": 5, "message": "long"},
                    {"type": "email", "message": "email"},
                ],
            },
            {
                "id": "b",
                "type": "text",
                "label": "B",
                "validation": [{"type": "customPassword", "message": "weak"}],
            },
            {
                "id": "c",
                "type": "number",
                "label": "C",
                "derivedFrom": {"parentFields": ["a", "b"], "computationLogic": "a * b + 1"},
            },
            {
                "id": "d",
                "type": "number",
                "label": "D",
                "derivedFrom": {"parentFields": ["c"], "computationLogic": "Math.max(c, 0)"},
            },
        ],
    }
)


# =============================================================================
# Sandbox Properties
# =============================================================================


class TestSandboxProperties:
    """Property-based tests for the expression sandbox."""

    @given(st.text(max_size=200))
    @settings(max_examples=300)
    def test_arbitrary_text_raises_only_expression_errors(self, text: str) -> None:
        """Invariant: evaluate_expression returns or raises ExpressionError."""
        try:
            evaluate_expression(text, {"a": 1, "b": "x"})
        except ExpressionError:
            pass

    @given(st.lists(expression_alphabet, max_size=40).map("".join))
    @settings(max_examples=300)
    def test_expression_like_text_raises_only_expression_errors(self, text: str) -> None:
        """Invariant: near-miss expressions never leak interpreter exceptions."""
        try:
            evaluate_expression(text, {"a": 3, "b": "4", "x": None, "y": [1, 2]})
        except ExpressionError:
            pass

    @given(st.text(max_size=200))
    @settings(max_examples=200)
    def test_syntax_check_never_raises(self, text: str) -> None:
        """Invariant: validate_expression_syntax reports, it does not raise."""
        result = validate_expression_syntax(text)
        assert result.is_valid == (result.error is None)

    @given(small_ints, small_ints)
    def test_integer_addition(self, a: int, b: int) -> None:
        """Invariant: integer arithmetic matches Python's."""
        assert evaluate_expression("a + b", {"a": a, "b": b}) == a + b


# =============================================================================
# Validation Properties
# =============================================================================


class TestValidationProperties:
    """Property-based tests for rule and form validation."""

    @given(values, st.sampled_from(RULE_TYPES + ["other"]), bounds)
    @settings(max_examples=300)
    def test_rules_never_raise(self, value: Any, rule_type: str, bound: Any) -> None:
        """Invariant: every rule returns a result for every value."""
        rule = ValidationRule(type=rule_type, value=bound, message="m")
        result = validate_field(value, [rule])
        assert result.is_valid == (result.errors == [])

    @given(st.dictionaries(st.sampled_from(["a", "b", "c", "d"]), values))
    @settings(max_examples=200)
    def test_form_validity_matches_errors(self, data: dict[str, Any]) -> None:
        """Invariant: is_valid iff no field has errors, and no empty error lists."""
        result = validate_form(data, SCHEMA)
        assert result.is_valid == (not result.field_errors)
        assert all(result.field_errors.values())

    @given(values, st.sampled_from(RULE_TYPES))
    def test_enhanced_message_deterministic(self, value: Any, rule_type: str) -> None:
        """Invariant: enhanced_message is a pure function of its inputs."""
        assert enhanced_message(rule_type, "Field", value, 3) == enhanced_message(
            rule_type, "Field", value, 3
        )


# =============================================================================
# Derived Field Properties
# =============================================================================


class TestDerivedProperties:
    """Property-based tests for derived field recomputation."""

    @given(st.dictionaries(st.sampled_from(["a", "b", "c", "d"]), values))
    @settings(max_examples=200)
    def test_update_never_raises_or_mutates(self, data: dict[str, Any]) -> None:
        """Invariant: inputs are untouched and only derived keys change."""
        snapshot = dict(data)
        result = update_derived_fields(data, SCHEMA)
        assert data == snapshot
        assert set(data) <= set(result.values)
        for key in ("a", "b"):
            if key in data:
                assert result.values[key] is data[key]
