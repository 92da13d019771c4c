"""Tests for per-value rule validation."""

from __future__ import annotations

from typing import Any

import pytest

from formsmith.core.ir import ValidationRule
from formsmith.core.validation.rules import (
    is_empty,
    password_issues,
    validate_field,
    validate_value,
)


def rule(type_: str, value: Any = None, message: str = "failed") -> ValidationRule:
    return ValidationRule(type=type_, value=value, message=message)


class TestNotEmpty:
    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n", [], (), {}, set()])
    def test_empty_values_fail(self, value: Any) -> None:
        assert validate_value(value, rule("notEmpty")) == "failed"

    @pytest.mark.parametrize("value", ["x", " x ", 0, False, [0], {"a": 1}, 0.0])
    def test_present_values_pass(self, value: Any) -> None:
        assert validate_value(value, rule("notEmpty")) is None

    def test_is_empty_helper(self) -> None:
        assert is_empty(None)
        assert not is_empty(0)


class TestLengthRules:
    def test_min_length(self) -> None:
        assert validate_value("ab", rule("minLength", 3)) == "failed"
        assert validate_value("abc", rule("minLength", 3)) is None

    def test_max_length(self) -> None:
        assert validate_value("abcd", rule("maxLength", 3)) == "failed"
        assert validate_value("abc", rule("maxLength", 3)) is None

    def test_null_passes(self) -> None:
        assert validate_value(None, rule("minLength", 3)) is None
        assert validate_value(None, rule("maxLength", 0)) is None

    def test_empty_string_is_checked(self) -> None:
        assert validate_value("", rule("minLength", 1)) == "failed"

    def test_numbers_are_stringified(self) -> None:
        assert validate_value(12345, rule("maxLength", 4)) == "failed"
        assert validate_value(5.0, rule("minLength", 2)) == "failed"

    def test_booleans_are_stringified(self) -> None:
        assert validate_value(True, rule("maxLength", 4)) is None
        assert validate_value(False, rule("maxLength", 4)) == "failed"

    def test_lists_are_joined(self) -> None:
        # "a,b" has three characters
        assert validate_value(["a", "b"], rule("minLength", 3)) is None
        assert validate_value(["a", "b"], rule("minLength", 4)) == "failed"

    def test_missing_bound_passes(self) -> None:
        assert validate_value("abc", rule("maxLength")) is None
        assert validate_value("", rule("minLength")) is None

    def test_string_bound(self) -> None:
        assert validate_value("ab", rule("minLength", "3")) == "failed"


class TestEmail:
    @pytest.mark.parametrize("value", ["a@b.co", "first.last@example.org", "x+y@d.io"])
    def test_valid(self, value: str) -> None:
        assert validate_value(value, rule("email")) is None

    @pytest.mark.parametrize("value", ["plain", "a@b", "a @b.c", "@b.c", "a@b.c\n", "a@@b.c"])
    def test_invalid(self, value: str) -> None:
        assert validate_value(value, rule("email")) == "failed"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_passes(self, value: Any) -> None:
        assert validate_value(value, rule("email")) is None


class TestCustomPassword:
    def test_strong_password(self) -> None:
        assert validate_value("Secur3!pw", rule("customPassword")) is None

    @pytest.mark.parametrize(
        "value",
        ["Sh0rt!", "nouppercase1!", "NOLOWERCASE1!", "NoDigitsHere!", "NoSymbols123"],
    )
    def test_weak_passwords(self, value: str) -> None:
        assert validate_value(value, rule("customPassword")) == "failed"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_passes(self, value: Any) -> None:
        assert validate_value(value, rule("customPassword")) is None

    def test_password_issues_lists_missing_requirements(self) -> None:
        assert password_issues("abc") == [
            "at least 8 characters",
            "one uppercase letter",
            "one number",
            "one special character",
        ]
        assert password_issues("Secur3!pw") == []


class TestUnknownRules:
    def test_unknown_rule_passes(self) -> None:
        assert validate_value("", rule("matchesPattern")) is None


class TestValidateField:
    def test_collects_all_failures_in_order(self) -> None:
        rules = [
            rule("minLength", 5, "too short"),
            rule("email", message="not an email"),
            rule("maxLength", 10, "too long"),
        ]
        result = validate_field("ab", rules)
        assert not result.is_valid
        assert result.errors == ["too short", "not an email"]

    def test_duplicate_rule_types_all_reported(self) -> None:
        rules = [rule("minLength", 3, "first"), rule("minLength", 4, "second")]
        assert validate_field("ab", rules).errors == ["first", "second"]

    def test_no_rules(self) -> None:
        result = validate_field(None, [])
        assert result.is_valid
        assert result.errors == []
