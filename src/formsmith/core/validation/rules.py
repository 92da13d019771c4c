"""
Per-value rule validation.

Each rule either passes (``None``) or fails with the rule's own message.
Nothing here raises: a value of an unexpected shape is stringified the way
the form renderer displays it and checked as text.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

from formsmith.core.expression_lang.coercion import to_js_string, to_number
from formsmith.core.ir import FieldValidationResult, RuleType, ValidationRule

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PASSWORD_MIN_LENGTH = 8
_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SYMBOL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def is_empty(value: Any) -> bool:
    """True for null, blank text, and empty collections. ``0`` and ``False`` are not empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset, Mapping)):
        return len(value) == 0
    return False


def _length_bound(rule: ValidationRule) -> int | None:
    if rule.value is None:
        return None
    bound = to_number(rule.value)
    if not math.isfinite(bound):
        return None
    return int(bound)


def password_issues(value: Any) -> list[str]:
    """Requirements the value does not meet, in a fixed order."""
    password = "" if value is None else to_js_string(value)
    issues: list[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        issues.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    if not _UPPER_RE.search(password):
        issues.append("one uppercase letter")
    if not _LOWER_RE.search(password):
        issues.append("one lowercase letter")
    if not _DIGIT_RE.search(password):
        issues.append("one number")
    if not _SYMBOL_RE.search(password):
        issues.append("one special character")
    return issues


def validate_value(value: Any, rule: ValidationRule) -> str | None:
    """
    Check one value against one rule.

    Returns:
        ``rule.message`` on failure, ``None`` when the value passes or the
        rule type is not recognised.
    """
    kind = rule.rule_type

    if kind == RuleType.NOT_EMPTY:
        return rule.message if is_empty(value) else None

    if kind in (RuleType.MIN_LENGTH, RuleType.MAX_LENGTH):
        # Null is left to notEmpty
        if value is None:
            return None
        bound = _length_bound(rule)
        if bound is None:
            return None
        length = len(to_js_string(value))
        if kind == RuleType.MIN_LENGTH:
            return rule.message if length < bound else None
        return rule.message if length > bound else None

    if kind == RuleType.EMAIL:
        if value is None or value == "":
            return None
        return None if EMAIL_RE.fullmatch(to_js_string(value)) else rule.message

    if kind == RuleType.CUSTOM_PASSWORD:
        if value is None or value == "":
            return None
        return rule.message if password_issues(value) else None

    return None


def validate_field(value: Any, rules: Iterable[ValidationRule]) -> FieldValidationResult:
    """Run every rule (no short-circuit) and collect failing messages in order."""
    errors = [message for rule in rules if (message := validate_value(value, rule)) is not None]
    return FieldValidationResult(is_valid=not errors, errors=errors)
