"""
Human-facing validation copy: default messages, help text, and enhanced
messages with actionable suggestions for form previews.
"""

from __future__ import annotations

import math
from typing import Any

from formsmith.core.expression_lang.coercion import to_js_string, to_number
from formsmith.core.ir import EnhancedMessage, RuleType, Severity
from formsmith.core.validation.rules import EMAIL_RE, is_empty, password_issues


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


def _display(value: Any) -> str:
    return "" if value is None else to_js_string(value)


def _current_length(value: Any) -> int:
    # Falsy values (NaN included) count as zero length
    if value is None or value is False or value == 0 or value == "":
        return 0
    if isinstance(value, float) and math.isnan(value):
        return 0
    return len(to_js_string(value))


def _bound(rule_value: Any) -> int:
    bound = to_number(rule_value)
    return int(bound) if math.isfinite(bound) else 0


def _rule_kind(rule_type: str | RuleType) -> RuleType | None:
    try:
        return RuleType(rule_type)
    except ValueError:
        return None


def default_error_message(rule_type: str | RuleType, label: str, value: Any = None) -> str:
    """Message a schema editor pre-fills when a rule is added."""
    kind = _rule_kind(rule_type)
    if kind == RuleType.NOT_EMPTY:
        return f"{label} is required"
    if kind == RuleType.MIN_LENGTH:
        return f"{label} must be at least {_display(value)} characters long"
    if kind == RuleType.MAX_LENGTH:
        return f"{label} must not exceed {_display(value)} characters"
    if kind == RuleType.EMAIL:
        return f"{label} must be a valid email address"
    if kind == RuleType.CUSTOM_PASSWORD:
        return (
            f"{label} must contain at least 8 characters, one uppercase letter, "
            "one lowercase letter, one number, and one special character"
        )
    return f"{label} is invalid"


def validation_help_text(rule_type: str | RuleType, value: Any = None) -> str:
    """Short hint shown next to a field before the user types."""
    kind = _rule_kind(rule_type)
    if kind == RuleType.NOT_EMPTY:
        return "This field cannot be left empty"
    if kind == RuleType.MIN_LENGTH:
        return f"Enter at least {_display(value)} characters"
    if kind == RuleType.MAX_LENGTH:
        return f"Keep it under {_display(value)} characters"
    if kind == RuleType.EMAIL:
        return "Use format: example@domain.com"
    if kind == RuleType.CUSTOM_PASSWORD:
        return "Include: 8+ chars, uppercase, lowercase, number, and special character (!@#$%^&*)"
    return "Please check your input"


def enhanced_message(
    rule_type: str | RuleType,
    label: str,
    current_value: Any,
    rule_value: Any = None,
) -> EnhancedMessage:
    """
    Describe a rule relative to the current value.

    Severity is ``info`` when the value already satisfies the rule and
    ``error`` otherwise. Pure: the same inputs always give the same output.
    """
    kind = _rule_kind(rule_type)

    if kind == RuleType.NOT_EMPTY:
        return EnhancedMessage(
            message=f"{label} is required",
            suggestion="Please enter a value for this field",
            severity=Severity.ERROR if is_empty(current_value) else Severity.INFO,
        )

    if kind == RuleType.MIN_LENGTH:
        min_length = _bound(rule_value)
        current = _current_length(current_value)
        remaining = min_length - current
        return EnhancedMessage(
            message=f"{label} must be at least {min_length} characters long",
            suggestion=(
                f"Add {remaining} more character{_plural(remaining)} (currently {current})"
                if remaining > 0
                else "Length requirement met"
            ),
            severity=Severity.ERROR if remaining > 0 else Severity.INFO,
        )

    if kind == RuleType.MAX_LENGTH:
        max_length = _bound(rule_value)
        current = _current_length(current_value)
        excess = current - max_length
        return EnhancedMessage(
            message=f"{label} must not exceed {max_length} characters",
            suggestion=(
                f"Remove {excess} character{_plural(excess)} (currently {current})"
                if excess > 0
                else "Length is within limit"
            ),
            severity=Severity.ERROR if excess > 0 else Severity.INFO,
        )

    if kind == RuleType.EMAIL:
        text = _display(current_value)
        return EnhancedMessage(
            message=f"{label} must be a valid email address",
            suggestion="Use format: example@domain.com",
            severity=Severity.INFO if EMAIL_RE.fullmatch(text) else Severity.ERROR,
        )

    if kind == RuleType.CUSTOM_PASSWORD:
        issues = password_issues(current_value or "")
        return EnhancedMessage(
            message=f"{label} must meet security requirements",
            suggestion=(
                f"Missing: {', '.join(issues)}" if issues else "Password meets all requirements"
            ),
            severity=Severity.ERROR if issues else Severity.INFO,
        )

    return EnhancedMessage(
        message=f"{label} is invalid",
        suggestion="Please check your input",
        severity=Severity.ERROR,
    )
