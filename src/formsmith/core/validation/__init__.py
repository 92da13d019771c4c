"""
Validation engine: per-value rules, whole-form validation, and the
human-facing messages built on top of them.
"""

from formsmith.core.validation.form import effective_rules, validate_form
from formsmith.core.validation.messages import (
    default_error_message,
    enhanced_message,
    validation_help_text,
)
from formsmith.core.validation.rules import (
    is_empty,
    password_issues,
    validate_field,
    validate_value,
)

__all__ = [
    "default_error_message",
    "effective_rules",
    "enhanced_message",
    "is_empty",
    "password_issues",
    "validate_field",
    "validate_form",
    "validate_value",
    "validation_help_text",
]
