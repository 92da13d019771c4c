"""
Whole-form validation.

Walks the schema in field order, prepends a synthesized ``notEmpty`` rule
for required fields that do not declare one, and collects every failing
message per field.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from formsmith.core.config import DEFAULT_CONFIG, EngineConfig
from formsmith.core.ir import FormField, FormSchema, FormValidationResult, RuleType, ValidationRule
from formsmith.core.validation.rules import validate_field

logger = logging.getLogger(__name__)


def required_rule(field: FormField) -> ValidationRule:
    return ValidationRule(type=RuleType.NOT_EMPTY.value, message=f"{field.label} is required")


def effective_rules(field: FormField) -> list[ValidationRule]:
    """
    Rules actually applied to a field.

    Returns a new list; the schema's own rule list is never modified.
    """
    rules = list(field.validation)
    if field.required and not any(r.rule_type == RuleType.NOT_EMPTY for r in rules):
        rules.insert(0, required_rule(field))
    return rules


def validate_form(
    values: Mapping[str, Any],
    schema: FormSchema,
    config: EngineConfig | None = None,
) -> FormValidationResult:
    """Validate a value map against every field of a schema.

    Args:
        values: Field id -> current value. Missing ids validate as null.
        schema: Form definition.
        config: Engine settings; ``unknown_rule_policy = "warn"`` logs rule
            types this engine does not recognise.

    Returns:
        ``field_errors`` holds an entry only for fields with failures.
    """
    config = config or DEFAULT_CONFIG
    field_errors: dict[str, list[str]] = {}
    unknown: set[str] = set()

    for fld in schema.fields:
        rules = effective_rules(fld)
        if config.warn_unknown_rules:
            unknown.update(r.type for r in rules if r.rule_type is None)
        result = validate_field(values.get(fld.id), rules)
        if not result.is_valid:
            field_errors[fld.id] = result.errors

    if unknown:
        logger.warning(
            "Form '%s' uses unknown validation rule types (treated as passing): %s",
            schema.id,
            ", ".join(sorted(unknown)),
        )

    logger.debug("Validated form '%s': %d field(s) with errors", schema.id, len(field_errors))
    return FormValidationResult(is_valid=not field_errors, field_errors=field_errors)
