"""Core formsmith functionality: schema IR, validation, expression sandbox, derived fields."""

from . import ir
from .config import DEFAULT_CONFIG, EngineConfig, load_config
from .derived import compute_value, resolve_evaluation_order, update_derived_fields
from .errors import (
    ConfigError,
    ErrorContext,
    EvaluationError,
    ExpressionError,
    ForbiddenConstruct,
    FormsmithError,
    InvalidExpression,
    InvalidResult,
    SchemaError,
)
from .expression_lang import (
    available_functions,
    evaluate_expression,
    validate_expression_syntax,
)
from .form_state import (
    apply_field_change,
    initial_state,
    initial_values,
    touch_all,
    touch_field,
)
from .schema_loader import load_schema, load_values
from .validation import validate_field, validate_form, validate_value

__all__ = [
    "ir",
    # Config
    "DEFAULT_CONFIG",
    "EngineConfig",
    "load_config",
    # Errors
    "ConfigError",
    "ErrorContext",
    "EvaluationError",
    "ExpressionError",
    "ForbiddenConstruct",
    "FormsmithError",
    "InvalidExpression",
    "InvalidResult",
    "SchemaError",
    # Validation
    "validate_field",
    "validate_form",
    "validate_value",
    # Expressions
    "available_functions",
    "evaluate_expression",
    "validate_expression_syntax",
    # Derived fields
    "compute_value",
    "resolve_evaluation_order",
    "update_derived_fields",
    # Sessions
    "apply_field_change",
    "initial_state",
    "initial_values",
    "touch_all",
    "touch_field",
    # Loading
    "load_schema",
    "load_values",
]
