"""
formsmith - validation and derived-field engine for user-built forms.

Validates submitted values against declarative rules and recomputes
derived fields from sandboxed expressions whenever their inputs change.
"""

from __future__ import annotations

from ._version import __version__
from .core import ir
from .core.config import EngineConfig, load_config
from .core.derived import update_derived_fields
from .core.errors import ExpressionError, FormsmithError, SchemaError
from .core.expression_lang import evaluate_expression
from .core.schema_loader import load_schema, load_values
from .core.validation import validate_form

__all__ = [
    "__version__",
    "ir",
    "EngineConfig",
    "ExpressionError",
    "FormsmithError",
    "SchemaError",
    "evaluate_expression",
    "load_config",
    "load_schema",
    "load_values",
    "update_derived_fields",
    "validate_form",
]
