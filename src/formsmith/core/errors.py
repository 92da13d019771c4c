"""
Error types for formsmith schema loading, configuration, and expression evaluation.

Validation failures and derived-field failures are *not* exceptions: they are
returned as data (message strings and ``DerivedFieldError`` records). The
exceptions below cover contract violations by the caller and the internal
failure kinds of the expression sandbox, which the calculator converts to
field-level errors.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class FormsmithError(Exception):
    """Base exception for all formsmith errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class SchemaError(FormsmithError):
    """
    Raised when a form schema or value map cannot be loaded.

    Examples:
    - Unreadable or malformed JSON/YAML file
    - Top-level document is not a mapping
    - Structural violations (duplicate field ids, missing options)
    """

    pass


class ConfigError(FormsmithError):
    """Raised when formsmith.toml contains unusable settings."""

    pass


class ExpressionError(FormsmithError):
    """
    Base class for derived-field expression failures.

    The sandbox raises only subclasses of this type. ``cause`` holds the
    underlying exception when one exists.
    """

    def __init__(
        self,
        message: str,
        context: Optional["ErrorContext"] = None,
        cause: BaseException | None = None,
    ):
        self.cause = cause
        super().__init__(message, context)


class InvalidExpression(ExpressionError):
    """
    Expression text is unusable before any evaluation.

    Examples:
    - Not a string, empty, or blank
    - Longer than the configured ceiling
    - Unbalanced parentheses or brackets
    - Syntax the grammar does not accept
    """

    pass


class ForbiddenConstruct(ExpressionError):
    """
    Expression uses a construct outside the sandbox vocabulary.

    Examples:
    - Host globals (process, window, require, fetch)
    - Reflection (constructor, __proto__, prototype)
    - Statements and declarations (for, let, class, ;)
    - Calls outside the Math / String / Number namespaces
    """

    pass


class EvaluationError(ExpressionError):
    """Expression parsed and screened cleanly but raised while running."""

    pass


class InvalidResult(ExpressionError):
    """Expression produced a value that may not be stored in form state."""

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error.

    Attributes:
        file: Path to the file being loaded, if any
        field_id: Form field the error concerns, if any
        position: Character offset into an expression, if any
    """

    file: Path | None = None
    field_id: str | None = None
    position: int | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "schema.json field 'total' at 12"
        """
        parts: list[str] = []
        if self.file is not None:
            parts.append(str(self.file))
        if self.field_id is not None:
            parts.append(f"field '{self.field_id}'")
        if self.position is not None:
            parts.append(f"at {self.position}")
        return " ".join(parts)
