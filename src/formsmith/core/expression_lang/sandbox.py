"""
Sandboxed evaluation of untrusted derived-field expressions.

Pipeline, in order:

1. Shape: must be a non-blank string within the configured length ceiling,
   with balanced ``()`` / ``[]`` outside string literals.
2. Tokenize, then screen the tokens against the deny list.
3. Parse with the allow-list grammar, then screen calls against the
   function namespaces.
4. Interpret the AST against the variable context.
5. Check the result is a value that may be stored in form state.

Each stage raises its own ``ExpressionError`` subclass so callers can tell
malformed text from a forbidden construct from a runtime failure.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from formsmith.core.config import DEFAULT_CONFIG, EngineConfig
from formsmith.core.errors import (
    ErrorContext,
    EvaluationError,
    ExpressionError,
    InvalidExpression,
    InvalidResult,
)
from formsmith.core.expression_lang.analysis import referenced_variables
from formsmith.core.expression_lang.evaluator import evaluate
from formsmith.core.expression_lang.functions import available_functions
from formsmith.core.expression_lang.parser import (
    NESTING_TOO_DEEP,
    ExpressionParseError,
    parse_tokens,
)
from formsmith.core.expression_lang.screening import screen_ast, screen_tokens
from formsmith.core.expression_lang.tokenizer import ExpressionTokenError, tokenize
from formsmith.core.ir.expressions import Expr

logger = logging.getLogger(__name__)

_OPENERS = {"(": ")", "[": "]"}
_CLOSERS = {")", "]"}


@dataclass(frozen=True)
class SyntaxCheck:
    """Outcome of a static expression check."""

    is_valid: bool
    error: str | None = None


def check_balance(expression: str) -> bool:
    """True when ``()`` and ``[]`` nest correctly outside quoted strings."""
    stack: list[str] = []
    quote: str | None = None
    escaped = False
    for ch in expression:
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in ("'", '"', "`"):
            quote = ch
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in _CLOSERS:
            if not stack or stack.pop() != ch:
                return False
    return not stack


def check_expression(expression: Any, *, config: EngineConfig | None = None) -> Expr:
    """
    Run every static check and return the parsed AST.

    Raises:
        InvalidExpression: Shape or syntax problems.
        ForbiddenConstruct: Deny-listed identifiers, statements, or calls
            outside the allow-listed namespaces.
    """
    config = config or DEFAULT_CONFIG

    if not isinstance(expression, str) or not expression.strip():
        raise InvalidExpression("Expression must be a non-empty string")
    if len(expression) > config.max_expression_length:
        raise InvalidExpression(
            f"Expression is too long (maximum {config.max_expression_length} characters)"
        )
    if not check_balance(expression):
        raise InvalidExpression("Unbalanced parentheses in expression")

    try:
        tokens = tokenize(expression)
    except ExpressionTokenError as e:
        raise InvalidExpression(str(e), ErrorContext(position=e.pos), cause=e) from e

    screen_tokens(tokens)

    try:
        expr = parse_tokens(tokens)
    except ExpressionParseError as e:
        raise InvalidExpression(str(e), ErrorContext(position=e.pos), cause=e) from e
    except RecursionError as e:
        raise InvalidExpression(NESTING_TOO_DEEP, cause=e) from e

    screen_ast(expr)
    return expr


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, bool, int, float, date))


def validate_result(value: Any) -> Any:
    """
    Check that a computed value may be stored in form state.

    Primitives pass unchanged; a flat sequence of primitives is returned
    as a list.

    Raises:
        InvalidResult: Functions, objects, or nested containers.
    """
    if _is_scalar(value):
        return value
    if isinstance(value, (list, tuple)):
        if all(_is_scalar(item) for item in value):
            return list(value)
        raise InvalidResult("Complex objects not allowed in derived field results")
    if callable(value):
        raise InvalidResult("Functions not allowed in derived field results")
    raise InvalidResult("Complex objects not allowed in derived field results")


def evaluate_expression(
    expression: Any,
    context: Mapping[str, Any],
    *,
    config: EngineConfig | None = None,
) -> Any:
    """Evaluate untrusted expression text against a variable context.

    Args:
        expression: Expression text, e.g. ``"price * qty"``.
        context: Variable name -> value.
        config: Engine settings (length ceiling); defaults apply when omitted.

    Returns:
        The validated result value.

    Raises:
        ExpressionError: One of its subclasses, never anything else.
    """
    expr = check_expression(expression, config=config)

    try:
        result = evaluate(expr, dict(context))
    except ExpressionError:
        raise
    except RecursionError as e:
        raise InvalidExpression(NESTING_TOO_DEEP, cause=e) from e
    except Exception as e:
        logger.debug("Expression %r failed: %s", expression, e)
        raise EvaluationError(f"Evaluation failed: {e}", cause=e) from e

    return validate_result(result)


def validate_expression_syntax(
    expression: Any,
    variables: Collection[str] | None = None,
    *,
    config: EngineConfig | None = None,
) -> SyntaxCheck:
    """Check an expression without evaluating it.

    When ``variables`` is given, references to names outside it are
    reported as well.
    """
    try:
        expr = check_expression(expression, config=config)
    except ExpressionError as e:
        return SyntaxCheck(is_valid=False, error=e.message)

    if variables is not None:
        known = set(variables)
        unknown = [name for name in referenced_variables(expr) if name not in known]
        if unknown:
            return SyntaxCheck(is_valid=False, error=f"Unknown variables: {', '.join(unknown)}")

    return SyntaxCheck(is_valid=True)


__all__ = [
    "SyntaxCheck",
    "available_functions",
    "check_balance",
    "check_expression",
    "evaluate_expression",
    "validate_expression_syntax",
    "validate_result",
]
