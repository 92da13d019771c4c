"""
formsmith expression language.

Tokenizer, parser, screening passes, and evaluator for the JavaScript-style
expressions that compute derived field values. Untrusted text should go
through the sandbox, which runs every check before evaluating.

Usage:
    from formsmith.core.expression_lang import evaluate_expression

    result = evaluate_expression("price * qty", {"price": "2.5", "qty": 4})
    # result == 10
"""

from formsmith.core.expression_lang.analysis import referenced_variables
from formsmith.core.expression_lang.evaluator import evaluate
from formsmith.core.expression_lang.functions import available_functions
from formsmith.core.expression_lang.parser import parse_expr
from formsmith.core.expression_lang.sandbox import (
    SyntaxCheck,
    check_expression,
    evaluate_expression,
    validate_expression_syntax,
)

__all__ = [
    "SyntaxCheck",
    "available_functions",
    "check_expression",
    "evaluate",
    "evaluate_expression",
    "parse_expr",
    "referenced_variables",
    "validate_expression_syntax",
]
