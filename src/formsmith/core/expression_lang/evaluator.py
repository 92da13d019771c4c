"""
Expression evaluator for derived-field expressions.

Evaluates expression AST nodes against a context (dict of variable values).
Pure evaluation: no I/O, no side effects, no Python ``eval()``. Only the
closed set of AST node types is handled and only allow-listed functions can
be called. Operators follow the browser engine's coercion rules so that
expressions behave the same as they did in the form builder.
"""

from __future__ import annotations

import math
from typing import Any

from formsmith.core.expression_lang.coercion import (
    compare,
    is_truthy,
    js_number,
    loose_equals,
    strict_equals,
    to_js_string,
    to_number,
    to_primitive,
)
from formsmith.core.expression_lang.functions import (
    FUNCTION_NAMESPACES,
    get_constant,
    get_function,
    js_pow,
)
from formsmith.core.ir.expressions import (
    ArrayLiteral,
    BinaryExpr,
    BinaryOp,
    ConditionalExpr,
    Expr,
    FuncCall,
    Identifier,
    IndexExpr,
    Literal,
    MemberExpr,
    UnaryExpr,
    UnaryOp,
)


class ExpressionEvalError(Exception):
    """Error during expression evaluation."""


def evaluate(expr: Expr, context: dict[str, Any]) -> Any:
    """Evaluate an expression against a context dict.

    Args:
        expr: Parsed expression AST.
        context: Variable name -> value (parent field values).

    Returns:
        The computed value.

    Raises:
        ExpressionEvalError: If evaluation fails.
    """
    return _interpret(expr, context)


def _interpret(expr: Expr, ctx: dict[str, Any]) -> Any:
    """Dispatch evaluation to the appropriate handler."""
    if isinstance(expr, Literal):
        return expr.value

    if isinstance(expr, Identifier):
        return _interpret_identifier(expr, ctx)

    if isinstance(expr, BinaryExpr):
        return _interpret_binary(expr, ctx)

    if isinstance(expr, UnaryExpr):
        return _interpret_unary(expr, ctx)

    if isinstance(expr, ConditionalExpr):
        if is_truthy(_interpret(expr.condition, ctx)):
            return _interpret(expr.then_expr, ctx)
        return _interpret(expr.else_expr, ctx)

    if isinstance(expr, FuncCall):
        return _interpret_func_call(expr, ctx)

    if isinstance(expr, MemberExpr):
        return _interpret_member(expr, ctx)

    if isinstance(expr, IndexExpr):
        return _interpret_index(expr, ctx)

    if isinstance(expr, ArrayLiteral):
        return [_interpret(item, ctx) for item in expr.items]

    raise ExpressionEvalError(f"Unknown expression type: {type(expr).__name__}")


def _interpret_identifier(expr: Identifier, ctx: dict[str, Any]) -> Any:
    if expr.name in ctx:
        return ctx[expr.name]
    if expr.name in FUNCTION_NAMESPACES:
        raise ExpressionEvalError(f"{expr.name} cannot be used as a value")
    raise ExpressionEvalError(f"{expr.name} is not defined")


def _interpret_binary(expr: BinaryExpr, ctx: dict[str, Any]) -> Any:
    """Evaluate a binary expression."""
    # Short-circuit operators return an operand, not a bool
    if expr.op == BinaryOp.AND:
        left = _interpret(expr.left, ctx)
        if not is_truthy(left):
            return left
        return _interpret(expr.right, ctx)

    if expr.op == BinaryOp.OR:
        left = _interpret(expr.left, ctx)
        if is_truthy(left):
            return left
        return _interpret(expr.right, ctx)

    if expr.op == BinaryOp.NULLISH:
        left = _interpret(expr.left, ctx)
        if left is not None:
            return left
        return _interpret(expr.right, ctx)

    left = _interpret(expr.left, ctx)
    right = _interpret(expr.right, ctx)

    # Equality
    if expr.op == BinaryOp.EQ:
        return loose_equals(left, right)
    if expr.op == BinaryOp.NE:
        return not loose_equals(left, right)
    if expr.op == BinaryOp.STRICT_EQ:
        return strict_equals(left, right)
    if expr.op == BinaryOp.STRICT_NE:
        return not strict_equals(left, right)

    # Relational: NaN makes every comparison false
    if expr.op in (BinaryOp.LT, BinaryOp.GT, BinaryOp.LE, BinaryOp.GE):
        order = compare(left, right)
        if order is None:
            return False
        if expr.op == BinaryOp.LT:
            return order < 0
        if expr.op == BinaryOp.GT:
            return order > 0
        if expr.op == BinaryOp.LE:
            return order <= 0
        return order >= 0

    # Arithmetic
    if expr.op == BinaryOp.ADD:
        return _add(left, right)

    a = to_number(left)
    b = to_number(right)
    if expr.op == BinaryOp.SUB:
        return js_number(a - b)
    if expr.op == BinaryOp.MUL:
        return js_number(a * b)
    if expr.op == BinaryOp.DIV:
        return _div(a, b)
    if expr.op == BinaryOp.MOD:
        return _mod(a, b)
    if expr.op == BinaryOp.POW:
        return js_pow(a, b)

    raise ExpressionEvalError(f"Unknown binary op: {expr.op}")


def _add(left: Any, right: Any) -> Any:
    """``+``: string concatenation if either side is text, numeric addition otherwise."""
    left = to_primitive(left)
    right = to_primitive(right)
    if isinstance(left, str) or isinstance(right, str):
        return to_js_string(left) + to_js_string(right)
    return js_number(to_number(left) + to_number(right))


def _div(a: int | float, b: int | float) -> int | float:
    """IEEE division: ``x / 0`` is a signed Infinity, ``0 / 0`` is NaN."""
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    try:
        return js_number(a / b)
    except OverflowError:
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _mod(a: int | float, b: int | float) -> int | float:
    """Remainder with the sign of the dividend."""
    if math.isnan(a) or math.isnan(b) or math.isinf(a) or b == 0:
        return math.nan
    if math.isinf(b):
        return a
    return js_number(math.fmod(a, b))


def _interpret_unary(expr: UnaryExpr, ctx: dict[str, Any]) -> Any:
    """Evaluate a unary expression."""
    val = _interpret(expr.operand, ctx)
    if expr.op == UnaryOp.NOT:
        return not is_truthy(val)
    if expr.op == UnaryOp.NEG:
        return js_number(-to_number(val))
    if expr.op == UnaryOp.POS:
        return to_number(val)
    raise ExpressionEvalError(f"Unknown unary op: {expr.op}")


def _interpret_func_call(expr: FuncCall, ctx: dict[str, Any]) -> Any:
    """Evaluate an allow-listed namespace call."""
    fn = get_function(expr.namespace, expr.name)
    if fn is None:
        raise ExpressionEvalError(f"{expr.namespace}.{expr.name} is not a function")
    args = [_interpret(a, ctx) for a in expr.args]
    return fn(*args)


def _interpret_member(expr: MemberExpr, ctx: dict[str, Any]) -> Any:
    """Read-only property access: namespace constants and ``.length``."""
    target = expr.target
    if (
        isinstance(target, Identifier)
        and target.name in FUNCTION_NAMESPACES
        and target.name not in ctx
    ):
        constant = get_constant(target.name, expr.prop)
        if constant is None:
            raise ExpressionEvalError(f"{target.name}.{expr.prop} is not supported")
        return constant

    value = _interpret(target, ctx)
    if expr.prop == "length" and isinstance(value, (str, list, tuple)):
        return len(value)
    if value is None:
        raise ExpressionEvalError(f"Cannot read properties of null (reading '{expr.prop}')")
    raise ExpressionEvalError(f"Property '{expr.prop}' is not supported")


def _interpret_index(expr: IndexExpr, ctx: dict[str, Any]) -> Any:
    """Element access on lists and strings; anything out of range is null."""
    target = _interpret(expr.target, ctx)
    index = _interpret(expr.index, ctx)
    if target is None:
        raise ExpressionEvalError("Cannot index into null")
    if not isinstance(target, (str, list, tuple)):
        return None
    position = to_number(index)
    if not math.isfinite(position) or position != int(position):
        return None
    position = int(position)
    if 0 <= position < len(target):
        return target[position]
    return None
