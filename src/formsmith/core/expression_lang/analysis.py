"""
Read-only traversal helpers over the expression AST.
"""

from __future__ import annotations

from collections.abc import Iterator

from formsmith.core.expression_lang.functions import FUNCTION_NAMESPACES
from formsmith.core.ir.expressions import (
    ArrayLiteral,
    BinaryExpr,
    ConditionalExpr,
    Expr,
    FuncCall,
    Identifier,
    IndexExpr,
    MemberExpr,
    UnaryExpr,
)


def children(expr: Expr) -> list[Expr]:
    """Direct sub-expressions of a node, in source order."""
    if isinstance(expr, MemberExpr):
        return [expr.target]
    if isinstance(expr, IndexExpr):
        return [expr.target, expr.index]
    if isinstance(expr, FuncCall):
        return list(expr.args)
    if isinstance(expr, ArrayLiteral):
        return list(expr.items)
    if isinstance(expr, BinaryExpr):
        return [expr.left, expr.right]
    if isinstance(expr, UnaryExpr):
        return [expr.operand]
    if isinstance(expr, ConditionalExpr):
        return [expr.condition, expr.then_expr, expr.else_expr]
    return []


def walk(expr: Expr) -> Iterator[Expr]:
    """Yield every node in the tree, pre-order."""
    stack = [expr]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children(node)))


def referenced_variables(expr: Expr) -> list[str]:
    """
    Free variable names in first-use order.

    Namespace identifiers used as ``Math.PI`` are not variables.
    """
    names: list[str] = []
    seen: set[str] = set()
    for node in walk(expr):
        if isinstance(node, MemberExpr) and isinstance(node.target, Identifier):
            if node.target.name in FUNCTION_NAMESPACES:
                seen.add(node.target.name)
                continue
        if isinstance(node, Identifier) and node.name not in seen:
            seen.add(node.name)
            names.append(node.name)
    return names
