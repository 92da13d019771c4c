"""
Expression AST for derived-field computation logic.

The node set is deliberately closed: anything the grammar has no node for
(statements, declarations, assignment, arbitrary calls, property writes)
simply cannot be represented, so it can never be evaluated.

Supports:
- Arithmetic: +, -, *, /, %, **
- Comparison: ==, !=, ===, !==, <, >, <=, >=
- Logic: &&, ||, !, ??
- Conditionals: cond ? a : b
- Variables: price, unit_price
- Read-only access: name.length, items[0]
- Allow-listed calls: Math.max(a, b), String.trim(s), Number.parseFloat(s)
- Array literals: [a, b, c]
"""

from __future__ import annotations

import math
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class BinaryOp(StrEnum):
    """Binary operators for expressions."""

    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "**"
    # Comparison
    EQ = "=="
    NE = "!="
    STRICT_EQ = "==="
    STRICT_NE = "!=="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    # Logical
    AND = "&&"
    OR = "||"
    NULLISH = "??"


class UnaryOp(StrEnum):
    """Unary operators for expressions."""

    NEG = "-"
    POS = "+"
    NOT = "!"


# ---------------------------------------------------------------------------
# AST node types
# ---------------------------------------------------------------------------


class Literal(BaseModel):
    """A literal value: number, string, boolean, or None (null / undefined)."""

    value: int | float | str | bool | None = Field(description="The literal value")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, str):
            escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, float):
            if math.isnan(self.value):
                return "NaN"
            if math.isinf(self.value):
                return "Infinity" if self.value > 0 else "-Infinity"
        return str(self.value)


class Identifier(BaseModel):
    """A variable bound from the evaluation context (a parent field)."""

    name: str = Field(description="Variable name")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class MemberExpr(BaseModel):
    """Read-only property access: ``target.prop``."""

    target: Expr
    prop: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.target}.{self.prop}"


class IndexExpr(BaseModel):
    """Read-only element access: ``target[index]``."""

    target: Expr
    index: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.target}[{self.index}]"


class FuncCall(BaseModel):
    """
    Call into an allow-listed function namespace.

    Examples:
        - FuncCall(namespace="Math", name="max", args=[...]) -> Math.max(a, b)
        - FuncCall(namespace="String", name="trim", args=[...]) -> String.trim(s)
    """

    namespace: str = Field(description="Function namespace (Math, String, Number)")
    name: str = Field(description="Function name within the namespace")
    args: list[Expr] = Field(default_factory=list, description="Arguments")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.namespace}.{self.name}({args_str})"


class ArrayLiteral(BaseModel):
    """Array literal: ``[a, b, c]``."""

    items: list[Expr] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "[" + ", ".join(str(i) for i in self.items) + "]"


class BinaryExpr(BaseModel):
    """Binary operation: left op right."""

    op: BinaryOp
    left: Expr
    right: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


class UnaryExpr(BaseModel):
    """Unary operation: op operand."""

    op: UnaryOp
    operand: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.op.value}{self.operand}"


class ConditionalExpr(BaseModel):
    """Ternary conditional: ``condition ? then_expr : else_expr``."""

    condition: Expr
    then_expr: Expr
    else_expr: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.condition} ? {self.then_expr} : {self.else_expr})"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Expr = (
    Literal
    | Identifier
    | MemberExpr
    | IndexExpr
    | FuncCall
    | ArrayLiteral
    | BinaryExpr
    | UnaryExpr
    | ConditionalExpr
)

# Rebuild models for recursive forward references
MemberExpr.model_rebuild()
IndexExpr.model_rebuild()
FuncCall.model_rebuild()
ArrayLiteral.model_rebuild()
BinaryExpr.model_rebuild()
UnaryExpr.model_rebuild()
ConditionalExpr.model_rebuild()
