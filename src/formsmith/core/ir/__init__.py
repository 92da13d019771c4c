"""
formsmith Intermediate Representation (IR) types.

Schema models live in ``forms``, the expression AST in ``expressions``,
and engine result types in ``results``. Everything is re-exported here.
"""

from .expressions import (
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
from .forms import (
    DerivedFieldConfig,
    FieldType,
    FormField,
    FormSchema,
    RuleType,
    ValidationRule,
)
from .results import (
    ComputeResult,
    DerivedErrorType,
    DerivedFieldError,
    DerivedUpdateResult,
    EnhancedMessage,
    FieldValidationResult,
    FormState,
    FormValidationResult,
    Severity,
)

__all__ = [
    # Forms
    "DerivedFieldConfig",
    "FieldType",
    "FormField",
    "FormSchema",
    "RuleType",
    "ValidationRule",
    # Expressions
    "ArrayLiteral",
    "BinaryExpr",
    "BinaryOp",
    "ConditionalExpr",
    "Expr",
    "FuncCall",
    "Identifier",
    "IndexExpr",
    "Literal",
    "MemberExpr",
    "UnaryExpr",
    "UnaryOp",
    # Results
    "ComputeResult",
    "DerivedErrorType",
    "DerivedFieldError",
    "DerivedUpdateResult",
    "EnhancedMessage",
    "FieldValidationResult",
    "FormState",
    "FormValidationResult",
    "Severity",
]
