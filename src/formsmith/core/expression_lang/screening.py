"""
Static screening of expressions before evaluation.

Two passes:

- ``screen_tokens`` rejects deny-listed identifiers and statement-level
  punctuation. It works on the token stream, so a word that only occurs
  inside a string literal (``"constructor"``) is never flagged.
- ``screen_ast`` rejects calls and constant lookups outside the
  allow-listed function namespaces.

Both raise ``ForbiddenConstruct``.
"""

from __future__ import annotations

from formsmith.core.errors import ErrorContext, ForbiddenConstruct
from formsmith.core.expression_lang.analysis import walk
from formsmith.core.expression_lang.functions import (
    FUNCTION_NAMESPACES,
    get_constant,
    get_function,
)
from formsmith.core.expression_lang.tokenizer import Token, TokenKind
from formsmith.core.ir.expressions import Expr, FuncCall, Identifier, MemberExpr

# Host environment access: dynamic evaluation, timers, modules, globals,
# DOM, storage and network.
HOST_IDENTIFIERS: frozenset[str] = frozenset(
    {
        "eval",
        "Function",
        "setTimeout",
        "setInterval",
        "setImmediate",
        "require",
        "import",
        "export",
        "process",
        "global",
        "globalThis",
        "module",
        "exports",
        "window",
        "document",
        "localStorage",
        "sessionStorage",
        "indexedDB",
        "fetch",
        "XMLHttpRequest",
        "WebSocket",
        "navigator",
    }
)

REFLECTION_IDENTIFIERS: frozenset[str] = frozenset({"__proto__", "constructor", "prototype"})

KEYWORD_IDENTIFIERS: frozenset[str] = frozenset(
    {
        "this",
        "delete",
        "void",
        "typeof",
        "instanceof",
        "in",
        "with",
        "try",
        "catch",
        "finally",
        "throw",
        "for",
        "while",
        "do",
        "switch",
        "case",
        "break",
        "continue",
        "return",
        "var",
        "let",
        "const",
        "class",
        "extends",
        "static",
        "yield",
        "async",
        "await",
        "new",
        "if",
        "else",
        "function",
        "super",
        "debugger",
    }
)

FORBIDDEN_IDENTIFIERS: frozenset[str] = (
    HOST_IDENTIFIERS | REFLECTION_IDENTIFIERS | KEYWORD_IDENTIFIERS
)

_STATEMENT_TOKENS: dict[TokenKind, str] = {
    TokenKind.SEMICOLON: "statement separator ';'",
    TokenKind.LBRACE: "block or object literal '{'",
    TokenKind.RBRACE: "block or object literal '}'",
    TokenKind.ASSIGN: "assignment",
    TokenKind.UPDATE: "increment/decrement",
    TokenKind.ARROW: "arrow function",
    TokenKind.BACKTICK: "template literal",
}

# Tokens after which "[" is a property access rather than an array literal
_VALUE_TOKENS = frozenset(
    {
        TokenKind.IDENT,
        TokenKind.RPAREN,
        TokenKind.RBRACKET,
        TokenKind.STRING,
        TokenKind.INT,
        TokenKind.FLOAT,
        TokenKind.TRUE,
        TokenKind.FALSE,
        TokenKind.NULL,
        TokenKind.UNDEFINED,
        TokenKind.NAN,
        TokenKind.INFINITY,
    }
)


def is_forbidden_identifier(name: str) -> bool:
    return name in FORBIDDEN_IDENTIFIERS or name.startswith("__")


def _forbidden(message: str, pos: int) -> ForbiddenConstruct:
    return ForbiddenConstruct(message, ErrorContext(position=pos))


def screen_tokens(tokens: list[Token]) -> None:
    """Reject deny-listed identifiers and statement punctuation."""
    prev: Token | None = None
    for i, tok in enumerate(tokens):
        if tok.kind == TokenKind.IDENT and is_forbidden_identifier(tok.value):
            raise _forbidden(f"Forbidden identifier: {tok.value}", tok.pos)

        described = _STATEMENT_TOKENS.get(tok.kind)
        if described is not None:
            raise _forbidden(f"Forbidden construct: {described}", tok.pos)

        if (
            tok.kind == TokenKind.LBRACKET
            and prev is not None
            and prev.kind in _VALUE_TOKENS
            and i + 1 < len(tokens)
            and tokens[i + 1].kind == TokenKind.STRING
        ):
            raise _forbidden("Forbidden construct: bracket property access", tok.pos)

        prev = tok


def screen_ast(expr: Expr) -> None:
    """Reject calls and namespace lookups outside the allow-list."""
    for node in walk(expr):
        if isinstance(node, FuncCall):
            if node.namespace not in FUNCTION_NAMESPACES:
                raise ForbiddenConstruct(f"Function namespace not allowed: {node.namespace}")
            if get_function(node.namespace, node.name) is None:
                raise ForbiddenConstruct(f"Function not allowed: {node.namespace}.{node.name}")
        elif (
            isinstance(node, MemberExpr)
            and isinstance(node.target, Identifier)
            and node.target.name in FUNCTION_NAMESPACES
            and get_constant(node.target.name, node.prop) is None
        ):
            raise ForbiddenConstruct(f"Property not allowed: {node.target.name}.{node.prop}")
