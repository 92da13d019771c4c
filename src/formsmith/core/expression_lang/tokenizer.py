"""
Tokenizer for derived-field expressions.

Converts an expression string into a sequence of typed tokens. Statement
punctuation (``;``, braces, assignment, ``=>``, template literals) is
tokenized rather than rejected here so the screening pass can report it
as a forbidden construct instead of a syntax error.
"""

from __future__ import annotations

import re
from enum import StrEnum, auto


class TokenKind(StrEnum):
    """Token types for the expression language."""

    # Literals
    INT = auto()
    FLOAT = auto()
    STRING = auto()

    # Identifiers and keywords
    IDENT = auto()
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    UNDEFINED = auto()
    NAN = auto()
    INFINITY = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    STARSTAR = auto()
    SLASH = auto()
    PERCENT = auto()
    EQ = auto()
    NE = auto()
    STRICT_EQ = auto()
    STRICT_NE = auto()
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()
    AND = auto()
    OR = auto()
    NULLISH = auto()
    NOT = auto()
    QUESTION = auto()
    COLON = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    DOT = auto()

    # Statement-level punctuation: never valid, screened as forbidden
    SEMICOLON = auto()
    LBRACE = auto()
    RBRACE = auto()
    ASSIGN = auto()  # = += -= *= /= %=
    UPDATE = auto()  # ++ --
    ARROW = auto()  # =>
    BACKTICK = auto()

    # End of input
    EOF = auto()


class Token:
    """A single token from the expression tokenizer."""

    __slots__ = ("kind", "value", "pos")

    def __init__(self, kind: TokenKind, value: str, pos: int) -> None:
        self.kind = kind
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, pos={self.pos})"


_KEYWORDS: dict[str, TokenKind] = {
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "null": TokenKind.NULL,
    "undefined": TokenKind.UNDEFINED,
    "NaN": TokenKind.NAN,
    "Infinity": TokenKind.INFINITY,
}

# Longest first so "===" wins over "==" and "**" over "*"
_OPERATORS: list[tuple[str, TokenKind]] = [
    ("===", TokenKind.STRICT_EQ),
    ("!==", TokenKind.STRICT_NE),
    ("**", TokenKind.STARSTAR),
    ("==", TokenKind.EQ),
    ("!=", TokenKind.NE),
    ("<=", TokenKind.LE),
    (">=", TokenKind.GE),
    ("&&", TokenKind.AND),
    ("||", TokenKind.OR),
    ("??", TokenKind.NULLISH),
    ("=>", TokenKind.ARROW),
    ("++", TokenKind.UPDATE),
    ("--", TokenKind.UPDATE),
    ("+=", TokenKind.ASSIGN),
    ("-=", TokenKind.ASSIGN),
    ("*=", TokenKind.ASSIGN),
    ("/=", TokenKind.ASSIGN),
    ("%=", TokenKind.ASSIGN),
    ("+", TokenKind.PLUS),
    ("-", TokenKind.MINUS),
    ("*", TokenKind.STAR),
    ("/", TokenKind.SLASH),
    ("%", TokenKind.PERCENT),
    ("<", TokenKind.LT),
    (">", TokenKind.GT),
    ("!", TokenKind.NOT),
    ("?", TokenKind.QUESTION),
    (":", TokenKind.COLON),
    ("(", TokenKind.LPAREN),
    (")", TokenKind.RPAREN),
    ("[", TokenKind.LBRACKET),
    ("]", TokenKind.RBRACKET),
    (",", TokenKind.COMMA),
    (".", TokenKind.DOT),
    (";", TokenKind.SEMICOLON),
    ("{", TokenKind.LBRACE),
    ("}", TokenKind.RBRACE),
    ("=", TokenKind.ASSIGN),
    ("`", TokenKind.BACKTICK),
]

# Number pattern: int, decimal, leading-dot decimal, optional exponent
_NUMBER_RE = re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
# Identifier: letter, underscore or $ followed by alphanumerics/underscores/$
_IDENT_RE = re.compile(r"[a-zA-Z_$][a-zA-Z0-9_$]*")

_DIGITS = "0123456789"

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "b": "\b", "f": "\f", "v": "\v"}


class ExpressionTokenError(Exception):
    """Error during expression tokenization."""

    def __init__(self, message: str, pos: int) -> None:
        super().__init__(message)
        self.pos = pos


def is_identifier(name: str) -> bool:
    """True if ``name`` tokenizes as a single plain identifier."""
    return _IDENT_RE.fullmatch(name) is not None and name not in _KEYWORDS


def tokenize(source: str) -> list[Token]:
    """Tokenize an expression string into a list of tokens."""
    tokens: list[Token] = []
    i = 0
    n = len(source)

    while i < n:
        c = source[i]

        # Skip whitespace
        if c.isspace():
            i += 1
            continue

        # String literals
        if c in ('"', "'"):
            i, tok = _read_string(source, i)
            tokens.append(tok)
            continue

        # Numbers (a lone "." is member access, ".5" is a number)
        if c in _DIGITS or (c == "." and i + 1 < n and source[i + 1] in _DIGITS):
            m = _NUMBER_RE.match(source, i)
            assert m is not None
            num_str = m.group(0)
            end = m.end()
            if end < n and (source[end].isalnum() or source[end] in "_$"):
                raise ExpressionTokenError(f"Invalid number literal near {num_str!r}", i)
            is_float = any(ch in num_str for ch in ".eE")
            tokens.append(Token(TokenKind.FLOAT if is_float else TokenKind.INT, num_str, i))
            i = end
            continue

        # Identifiers and keywords
        if c.isalpha() or c in "_$":
            m = _IDENT_RE.match(source, i)
            if m is None:
                raise ExpressionTokenError(f"Unexpected character: {c!r}", i)
            word = m.group(0)
            kind = _KEYWORDS.get(word, TokenKind.IDENT)
            tokens.append(Token(kind, word, i))
            i = m.end()
            continue

        for text, kind in _OPERATORS:
            if source.startswith(text, i):
                tokens.append(Token(kind, text, i))
                i += len(text)
                break
        else:
            raise ExpressionTokenError(f"Unexpected character: {c!r}", i)

    tokens.append(Token(TokenKind.EOF, "", n))
    return tokens


def _read_string(source: str, start: int) -> tuple[int, Token]:
    """Read a quoted string literal."""
    quote = source[start]
    i = start + 1
    n = len(source)
    chars: list[str] = []

    while i < n:
        c = source[i]
        if c == "\\":
            if i + 1 < n:
                nxt = source[i + 1]
                chars.append(_ESCAPES.get(nxt, nxt))
                i += 2
                continue
            raise ExpressionTokenError("Unterminated escape sequence", i)
        if c == quote:
            return i + 1, Token(TokenKind.STRING, "".join(chars), start)
        if c == "\n":
            raise ExpressionTokenError("Unterminated string literal", start)
        chars.append(c)
        i += 1

    raise ExpressionTokenError("Unterminated string literal", start)
