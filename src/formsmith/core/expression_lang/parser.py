"""
Recursive descent parser for derived-field expressions.

Grammar (precedence low to high):
    expr        → conditional
    conditional → nullish ("?" expr ":" conditional)?
    nullish     → or ("??" or)*
    or          → and ("||" and)*
    and         → equality ("&&" equality)*
    equality    → relational (("==" | "!=" | "===" | "!==") relational)*
    relational  → additive (("<" | ">" | "<=" | ">=") additive)*
    additive    → multiply (("+" | "-") multiply)*
    multiply    → unary (("*" | "/" | "%") unary)*
    unary       → ("!" | "-" | "+") unary | power
    power       → postfix ("**" unary)?
    postfix     → call | primary ("." IDENT | "[" expr "]")*
    call        → IDENT "." IDENT "(" (expr ("," expr)*)? ")"
    primary     → literal | IDENT | "(" expr ")" | "[" (expr ("," expr)*)? "]"
    literal     → INT | FLOAT | STRING | true | false | null | undefined | NaN | Infinity

Only namespace-qualified calls (``Math.max(...)``) have a production; which
namespaces exist is decided by the screening pass, not the grammar.

Nesting (parentheses, brackets, call arguments, conditional branches,
exponents and unary operators) is capped at ``MAX_NESTING_DEPTH`` levels so that
parsing and evaluation stay well inside the interpreter's recursion limit.
"""

from __future__ import annotations

from formsmith.core.expression_lang.coercion import js_number
from formsmith.core.expression_lang.tokenizer import (
    ExpressionTokenError,
    Token,
    TokenKind,
    tokenize,
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


MAX_NESTING_DEPTH = 32
NESTING_TOO_DEEP = f"Expression is nested too deeply (maximum {MAX_NESTING_DEPTH} levels)"


class ExpressionParseError(Exception):
    """Error during expression parsing."""

    def __init__(self, message: str, pos: int = 0) -> None:
        super().__init__(message)
        self.pos = pos


_EQUALITY_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.EQ: BinaryOp.EQ,
    TokenKind.NE: BinaryOp.NE,
    TokenKind.STRICT_EQ: BinaryOp.STRICT_EQ,
    TokenKind.STRICT_NE: BinaryOp.STRICT_NE,
}

_RELATIONAL_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.LT: BinaryOp.LT,
    TokenKind.GT: BinaryOp.GT,
    TokenKind.LE: BinaryOp.LE,
    TokenKind.GE: BinaryOp.GE,
}

_MULTIPLY_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.STAR: BinaryOp.MUL,
    TokenKind.SLASH: BinaryOp.DIV,
    TokenKind.PERCENT: BinaryOp.MOD,
}

_UNARY_OPS: dict[TokenKind, UnaryOp] = {
    TokenKind.NOT: UnaryOp.NOT,
    TokenKind.MINUS: UnaryOp.NEG,
    TokenKind.PLUS: UnaryOp.POS,
}


class _Parser:
    """Recursive descent parser for expressions."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]  # EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def expect(self, kind: TokenKind) -> Token:
        tok = self.current
        if tok.kind != kind:
            raise ExpressionParseError(
                f"Expected {kind}, got {tok.kind} ({tok.value!r})",
                tok.pos,
            )
        return self.advance()

    def match(self, *kinds: TokenKind) -> Token | None:
        if self.current.kind in kinds:
            return self.advance()
        return None

    def _descend(self) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise ExpressionParseError(NESTING_TOO_DEEP, self.current.pos)

    # -- Grammar rules --

    def parse_expr(self) -> Expr:
        """Top-level: conditional."""
        self._descend()
        expr = self.parse_conditional()
        self.depth -= 1
        return expr

    def parse_conditional(self) -> Expr:
        """nullish ('?' expr ':' conditional)?"""
        condition = self.parse_nullish()
        if not self.match(TokenKind.QUESTION):
            return condition
        then_expr = self.parse_expr()
        self.expect(TokenKind.COLON)
        self._descend()
        else_expr = self.parse_conditional()
        self.depth -= 1
        return ConditionalExpr(condition=condition, then_expr=then_expr, else_expr=else_expr)

    def parse_nullish(self) -> Expr:
        """or ('??' or)*"""
        left = self.parse_or()
        while self.match(TokenKind.NULLISH):
            right = self.parse_or()
            left = BinaryExpr(op=BinaryOp.NULLISH, left=left, right=right)
        return left

    def parse_or(self) -> Expr:
        """and ('||' and)*"""
        left = self.parse_and()
        while self.match(TokenKind.OR):
            right = self.parse_and()
            left = BinaryExpr(op=BinaryOp.OR, left=left, right=right)
        return left

    def parse_and(self) -> Expr:
        """equality ('&&' equality)*"""
        left = self.parse_equality()
        while self.match(TokenKind.AND):
            right = self.parse_equality()
            left = BinaryExpr(op=BinaryOp.AND, left=left, right=right)
        return left

    def parse_equality(self) -> Expr:
        """relational (eq_op relational)*"""
        left = self.parse_relational()
        while self.current.kind in _EQUALITY_OPS:
            op = _EQUALITY_OPS[self.advance().kind]
            right = self.parse_relational()
            left = BinaryExpr(op=op, left=left, right=right)
        return left

    def parse_relational(self) -> Expr:
        """additive (rel_op additive)*"""
        left = self.parse_additive()
        while self.current.kind in _RELATIONAL_OPS:
            op = _RELATIONAL_OPS[self.advance().kind]
            right = self.parse_additive()
            left = BinaryExpr(op=op, left=left, right=right)
        return left

    def parse_additive(self) -> Expr:
        """multiply (('+' | '-') multiply)*"""
        left = self.parse_multiply()
        while self.current.kind in (TokenKind.PLUS, TokenKind.MINUS):
            op = BinaryOp.ADD if self.current.kind == TokenKind.PLUS else BinaryOp.SUB
            self.advance()
            right = self.parse_multiply()
            left = BinaryExpr(op=op, left=left, right=right)
        return left

    def parse_multiply(self) -> Expr:
        """unary (('*' | '/' | '%') unary)*"""
        left = self.parse_unary()
        while self.current.kind in _MULTIPLY_OPS:
            op = _MULTIPLY_OPS[self.advance().kind]
            right = self.parse_unary()
            left = BinaryExpr(op=op, left=left, right=right)
        return left

    def parse_unary(self) -> Expr:
        """('!' | '-' | '+') unary | power"""
        if self.current.kind in _UNARY_OPS:
            op = _UNARY_OPS[self.advance().kind]
            self._descend()
            operand = self.parse_unary()
            self.depth -= 1
            return UnaryExpr(op=op, operand=operand)
        return self.parse_power()

    def parse_power(self) -> Expr:
        """postfix ('**' unary)? (right-associative)"""
        base = self.parse_postfix()
        if self.match(TokenKind.STARSTAR):
            self._descend()
            exponent = self.parse_unary()
            self.depth -= 1
            return BinaryExpr(op=BinaryOp.POW, left=base, right=exponent)
        return base

    def parse_postfix(self) -> Expr:
        """call | primary ('.' IDENT | '[' expr ']')*"""
        if (
            self.current.kind == TokenKind.IDENT
            and self.peek(1).kind == TokenKind.DOT
            and self.peek(2).kind == TokenKind.IDENT
            and self.peek(3).kind == TokenKind.LPAREN
        ):
            expr: Expr = self._parse_func_call()
        else:
            expr = self.parse_primary()

        while True:
            if self.match(TokenKind.DOT):
                prop = self.expect(TokenKind.IDENT)
                if self.current.kind == TokenKind.LPAREN:
                    raise ExpressionParseError(
                        f"Method calls are not supported: .{prop.value}()",
                        prop.pos,
                    )
                expr = MemberExpr(target=expr, prop=prop.value)
            elif self.match(TokenKind.LBRACKET):
                index = self.parse_expr()
                self.expect(TokenKind.RBRACKET)
                expr = IndexExpr(target=expr, index=index)
            elif self.current.kind == TokenKind.LPAREN:
                raise ExpressionParseError(
                    f"Only Namespace.function(...) calls are supported, not {expr}(...)",
                    self.current.pos,
                )
            else:
                return expr

    def parse_primary(self) -> Expr:
        """literal | IDENT | '(' expr ')' | array"""
        tok = self.current

        # Parenthesized expression
        if tok.kind == TokenKind.LPAREN:
            self.advance()
            expr = self.parse_expr()
            self.expect(TokenKind.RPAREN)
            return expr

        # Array literal
        if tok.kind == TokenKind.LBRACKET:
            return ArrayLiteral(items=self._parse_list_items())

        # Literals
        if tok.kind == TokenKind.INT:
            self.advance()
            return Literal(value=js_number(int(tok.value)))
        if tok.kind == TokenKind.FLOAT:
            self.advance()
            return Literal(value=float(tok.value))
        if tok.kind == TokenKind.STRING:
            self.advance()
            return Literal(value=tok.value)
        if tok.kind == TokenKind.TRUE:
            self.advance()
            return Literal(value=True)
        if tok.kind == TokenKind.FALSE:
            self.advance()
            return Literal(value=False)
        if tok.kind in (TokenKind.NULL, TokenKind.UNDEFINED):
            self.advance()
            return Literal(value=None)
        if tok.kind == TokenKind.NAN:
            self.advance()
            return Literal(value=float("nan"))
        if tok.kind == TokenKind.INFINITY:
            self.advance()
            return Literal(value=float("inf"))

        if tok.kind == TokenKind.IDENT:
            self.advance()
            return Identifier(name=tok.value)

        raise ExpressionParseError(
            f"Unexpected token: {tok.kind} ({tok.value!r})",
            tok.pos,
        )

    def _parse_func_call(self) -> FuncCall:
        """IDENT '.' IDENT '(' (expr (',' expr)*)? ')'"""
        namespace = self.expect(TokenKind.IDENT)
        self.expect(TokenKind.DOT)
        name = self.expect(TokenKind.IDENT)
        self.expect(TokenKind.LPAREN)

        args: list[Expr] = []
        if self.current.kind != TokenKind.RPAREN:
            args.append(self.parse_expr())
            while self.match(TokenKind.COMMA):
                args.append(self.parse_expr())

        self.expect(TokenKind.RPAREN)
        return FuncCall(namespace=namespace.value, name=name.value, args=args)

    def _parse_list_items(self) -> list[Expr]:
        """'[' (expr (',' expr)*)? ']'"""
        self.expect(TokenKind.LBRACKET)
        items: list[Expr] = []
        if self.current.kind != TokenKind.RBRACKET:
            items.append(self.parse_expr())
            while self.match(TokenKind.COMMA):
                items.append(self.parse_expr())
        self.expect(TokenKind.RBRACKET)
        return items


def parse_tokens(tokens: list[Token]) -> Expr:
    """Parse an already-tokenized expression into an AST."""
    parser = _Parser(tokens)
    expr = parser.parse_expr()

    # Ensure all tokens consumed
    if parser.current.kind != TokenKind.EOF:
        raise ExpressionParseError(
            f"Unexpected token after expression: {parser.current.value!r}",
            parser.current.pos,
        )

    return expr


def parse_expr(source: str) -> Expr:
    """Parse an expression string into an AST.

    Args:
        source: Expression string (e.g., "price * qty * 1.2")

    Returns:
        Parsed expression AST.

    Raises:
        ExpressionParseError: If the expression is invalid.
    """
    try:
        tokens = tokenize(source)
    except ExpressionTokenError as e:
        raise ExpressionParseError(str(e), e.pos) from e

    return parse_tokens(tokens)
