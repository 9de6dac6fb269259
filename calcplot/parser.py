"""Recursive-descent parser producing the expression AST.

Grammar, lowest precedence first::

    expr        := or_expr
    or_expr     := and_expr (("or" | "||") and_expr)*
    and_expr    := not_expr (("and" | "&&") not_expr)*
    not_expr    := "not" not_expr | comparison
    comparison  := additive (("<" | "<=" | ">" | ">=" | "==" | "!=") additive)*
    additive    := term (("+" | "-") term)*
    term        := unary (("*" | "/" | "%") unary | power)*     # bare power = implicit *
    unary       := ("+" | "-") unary | power
    power       := primary ("**" unary)?                          # right-associative
    primary     := NUMBER | IDENT | IDENT "(" args ")" | "(" expr ")" | piecewise
    piecewise   := "{" piece ("," piece)* "}"
    piece       := ("else" | "otherwise" | "true" | expr) ":" expr

The parser consumes *canonical* tokens; :func:`parse_expression` runs the
normalizer first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .errors import ExpressionSyntaxError
from .normalize import normalize_tokens
from .tokenizer import (
    COLON,
    COMMA,
    IDENT,
    LBRACE,
    LPAREN,
    NUMBER,
    OP,
    RBRACE,
    RPAREN,
    Token,
    tokenize,
)

__all__ = [
    "NumberLit",
    "Identifier",
    "UnaryOp",
    "BinaryOp",
    "Call",
    "Piecewise",
    "Node",
    "Parser",
    "parse_tokens",
    "parse_expression",
    "DEFAULT_CONDITIONS",
    "NESTED_TOO_DEEPLY",
]


@dataclass(frozen=True)
class NumberLit:
    value: float
    text: str


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Node", ...]


@dataclass(frozen=True)
class Piecewise:
    """Ordered ``(condition, value)`` pieces; a ``None`` condition always matches."""

    pieces: tuple[tuple[Optional["Node"], "Node"], ...]


Node = Union[NumberLit, Identifier, UnaryOp, BinaryOp, Call, Piecewise]

DEFAULT_CONDITIONS = frozenset({"else", "otherwise", "true"})
NESTED_TOO_DEEPLY = "Expression nested too deeply"
_KEYWORDS = frozenset({"and", "or", "not"}) | DEFAULT_CONDITIONS
_COMPARISONS = ("<", "<=", ">", ">=", "==", "!=")
_PRIMARY_START = (NUMBER, IDENT, LPAREN, LBRACE)


class Parser:
    """Parse one canonical token stream into a :data:`Node` tree."""

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens = list(tokens)
        self._i = 0

    # -- cursor helpers -------------------------------------------------

    def _peek(self, offset: int = 0) -> Optional[Token]:
        j = self._i + offset
        return self._tokens[j] if j < len(self._tokens) else None

    def _advance(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise ExpressionSyntaxError("Unexpected end of expression")
        self._i += 1
        return tok

    def _expect(self, kind: str, what: str) -> Token:
        tok = self._peek()
        if tok is None or tok.kind != kind:
            found = "end of expression" if tok is None else repr(tok.text)
            raise ExpressionSyntaxError(
                f"Expected {what}, found {found}", None if tok is None else tok.pos
            )
        return self._advance()

    def _at_op(self, *texts: str) -> bool:
        tok = self._peek()
        return tok is not None and tok.is_op(*texts)

    def _at_keyword(self, *names: str) -> bool:
        tok = self._peek()
        return tok is not None and tok.kind == IDENT and tok.text in names

    # -- grammar --------------------------------------------------------

    def parse(self) -> Node:
        if not self._tokens:
            raise ExpressionSyntaxError("Empty expression")
        node = self._or()
        tok = self._peek()
        if tok is not None:
            raise ExpressionSyntaxError(f"Unexpected token {tok.text!r}", tok.pos)
        return node

    def _or(self) -> Node:
        node = self._and()
        while self._at_op("||") or self._at_keyword("or"):
            self._advance()
            node = BinaryOp("or", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._not()
        while self._at_op("&&") or self._at_keyword("and"):
            self._advance()
            node = BinaryOp("and", node, self._not())
        return node

    def _not(self) -> Node:
        if self._at_keyword("not"):
            self._advance()
            return UnaryOp("not", self._not())
        return self._comparison()

    def _comparison(self) -> Node:
        node = self._additive()
        while self._at_op(*_COMPARISONS):
            op = self._advance().text
            node = BinaryOp(op, node, self._additive())
        return node

    def _additive(self) -> Node:
        node = self._term()
        while self._at_op("+", "-"):
            op = self._advance().text
            node = BinaryOp(op, node, self._term())
        return node

    def _starts_implicit_factor(self) -> bool:
        tok = self._peek()
        if tok is None or tok.kind not in _PRIMARY_START:
            return False
        return not (tok.kind == IDENT and tok.text in _KEYWORDS)

    def _term(self) -> Node:
        node = self._unary()
        while True:
            if self._at_op("*", "/", "%"):
                op = self._advance().text
                node = BinaryOp(op, node, self._unary())
            elif self._starts_implicit_factor():
                node = BinaryOp("*", node, self._power())
            else:
                return node

    def _unary(self) -> Node:
        if self._at_op("+", "-"):
            op = self._advance().text
            return UnaryOp(op, self._unary())
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        if self._at_op("**"):
            self._advance()
            return BinaryOp("**", base, self._unary())
        return base

    def _primary(self) -> Node:
        tok = self._peek()
        if tok is None:
            raise ExpressionSyntaxError("Unexpected end of expression")
        if tok.kind == NUMBER:
            self._advance()
            try:
                return NumberLit(float(tok.text), tok.text)
            except ValueError:
                raise ExpressionSyntaxError(f"Malformed number {tok.text!r}", tok.pos) from None
        if tok.kind == IDENT and tok.text not in _KEYWORDS:
            self._advance()
            nxt = self._peek()
            if nxt is not None and nxt.kind == LPAREN:
                return Call(tok.text, self._arguments())
            return Identifier(tok.text)
        if tok.kind == LPAREN:
            self._advance()
            node = self._or()
            self._expect(RPAREN, "')'")
            return node
        if tok.kind == LBRACE:
            return self._piecewise()
        raise ExpressionSyntaxError(f"Unexpected token {tok.text!r}", tok.pos)

    def _arguments(self) -> tuple[Node, ...]:
        self._expect(LPAREN, "'('")
        args: list[Node] = []
        if self._peek() is not None and self._peek().kind == RPAREN:
            self._advance()
            return ()
        while True:
            args.append(self._or())
            tok = self._peek()
            if tok is not None and tok.kind == COMMA:
                self._advance()
                continue
            self._expect(RPAREN, "',' or ')'")
            return tuple(args)

    def _piecewise(self) -> Piecewise:
        self._expect(LBRACE, "'{'")
        pieces: list[tuple[Optional[Node], Node]] = []
        while True:
            condition: Optional[Node]
            nxt = self._peek(1)
            if self._at_keyword(*DEFAULT_CONDITIONS) and nxt is not None and nxt.kind == COLON:
                self._advance()
                condition = None
            else:
                condition = self._or()
            self._expect(COLON, "':' in piecewise definition")
            pieces.append((condition, self._or()))
            tok = self._peek()
            if tok is not None and tok.kind == COMMA:
                self._advance()
                continue
            self._expect(RBRACE, "',' or '}'")
            return Piecewise(tuple(pieces))


def parse_tokens(tokens: Sequence[Token]) -> Node:
    """Parse canonical tokens without normalizing them."""
    try:
        return Parser(tokens).parse()
    except RecursionError:
        raise ExpressionSyntaxError(NESTED_TOO_DEEPLY) from None


def parse_expression(text: str) -> Node:
    """Normalize ``text`` and parse it into an AST.

    Raises
    ------
    ExpressionSyntaxError
        If the normalized text is not a well-formed expression, or is
        nested deeper than the interpreter's recursion limit allows.
    """
    try:
        tokens = normalize_tokens(tokenize(text))
    except RecursionError:
        raise ExpressionSyntaxError(NESTED_TOO_DEEPLY) from None
    return parse_tokens(tokens)
