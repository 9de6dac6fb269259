"""Lexer shared by the notation normalizer and the expression parser.

Tokens carry their source text so that a token stream can be written back
out as text (:func:`render_tokens`) and lexed again to the same stream. The
normalizer relies on that round trip to stay idempotent.

Identifiers are whole tokens: ``log`` inside ``logbase`` or ``x`` inside
``exp`` can never be matched on their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

__all__ = [
    "NUMBER",
    "IDENT",
    "OP",
    "LPAREN",
    "RPAREN",
    "LBRACE",
    "RBRACE",
    "COMMA",
    "COLON",
    "UNKNOWN",
    "Token",
    "tokenize",
    "render_tokens",
    "matching_close",
    "matching_open",
    "split_top_level",
]

NUMBER = "NUMBER"
IDENT = "IDENT"
OP = "OP"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
LBRACE = "LBRACE"
RBRACE = "RBRACE"
COMMA = "COMMA"
COLON = "COLON"
UNKNOWN = "UNKNOWN"

_DIGITS = "0123456789"
TWO_CHAR_OPS = frozenset({"**", "<=", ">=", "==", "!=", "&&", "||"})
SINGLE_CHAR_OPS = frozenset("+-*/%^<>=!" "×÷−·⋅√²³≤≥≠")
# Glyphs that are alphanumeric to ``str`` but are operators or standalone
# constants here.
_STANDALONE = frozenset("π²³")

_PUNCTUATION = {
    "(": LPAREN,
    ")": RPAREN,
    "{": LBRACE,
    "}": RBRACE,
    ",": COMMA,
    ":": COLON,
}

_OPENERS = {LPAREN: RPAREN, LBRACE: RBRACE}


@dataclass(frozen=True)
class Token:
    """One lexical token with its kind, source text, and offset."""

    kind: str
    text: str
    pos: int = 0

    def is_op(self, *texts: str) -> bool:
        return self.kind == OP and self.text in texts

    def is_ident(self, *names: str) -> bool:
        return self.kind == IDENT and (not names or self.text in names)


def _scan_number(text: str, start: int) -> int:
    i = start
    n = len(text)
    while i < n and text[i] in _DIGITS:
        i += 1
    if i < n and text[i] == ".":
        i += 1
        while i < n and text[i] in _DIGITS:
            i += 1
    # Exponent only when digits follow, so ``2e`` stays ``2`` then ``e``.
    if i < n and text[i] in "eE":
        j = i + 1
        if j < n and text[j] in "+-":
            j += 1
        if j < n and text[j] in _DIGITS:
            while j < n and text[j] in _DIGITS:
                j += 1
            i = j
    return i


def _is_ident_start(ch: str) -> bool:
    return (ch.isalpha() or ch == "_") and ch not in _STANDALONE


def _is_ident_char(ch: str) -> bool:
    return (ch.isalnum() or ch == "_") and ch not in _STANDALONE


def tokenize(text: str) -> list[Token]:
    """Split ``text`` into tokens.

    Never raises: characters outside the vocabulary become ``UNKNOWN``
    tokens and are rejected later by the parser.
    """
    tokens: list[Token] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if ch in _DIGITS or (ch == "." and i + 1 < n and text[i + 1] in _DIGITS):
            end = _scan_number(text, i)
            tokens.append(Token(NUMBER, text[i:end], i))
            i = end
            continue
        if ch == "π":
            tokens.append(Token(IDENT, ch, i))
            i += 1
            continue
        if _is_ident_start(ch):
            end = i + 1
            while end < n and _is_ident_char(text[end]):
                end += 1
            tokens.append(Token(IDENT, text[i:end], i))
            i = end
            continue
        pair = text[i : i + 2]
        if pair in TWO_CHAR_OPS:
            tokens.append(Token(OP, pair, i))
            i += 2
            continue
        if ch in SINGLE_CHAR_OPS:
            tokens.append(Token(OP, ch, i))
            i += 1
            continue
        kind = _PUNCTUATION.get(ch, UNKNOWN)
        tokens.append(Token(kind, ch, i))
        i += 1
    return tokens


def _wordish(ch: str) -> bool:
    return ch.isalnum() or ch in "_."


def _needs_space(prev: Token, tok: Token) -> bool:
    a = prev.text[-1]
    b = tok.text[0]
    if a + b in TWO_CHAR_OPS:
        return True
    return _wordish(a) and _wordish(b)


def render_tokens(tokens: Sequence[Token]) -> str:
    """Write a token stream back out as canonical text.

    Commas and colons are followed by one space; two tokens are separated by
    a space only where gluing them would lex differently.
    """
    parts: list[str] = []
    prev: Optional[Token] = None
    for tok in tokens:
        if prev is not None:
            if prev.kind in (COMMA, COLON):
                parts.append(" ")
            elif _needs_space(prev, tok):
                parts.append(" ")
        parts.append(tok.text)
        prev = tok
    return "".join(parts)


def matching_close(tokens: Sequence[Token], open_index: int) -> Optional[int]:
    """Return the index closing the bracket at ``open_index``, or ``None``.

    Parentheses and braces are tracked together.
    """
    depth = 0
    for i in range(open_index, len(tokens)):
        kind = tokens[i].kind
        if kind in _OPENERS:
            depth += 1
        elif kind in (RPAREN, RBRACE):
            depth -= 1
            if depth == 0:
                return i
            if depth < 0:
                return None
    return None


def matching_open(tokens: Sequence[Token], close_index: int) -> Optional[int]:
    """Return the index opening the bracket at ``close_index``, or ``None``."""
    depth = 0
    for i in range(close_index, -1, -1):
        kind = tokens[i].kind
        if kind in (RPAREN, RBRACE):
            depth += 1
        elif kind in _OPENERS:
            depth -= 1
            if depth == 0:
                return i
            if depth < 0:
                return None
    return None


def split_top_level(
    tokens: Iterable[Token], separator: str = COMMA, text: Optional[str] = None
) -> list[list[Token]]:
    """Split ``tokens`` on ``separator`` tokens outside any bracket.

    ``text`` further restricts the separator, e.g. ``(OP, "=")``. An empty
    input yields an empty list; otherwise there is one part per separator
    plus one.
    """
    items = list(tokens)
    if not items:
        return []
    parts: list[list[Token]] = [[]]
    depth = 0
    for tok in items:
        if tok.kind in _OPENERS:
            depth += 1
        elif tok.kind in (RPAREN, RBRACE):
            depth -= 1
        if depth == 0 and tok.kind == separator and (text is None or tok.text == text):
            parts.append([])
            continue
        parts[-1].append(tok)
    return parts
