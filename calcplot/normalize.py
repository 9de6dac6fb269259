"""Notation normalizer: user notation to the canonical evaluator vocabulary.

Purpose
-------
Calculator keypads produce text such as ``√(2)×π``, ``5!``, ``logbase(8, 2)``
or ``deriv(x^3, x, 2)``. :func:`normalize` rewrites it into the small,
fixed vocabulary understood by :mod:`calcplot.parser`:

=====================  ==========================================
input                  canonical form
=====================  ==========================================
``× · ⋅`` / ``÷`` / ``−``   ``*`` / ``/`` / ``-``
``≤ ≥ ≠``              ``<= >= !=``
``^``, ``²``, ``³``    ``**``, ``**2``, ``**3``
``π``                  ``pi``
``√(a)``, ``√a``       ``sqrt(a)``
``n!``                 ``factorial(n)``
``ln(a)``              ``ln(a)`` (natural log)
``log(a)``             ``log10(a)``
``log(a, b)``          ``(ln(a)/ln(b))``
``logbase(a, b)``      ``(ln(a)/ln(b))``
``antilog(a)``         ``(10**(a))``
``antilog(a, b)``      ``((b)**(a))``
``deriv(f, v, at)``    ``nderiv(f, v, at)`` (numeric)
``deriv(f[, v])``      ``diff(f, v)`` (symbolic, ``v`` defaults to ``x``)
``integ(f, v, a, b)``  ``nintegrate(f, v, a, b)`` (numeric)
``integ(f[, v])``      ``integrate(f, v)`` (symbolic)
=====================  ==========================================

Notes
-----
The rewrite runs over tokens, never over raw substrings, so a function name
only matches as a whole token and rewrite order does not matter. The
function is total: anything it does not recognise is passed through and left
for the parser to accept or reject. Output is re-serialized canonically, so
``normalize(normalize(t)) == normalize(t)``.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from .tokenizer import (
    IDENT,
    LPAREN,
    NUMBER,
    OP,
    RPAREN,
    COMMA,
    Token,
    matching_close,
    matching_open,
    render_tokens,
    split_top_level,
    tokenize,
)

__all__ = ["normalize", "normalize_tokens"]

_GLYPH_OPS = {
    "×": "*",
    "·": "*",
    "⋅": "*",
    "÷": "/",
    "−": "-",
    "^": "**",
    "≤": "<=",
    "≥": ">=",
    "≠": "!=",
}
_SUPERSCRIPTS = {"²": "2", "³": "3"}
_CONSTANTS = {"π": "pi"}

Args = list[list[Token]]


def _tok(kind: str, text: str) -> Token:
    return Token(kind, text)


def _ident(name: str) -> Token:
    return _tok(IDENT, name)


def _call(name: str, args: Sequence[Sequence[Token]]) -> list[Token]:
    out = [_ident(name), _tok(LPAREN, "(")]
    for i, arg in enumerate(args):
        if i:
            out.append(_tok(COMMA, ","))
        out.extend(arg)
    out.append(_tok(RPAREN, ")"))
    return out


def _group(tokens: Sequence[Token]) -> list[Token]:
    return [_tok(LPAREN, "("), *tokens, _tok(RPAREN, ")")]


def _operand_after(tokens: Sequence[Token], index: int) -> Optional[int]:
    """Return the end index (exclusive) of the operand starting at ``index``."""
    if index >= len(tokens):
        return None
    tok = tokens[index]
    if tok.is_op("√"):
        return _operand_after(tokens, index + 1)
    if tok.kind == LPAREN:
        close = matching_close(tokens, index)
        return None if close is None else close + 1
    if tok.kind == IDENT and index + 1 < len(tokens) and tokens[index + 1].kind == LPAREN:
        close = matching_close(tokens, index + 1)
        return None if close is None else close + 1
    if tok.kind in (NUMBER, IDENT):
        return index + 1
    return None


def _operand_before(tokens: Sequence[Token]) -> Optional[int]:
    """Return the start index of the operand ending at the last token."""
    if not tokens:
        return None
    last = tokens[-1]
    if last.kind in (NUMBER, IDENT):
        return len(tokens) - 1
    if last.kind == RPAREN:
        start = matching_open(tokens, len(tokens) - 1)
        if start is None or tokens[start].kind != LPAREN:
            return None
        if start > 0 and tokens[start - 1].kind == IDENT:
            return start - 1
        return start
    return None


def _substitute_glyphs(tokens: Sequence[Token]) -> list[Token]:
    """Replace operator glyphs, constants, superscripts and the root sign."""
    out: list[Token] = []
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.kind == OP and tok.text in _GLYPH_OPS:
            out.append(_tok(OP, _GLYPH_OPS[tok.text]))
        elif tok.kind == OP and tok.text in _SUPERSCRIPTS:
            out.append(_tok(OP, "**"))
            out.append(_tok(NUMBER, _SUPERSCRIPTS[tok.text]))
        elif tok.kind == IDENT and tok.text in _CONSTANTS:
            out.append(_ident(_CONSTANTS[tok.text]))
        elif tok.is_op("√"):
            nxt = i + 1
            if nxt < len(tokens) and tokens[nxt].kind == LPAREN:
                out.append(_ident("sqrt"))
            else:
                end = _operand_after(tokens, nxt)
                if end is None:
                    out.append(tok)
                else:
                    inner = _substitute_glyphs(tokens[nxt:end])
                    out.extend(_call("sqrt", [inner]))
                    i = end
                    continue
        else:
            out.append(tok)
        i += 1
    return out


def _rewrite_log(args: Args) -> Optional[list[Token]]:
    if len(args) == 1:
        return _call("log10", args)
    if len(args) == 2:
        return _change_of_base(args)
    return None


def _change_of_base(args: Args) -> Optional[list[Token]]:
    if len(args) != 2:
        return None
    value, base = args
    return _group([*_call("ln", [value]), _tok(OP, "/"), *_call("ln", [base])])


def _rewrite_antilog(args: Args) -> Optional[list[Token]]:
    if len(args) == 1:
        base = [_tok(NUMBER, "10")]
    elif len(args) == 2:
        base = _group(args[1])
    else:
        return None
    return _group([*base, _tok(OP, "**"), *_group(args[0])])


def _rewrite_deriv(args: Args) -> Optional[list[Token]]:
    if len(args) == 3:
        return _call("nderiv", args)
    if len(args) == 2:
        return _call("diff", args)
    if len(args) == 1:
        return _call("diff", [args[0], [_ident("x")]])
    return None


def _rewrite_integ(args: Args) -> Optional[list[Token]]:
    if len(args) == 4:
        return _call("nintegrate", args)
    if len(args) == 2:
        return _call("integrate", args)
    if len(args) == 1:
        return _call("integrate", [args[0], [_ident("x")]])
    return None


_CALL_REWRITES: dict[str, Callable[[Args], Optional[list[Token]]]] = {
    "log": _rewrite_log,
    "logbase": _change_of_base,
    "antilog": _rewrite_antilog,
    "deriv": _rewrite_deriv,
    "integ": _rewrite_integ,
}


def _rewrite(tokens: Sequence[Token]) -> list[Token]:
    """Rewrite calls and postfix factorials, recursing into call arguments."""
    out: list[Token] = []
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.kind == IDENT and i + 1 < len(tokens) and tokens[i + 1].kind == LPAREN:
            close = matching_close(tokens, i + 1)
            if close is not None and tokens[close].kind == RPAREN:
                args = [_rewrite(arg) for arg in split_top_level(tokens[i + 2 : close])]
                rule = _CALL_REWRITES.get(tok.text)
                replaced = rule(args) if rule is not None else None
                out.extend(replaced if replaced is not None else _call(tok.text, args))
                i = close + 1
                continue
        if tok.is_op("!"):
            start = _operand_before(out)
            if start is not None:
                operand = out[start:]
                del out[start:]
                out.extend(_call("factorial", [operand]))
                i += 1
                continue
        out.append(tok)
        i += 1
    return out


def normalize_tokens(tokens: Sequence[Token]) -> list[Token]:
    """Normalize an already lexed token stream."""
    return _rewrite(_substitute_glyphs(tokens))


def normalize(text: str) -> str:
    """Rewrite user notation into canonical evaluator text.

    Parameters
    ----------
    text : str
        Expression as typed by the user.

    Returns
    -------
    str
        Canonical text. Never raises.

    Examples
    --------
    >>> normalize("2×π")
    '2*pi'
    >>> normalize("logbase(8, 2)")
    '(ln(8)/ln(2))'
    >>> normalize("5!")
    'factorial(5)'
    """
    try:
        return render_tokens(normalize_tokens(tokenize(text)))
    except RecursionError:
        # Calls nested past the recursion limit; the parser rejects them.
        return text
