"""Programmer-mode arithmetic in binary, octal, decimal, or hexadecimal.

A small evaluator: one binary operator surrounded by
spaces (``"FF AND 0F"``) or a ``"NOT "`` prefix, read left to right with no
precedence and no parentheses.

Integer model
-------------
Bitwise operators (``AND OR XOR << >> NOT``) work on a signed 32-bit word,
so ``NOT 0`` is ``-1`` whose unsigned pattern is 32 one-bits (see
:func:`unsigned_pattern`). ``+ - *`` use unbounded integers and ``/`` floors
toward negative infinity.
"""

from __future__ import annotations

from typing import Optional, Union

from .errors import EvalError

__all__ = [
    "RADIXES",
    "OPERATORS",
    "WORD_BITS",
    "resolve_radix",
    "evaluate_base",
    "format_in_base",
    "to_base_strings",
    "unsigned_pattern",
    "BaseEvaluator",
]

RADIXES: dict[str, int] = {"bin": 2, "oct": 8, "dec": 10, "hex": 16}
# Scan order matters: the first operator found in the text wins.
OPERATORS: tuple[str, ...] = ("AND", "OR", "XOR", "<<", ">>", "+", "-", "*", "/")
WORD_BITS = 32
_MASK = (1 << WORD_BITS) - 1
_SIGN = 1 << (WORD_BITS - 1)

RadixLike = Union[int, str]


def resolve_radix(radix: RadixLike) -> int:
    """Map ``"bin"``/``"oct"``/``"dec"``/``"hex"`` or 2/8/10/16 to an int radix."""
    if isinstance(radix, str):
        key = radix.strip().lower()
        if key in RADIXES:
            return RADIXES[key]
        raise ValueError(f"Unknown radix {radix!r}; expected one of {sorted(RADIXES)}")
    value = int(radix)
    if value not in RADIXES.values():
        raise ValueError(f"Unsupported radix {radix!r}; expected 2, 8, 10 or 16")
    return value


def _to_word(value: int) -> int:
    value &= _MASK
    return value - (1 << WORD_BITS) if value & _SIGN else value


def unsigned_pattern(value: int) -> int:
    """Return the 32-bit two's-complement pattern of ``value`` as a non-negative int."""
    return value & _MASK


def _parse_operand(text: str, radix: int) -> Optional[int]:
    text = text.strip()
    if not text:
        return None
    try:
        return int(text, radix)
    except ValueError:
        return None


def _apply(op: str, a: int, b: int) -> int:
    if op == "AND":
        return _to_word(_to_word(a) & _to_word(b))
    if op == "OR":
        return _to_word(_to_word(a) | _to_word(b))
    if op == "XOR":
        return _to_word(_to_word(a) ^ _to_word(b))
    if op == "<<":
        return _to_word(_to_word(a) << (b & (WORD_BITS - 1)))
    if op == ">>":
        return _to_word(a) >> (b & (WORD_BITS - 1))
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if op == "/":
        if b == 0:
            raise EvalError("Division by zero")
        return a // b
    raise EvalError(f"Unknown operator {op!r}")


def evaluate_base(expression: str, radix: RadixLike = 10) -> int:
    """Evaluate a single-operator programmer-mode expression.

    Parameters
    ----------
    expression : str
        ``"<a> <OP> <b>"``, ``"NOT <a>"``, or a single operand, with operands
        written in ``radix``.
    radix : int or str
        2, 8, 10, 16 or ``"bin"``, ``"oct"``, ``"dec"``, ``"hex"``.

    Returns
    -------
    int
        The result. Empty text, a missing operand, or digits that are not
        valid in ``radix`` give 0. An operand is read whole: ``"1G"`` in hex
        is invalid and gives 0, not the value of its leading ``"1"``.

    Raises
    ------
    EvalError
        On division by zero.

    Examples
    --------
    >>> evaluate_base("FF AND 0F", "hex")
    15
    >>> evaluate_base("NOT 0", 2)
    -1
    """
    base = resolve_radix(radix)
    if not expression:
        return 0
    if expression.startswith("NOT "):
        operand = _parse_operand(expression[4:], base)
        return 0 if operand is None else _to_word(~_to_word(operand))

    for op in OPERATORS:
        index = expression.find(f" {op} ")
        if index > -1:
            left = _parse_operand(expression[:index], base)
            right = _parse_operand(expression[index + len(op) + 2 :], base)
            if left is None or right is None:
                return 0
            return _apply(op, left, right)

    value = _parse_operand(expression, base)
    return 0 if value is None else value


def format_in_base(value: int, radix: RadixLike) -> str:
    """Render ``value`` in ``radix`` with a leading ``-`` for negatives.

    Hex digits are upper case.
    """
    base = resolve_radix(radix)
    if value < 0:
        return "-" + format_in_base(-value, base)
    if base == 2:
        return format(value, "b")
    if base == 8:
        return format(value, "o")
    if base == 16:
        return format(value, "X")
    return str(value)


def to_base_strings(value: int) -> dict[str, str]:
    """Return ``value`` rendered in every supported radix, keyed by name."""
    return {name: format_in_base(value, base) for name, base in (("hex", 16), ("dec", 10), ("oct", 8), ("bin", 2))}


class BaseEvaluator:
    """Stateful wrapper holding the active radix.

    Parameters
    ----------
    radix : int or str, default="dec"
        Initial radix.
    """

    def __init__(self, radix: RadixLike = "dec") -> None:
        self._radix = resolve_radix(radix)

    @property
    def radix(self) -> int:
        return self._radix

    def evaluate(self, expression: str) -> int:
        return evaluate_base(expression, self._radix)

    def set_radix(self, radix: RadixLike, expression: str = "") -> str:
        """Switch radix and return ``expression``'s current value in the new radix.

        An empty expression stays empty.
        """
        value = self.evaluate(expression)
        self._radix = resolve_radix(radix)
        return format_in_base(value, self._radix) if expression else ""
