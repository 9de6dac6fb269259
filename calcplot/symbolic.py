"""SymPy-backed symbolic fallback for top-level calculations.

Purpose
-------
Give the calculator closed-form answers where the numeric evaluator can only
fail: ``deriv(x^3)`` becomes ``3*x^2`` and ``integ(x^2, x)`` becomes
``x^3/3``. Purely numeric input such as ``0.1+0.2`` is evaluated exactly
and returned as a float.

Architecture notes
------------------
The engine converts the evaluator's AST (:mod:`calcplot.parser`) to SymPy
objects node by node. Raw user text is never handed to ``sympify``, so the
accepted vocabulary is exactly the evaluator's, with the same meaning: ``%``
keeps the sign of the dividend, as ``np.fmod`` does.

Exact arithmetic has no time bound, so numeric powers whose result would
exceed :data:`MAX_EXACT_DIGITS` digits and factorials above
:data:`MAX_EXACT_FACTORIAL` raise :class:`~calcplot.errors.SymbolicError`
before SymPy computes them.

Result contract
---------------
- real, finite numeric value -> ``float``
- expression with free symbols -> display text (``**`` rendered as ``^``)
- anything else (complex, infinite, undefined, unsupported, SymPy errors)
  -> :class:`~calcplot.errors.SymbolicError`, so callers fall back to the
  numeric evaluator.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Any, Callable, Union

import sympy as sp

from .errors import EvalError, SymbolicError
from .evaluator import validate_angle_mode
from .parser import BinaryOp, Call, Identifier, Node, NumberLit, Piecewise, UnaryOp, parse_expression

__all__ = ["SymbolicEngine", "to_sympy", "format_symbolic"]

SymbolicResult = Union[float, str]

_DEG = sp.pi / 180

# Exact results beyond this many digits are left to the float64 path.
MAX_EXACT_DIGITS = 10_000
# Largest factorial computed exactly.
MAX_EXACT_FACTORIAL = 1000


def _digits(value: Any) -> float:
    """Rough decimal size of a number's exact representation."""
    if isinstance(value, sp.Rational):
        return math.log10(max(abs(int(value.p)), int(value.q)))
    magnitude = abs(float(value))
    return abs(math.log10(magnitude)) if magnitude else 0.0


def _power(base: Any, exponent: Any) -> Any:
    if base.is_number and exponent.is_number:
        try:
            size = abs(float(exponent)) * _digits(base)
        except (TypeError, ValueError, OverflowError) as exc:
            raise SymbolicError(f"Cannot size power {base}^{exponent}: {exc}") from exc
        if not size <= MAX_EXACT_DIGITS:
            raise SymbolicError("Power too large for exact evaluation")
    return base**exponent


def _truncated_mod(a: Any, b: Any) -> Any:
    """Remainder with the sign of the dividend, like C ``fmod``."""
    q = a / b
    return a - b * sp.sign(q) * sp.floor(sp.Abs(q))


def _factorial(n: Any) -> Any:
    if n.is_number and not n <= MAX_EXACT_FACTORIAL:
        raise SymbolicError("Factorial too large for exact evaluation")
    return sp.factorial(n)


_PLAIN: dict[str, Callable[..., Any]] = {
    "sinh": sp.sinh,
    "cosh": sp.cosh,
    "tanh": sp.tanh,
    "asinh": sp.asinh,
    "acosh": sp.acosh,
    "atanh": sp.atanh,
    "sqrt": sp.sqrt,
    "cbrt": lambda x: sp.real_root(x, 3),
    "abs": sp.Abs,
    "floor": sp.floor,
    "ceil": sp.ceiling,
    "round": lambda x: sp.floor(x + sp.Rational(1, 2)),
    "sign": sp.sign,
    "exp": sp.exp,
    "ln": sp.log,
    "log10": lambda x: sp.log(x, 10),
    "log2": lambda x: sp.log(x, 2),
    "factorial": _factorial,
    "min": sp.Min,
    "max": sp.Max,
}
_FORWARD_TRIG = {"sin": sp.sin, "cos": sp.cos, "tan": sp.tan}
_INVERSE_TRIG = {"asin": sp.asin, "acos": sp.acos, "atan": sp.atan, "atan2": sp.atan2}

_BINARY: dict[str, Callable[[Any, Any], Any]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": lambda a, b: a / b,
    "%": _truncated_mod,
    "**": _power,
    "<": sp.Lt,
    "<=": sp.Le,
    ">": sp.Gt,
    ">=": sp.Ge,
    "==": sp.Eq,
    "!=": sp.Ne,
    "and": sp.And,
    "or": sp.Or,
}


def _number(node: NumberLit) -> sp.Rational:
    frac = Fraction(node.text)
    return sp.Rational(frac.numerator, frac.denominator)


def _symbol_arg(node: Call, index: int) -> sp.Symbol:
    arg = node.args[index]
    if not isinstance(arg, Identifier):
        raise SymbolicError(f"{node.name}() expects a variable name as argument {index + 1}")
    return sp.Symbol(arg.name)


def to_sympy(node: Node, angle_mode: str = "rad") -> Any:
    """Convert an expression tree to a SymPy object.

    Unknown identifiers become symbols; unknown functions raise
    :class:`SymbolicError`. A piecewise condition may only mention variables
    bound by an enclosing ``diff``/``integrate``; any other free name makes
    the condition undecidable here, so :class:`SymbolicError` hands the
    expression to the numeric evaluator, which skips such conditions.
    """
    deg = validate_angle_mode(angle_mode) == "deg"

    def build(n: Node, bound: frozenset) -> Any:
        if isinstance(n, NumberLit):
            return _number(n)
        if isinstance(n, Identifier):
            if n.name == "pi":
                return sp.pi
            if n.name == "e":
                return sp.E
            return sp.Symbol(n.name)
        if isinstance(n, UnaryOp):
            operand = build(n.operand, bound)
            if n.op == "-":
                return -operand
            if n.op == "+":
                return operand
            return sp.Not(operand)
        if isinstance(n, BinaryOp):
            return _BINARY[n.op](build(n.left, bound), build(n.right, bound))
        if isinstance(n, Piecewise):
            return piecewise(n, bound)
        if isinstance(n, Call):
            return call(n, bound)
        raise SymbolicError(f"Unsupported expression node: {type(n).__name__}")

    def piecewise(n: Piecewise, bound: frozenset) -> Any:
        pieces = []
        for cond, value in n.pieces:
            condition = sp.true if cond is None else build(cond, bound)
            unbound = {s.name for s in getattr(condition, "free_symbols", ())} - bound
            if unbound:
                raise SymbolicError(f"Piecewise condition depends on unbound {sorted(unbound)}")
            pieces.append((build(value, bound), condition))
        return sp.Piecewise(*pieces)

    def call(n: Call, bound: frozenset) -> Any:
        name = n.name
        if name in ("diff", "integrate"):
            if len(n.args) != 2:
                raise SymbolicError(f"{name}() takes 2 arguments")
            var = _symbol_arg(n, 1)
            op = sp.diff if name == "diff" else sp.integrate
            return op(build(n.args[0], bound | {var.name}), var)
        if name == "nderiv":
            if len(n.args) != 3:
                raise SymbolicError("nderiv() takes 3 arguments")
            var = _symbol_arg(n, 1)
            body = build(n.args[0], bound | {var.name})
            return sp.diff(body, var).subs(var, build(n.args[2], bound))
        if name == "nintegrate":
            if len(n.args) != 4:
                raise SymbolicError("nintegrate() takes 4 arguments")
            var = _symbol_arg(n, 1)
            body = build(n.args[0], bound | {var.name})
            return sp.integrate(body, (var, build(n.args[2], bound), build(n.args[3], bound)))
        args = [build(a, bound) for a in n.args]
        if name in _FORWARD_TRIG:
            if deg:
                args = [a * _DEG for a in args]
            return _FORWARD_TRIG[name](*args)
        if name in _INVERSE_TRIG:
            out = _INVERSE_TRIG[name](*args)
            return out / _DEG if deg else out
        if name in _PLAIN:
            return _PLAIN[name](*args)
        raise SymbolicError(f"Unknown function: {name!r}")

    return build(node, frozenset())


def format_symbolic(expr: Any) -> str:
    """Render a SymPy object for display, using ``^`` for powers."""
    return sp.sstr(expr).replace("**", "^")


class SymbolicEngine:
    """Closed-form evaluation through SymPy.

    The engine is stateless; angle mode is passed per call.
    """

    def evaluate(self, text: str, *, angle_mode: str = "rad") -> SymbolicResult:
        """Parse ``text`` and evaluate it symbolically."""
        try:
            node = parse_expression(text)
        except EvalError as exc:
            raise SymbolicError(str(exc)) from exc
        return self.evaluate_node(node, angle_mode=angle_mode)

    def evaluate_node(self, node: Node, *, angle_mode: str = "rad") -> SymbolicResult:
        """Evaluate an already parsed tree.

        Raises
        ------
        SymbolicError
            If SymPy fails or the result is not a real finite number or a
            symbolic expression.
        """
        try:
            result = to_sympy(node, angle_mode)
            return self._classify(result)
        except SymbolicError:
            raise
        except Exception as exc:
            raise SymbolicError(f"{type(exc).__name__}: {exc}") from exc

    @staticmethod
    def _classify(result: Any) -> SymbolicResult:
        if result is sp.true:
            return 1.0
        if result is sp.false:
            return 0.0
        if not isinstance(result, sp.Basic):
            raise SymbolicError(f"Unexpected result type {type(result).__name__}")
        if result.free_symbols:
            return format_symbolic(result)
        if not isinstance(result, sp.Expr):
            raise SymbolicError(f"Result is not a number: {result}")
        value = sp.N(result)
        if value.is_real is not True or value.is_finite is not True:
            raise SymbolicError(f"Result is not a real finite number: {value}")
        return float(value)
