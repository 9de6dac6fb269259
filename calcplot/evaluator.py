"""Sandboxed expression evaluator.

Purpose
-------
Evaluate calculator expressions to numbers. Text is normalized
(:mod:`calcplot.normalize`), parsed into an AST (:mod:`calcplot.parser`) and
walked over a fixed function table. Nothing is compiled to Python source and
nothing outside the table or the caller's bindings can be reached.

Concepts
--------
- **Bindings** map variable names to numbers or NumPy arrays. Arrays are
  broadcast, so one walk samples a whole curve; per-element semantics are the
  same as the scalar walk.
- **Domain errors** follow IEEE-754. All arithmetic runs on ``float64`` with
  NumPy warnings silenced, so ``sqrt(-1)`` is NaN and ``1/0`` is ``inf``.
  Only malformed text and unknown names raise.
- **Angle mode** is evaluator configuration. In ``"deg"`` mode forward trig
  inputs are scaled by ``pi/180`` and inverse trig outputs by ``180/pi``.

Examples
--------
>>> ev = Evaluator()
>>> ev.evaluate("2+3*4")
14.0
>>> ev.evaluate("sin(90)", angle_mode="deg")
1.0
>>> ev.evaluate("{x<0: -x, else: x}", {"x": -5})
5.0

Logging
-------
Skipped piecewise conditions are logged at DEBUG on this module's logger.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Mapping, Optional

import numpy as np

from .calculus import central_difference, simpson
from .config import (
    ANGLE_MODES,
    CALCULATOR_DERIVATIVE_STEP,
    CALCULATOR_SIMPSON_INTERVALS,
    EvaluatorConfig,
)
from .errors import EvalError, ExpressionSyntaxError, NonFiniteResultError, UnknownIdentifierError
from .parser import (
    NESTED_TOO_DEEPLY,
    BinaryOp,
    Call,
    Identifier,
    Node,
    NumberLit,
    Piecewise,
    UnaryOp,
    parse_expression,
)

__all__ = ["Evaluator", "FUNCTIONS", "CONSTANTS", "validate_angle_mode"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Bindings = Mapping[str, Any]

_DEG = math.pi / 180.0
_RAD = 180.0 / math.pi


def _round_half_up(x: Any) -> Any:
    return np.floor(np.asarray(x, dtype=float) + 0.5)


def _factorial_scalar(n: float) -> float:
    if math.isnan(n) or n < 0:
        return math.nan
    if n > 170:
        return math.inf
    if float(n).is_integer():
        return float(math.factorial(int(n)))
    return math.gamma(n + 1.0)


_factorial = np.vectorize(_factorial_scalar, otypes=[float])

# name -> (callable, min_args, max_args)
FUNCTIONS: dict[str, tuple[Callable[..., Any], int, int]] = {
    "sinh": (np.sinh, 1, 1),
    "cosh": (np.cosh, 1, 1),
    "tanh": (np.tanh, 1, 1),
    "asinh": (np.arcsinh, 1, 1),
    "acosh": (np.arccosh, 1, 1),
    "atanh": (np.arctanh, 1, 1),
    "sqrt": (np.sqrt, 1, 1),
    "cbrt": (np.cbrt, 1, 1),
    "abs": (np.abs, 1, 1),
    "floor": (np.floor, 1, 1),
    "ceil": (np.ceil, 1, 1),
    "round": (_round_half_up, 1, 1),
    "sign": (np.sign, 1, 1),
    "exp": (np.exp, 1, 1),
    "ln": (np.log, 1, 1),
    "log10": (np.log10, 1, 1),
    "log2": (np.log2, 1, 1),
    "factorial": (_factorial, 1, 1),
}
_FORWARD_TRIG: dict[str, Callable[[Any], Any]] = {"sin": np.sin, "cos": np.cos, "tan": np.tan}
_INVERSE_TRIG: dict[str, Callable[[Any], Any]] = {
    "asin": np.arcsin,
    "acos": np.arccos,
    "atan": np.arctan,
}
_VARIADIC: dict[str, Callable[[Any, Any], Any]] = {"min": np.minimum, "max": np.maximum}
_SYMBOLIC_ONLY = frozenset({"diff", "integrate"})

CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}

_ARITHMETIC: dict[str, Callable[[Any, Any], Any]] = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.divide,
    "%": np.fmod,
    "**": np.power,
}
_COMPARE: dict[str, Callable[[Any, Any], Any]] = {
    "<": np.less,
    "<=": np.less_equal,
    ">": np.greater,
    ">=": np.greater_equal,
    "==": np.equal,
    "!=": np.not_equal,
}


def validate_angle_mode(mode: str) -> str:
    """Return ``mode`` lower-cased, or raise ``ValueError``."""
    value = str(mode).lower()
    if value not in ANGLE_MODES:
        raise ValueError(f"angle_mode must be one of {ANGLE_MODES}, got {mode!r}")
    return value


def _truthy(value: Any) -> np.ndarray:
    arr = np.asarray(value, dtype=float)
    return (arr != 0) & ~np.isnan(arr)


def _as_float(value: Any) -> np.ndarray:
    return np.asarray(value, dtype=float)


class Evaluator:
    """Evaluate canonical or user-notation expressions to ``float64`` values.

    Parameters
    ----------
    angle_mode : str, default="rad"
        ``"rad"`` or ``"deg"``.
    derivative_step : float, default=1e-5
        Step ``h`` used by ``nderiv`` calls inside expressions.
    integration_intervals : int, default=1000
        Simpson subintervals used by ``nintegrate`` calls inside expressions.
    """

    def __init__(
        self,
        angle_mode: str = "rad",
        *,
        derivative_step: float = CALCULATOR_DERIVATIVE_STEP,
        integration_intervals: int = CALCULATOR_SIMPSON_INTERVALS,
    ) -> None:
        self._angle_mode = validate_angle_mode(angle_mode)
        if not derivative_step > 0:
            raise ValueError("derivative_step must be > 0")
        if integration_intervals <= 0 or integration_intervals % 2:
            raise ValueError("integration_intervals must be a positive even integer")
        self.derivative_step = float(derivative_step)
        self.integration_intervals = int(integration_intervals)

    @classmethod
    def from_config(cls, config: EvaluatorConfig) -> "Evaluator":
        """Build an evaluator from an :class:`EvaluatorConfig`."""
        return cls(
            config.angle_mode,
            derivative_step=config.derivative_step,
            integration_intervals=config.integration_intervals,
        )

    @property
    def angle_mode(self) -> str:
        """Current angle mode, ``"rad"`` or ``"deg"``."""
        return self._angle_mode

    @angle_mode.setter
    def angle_mode(self, value: str) -> None:
        self._angle_mode = validate_angle_mode(value)

    # -- public API -----------------------------------------------------

    @staticmethod
    def compile(text: str) -> Node:
        """Normalize and parse ``text``; raises :class:`ExpressionSyntaxError`."""
        return parse_expression(text)

    def evaluate(
        self,
        text: str,
        bindings: Optional[Bindings] = None,
        *,
        angle_mode: Optional[str] = None,
        require_finite: bool = False,
    ) -> float:
        """Evaluate ``text`` with scalar ``bindings`` and return a float.

        Parameters
        ----------
        text : str
            Expression in user or canonical notation.
        bindings : mapping, optional
            Variable values, e.g. ``{"x": 2.0}``.
        angle_mode : str, optional
            Overrides the evaluator's angle mode for this call only.
        require_finite : bool, default=False
            Raise :class:`NonFiniteResultError` instead of returning NaN/inf.

        Raises
        ------
        ExpressionSyntaxError
            Malformed text, unbalanced brackets, or wrong argument count.
        UnknownIdentifierError
            Unbound variable or unknown function.
        NonFiniteResultError
            Non-finite result while ``require_finite`` is set.
        """
        return self.evaluate_parsed(
            self.compile(text), bindings, angle_mode=angle_mode, require_finite=require_finite
        )

    def evaluate_parsed(
        self,
        node: Node,
        bindings: Optional[Bindings] = None,
        *,
        angle_mode: Optional[str] = None,
        require_finite: bool = False,
    ) -> float:
        """Scalar counterpart of :meth:`evaluate_node`; see :meth:`evaluate`."""
        value = self.evaluate_node(node, bindings, angle_mode=angle_mode)
        return self._to_scalar(value, require_finite=require_finite)

    def evaluate_array(
        self,
        text: str,
        bindings: Optional[Bindings] = None,
        *,
        angle_mode: Optional[str] = None,
    ) -> np.ndarray:
        """Evaluate ``text`` element-wise over array ``bindings``.

        The result always has the broadcast shape of the binding values, even
        for expressions that do not mention any variable.
        """
        return self.broadcast(
            self.evaluate_node(self.compile(text), bindings, angle_mode=angle_mode),
            bindings,
        )

    def evaluate_node(
        self,
        node: Node,
        bindings: Optional[Bindings] = None,
        *,
        angle_mode: Optional[str] = None,
    ) -> Any:
        """Walk an already parsed tree; returns a ``float64`` scalar or array."""
        mode = self._angle_mode if angle_mode is None else validate_angle_mode(angle_mode)
        env = self._prepare_bindings(bindings)
        try:
            with np.errstate(all="ignore"):
                return self._eval(node, env, mode)
        except RecursionError:
            raise ExpressionSyntaxError(NESTED_TOO_DEEPLY) from None

    @staticmethod
    def broadcast(value: Any, bindings: Optional[Bindings]) -> np.ndarray:
        """Broadcast ``value`` to the common shape of ``bindings``."""
        shapes = [np.shape(v) for v in (bindings or {}).values()]
        shape = np.broadcast_shapes(*shapes) if shapes else ()
        return np.array(np.broadcast_to(_as_float(value), shape), dtype=float)

    # -- internals ------------------------------------------------------

    @staticmethod
    def _to_scalar(value: Any, *, require_finite: bool) -> float:
        arr = _as_float(value)
        if arr.ndim != 0:
            raise EvalError("Expression did not reduce to a single number")
        result = float(arr)
        if require_finite and not math.isfinite(result):
            raise NonFiniteResultError(f"Result is not finite: {result}")
        return result

    @staticmethod
    def _prepare_bindings(bindings: Optional[Bindings]) -> dict[str, Any]:
        env: dict[str, Any] = {}
        for name, value in (bindings or {}).items():
            try:
                env[str(name)] = _as_float(value)
            except (TypeError, ValueError) as exc:
                raise EvalError(f"Binding {name!r} is not numeric: {value!r}") from exc
        return env

    def _eval(self, node: Node, env: dict[str, Any], mode: str) -> Any:
        if isinstance(node, NumberLit):
            return np.float64(node.value)
        if isinstance(node, Identifier):
            return self._lookup(node.name, env)
        if isinstance(node, UnaryOp):
            operand = self._eval(node.operand, env, mode)
            if node.op == "-":
                return np.negative(operand)
            if node.op == "+":
                return _as_float(operand)
            if node.op == "not":
                return (~_truthy(operand)).astype(float)
            raise ExpressionSyntaxError(f"Unknown unary operator {node.op!r}")
        if isinstance(node, BinaryOp):
            return self._binary(node, env, mode)
        if isinstance(node, Call):
            return self._call(node, env, mode)
        if isinstance(node, Piecewise):
            return self._piecewise(node, env, mode)
        raise EvalError(f"Unsupported expression node: {type(node).__name__}")

    @staticmethod
    def _lookup(name: str, env: dict[str, Any]) -> Any:
        if name in env:
            return env[name]
        if name in CONSTANTS:
            return np.float64(CONSTANTS[name])
        raise UnknownIdentifierError(name, "variable")

    def _binary(self, node: BinaryOp, env: dict[str, Any], mode: str) -> Any:
        left = self._eval(node.left, env, mode)
        right = self._eval(node.right, env, mode)
        if node.op in _ARITHMETIC:
            return _ARITHMETIC[node.op](_as_float(left), _as_float(right))
        if node.op in _COMPARE:
            return _COMPARE[node.op](left, right).astype(float)
        if node.op == "and":
            return (_truthy(left) & _truthy(right)).astype(float)
        if node.op == "or":
            return (_truthy(left) | _truthy(right)).astype(float)
        raise ExpressionSyntaxError(f"Unknown operator {node.op!r}")

    @staticmethod
    def _check_arity(node: Call, low: int, high: Optional[int]) -> None:
        count = len(node.args)
        if count < low or (high is not None and count > high):
            expected = str(low) if low == high else (f"at least {low}" if high is None else f"{low}-{high}")
            raise ExpressionSyntaxError(
                f"{node.name}() takes {expected} argument(s), got {count}"
            )

    def _call(self, node: Call, env: dict[str, Any], mode: str) -> Any:
        name = node.name
        if name == "nderiv":
            return self._nderiv(node, env, mode)
        if name == "nintegrate":
            return self._nintegrate(node, env, mode)
        if name in _SYMBOLIC_ONLY:
            raise EvalError(f"{name}() needs the symbolic engine")
        if name in _FORWARD_TRIG:
            self._check_arity(node, 1, 1)
            arg = _as_float(self._eval(node.args[0], env, mode))
            return _FORWARD_TRIG[name](arg * _DEG if mode == "deg" else arg)
        if name in _INVERSE_TRIG or name == "atan2":
            if name == "atan2":
                self._check_arity(node, 2, 2)
                y, x = (_as_float(self._eval(a, env, mode)) for a in node.args)
                out = np.arctan2(y, x)
            else:
                self._check_arity(node, 1, 1)
                out = _INVERSE_TRIG[name](_as_float(self._eval(node.args[0], env, mode)))
            return out * _RAD if mode == "deg" else out
        if name in _VARIADIC:
            self._check_arity(node, 1, None)
            values = [_as_float(self._eval(a, env, mode)) for a in node.args]
            result = values[0]
            for value in values[1:]:
                result = _VARIADIC[name](result, value)
            return result
        if name in FUNCTIONS:
            func, low, high = FUNCTIONS[name]
            self._check_arity(node, low, high)
            args = [_as_float(self._eval(a, env, mode)) for a in node.args]
            return func(*args)
        raise UnknownIdentifierError(name, "function")

    def _bound_variable(self, node: Call) -> str:
        var = node.args[1]
        if not isinstance(var, Identifier):
            raise ExpressionSyntaxError(f"{node.name}() expects a variable name as its second argument")
        return var.name

    def _nderiv(self, node: Call, env: dict[str, Any], mode: str) -> Any:
        self._check_arity(node, 3, 3)
        body, _, at = node.args
        var = self._bound_variable(node)
        point = self._eval(at, env, mode)

        def f(value: Any) -> Any:
            return self._eval(body, {**env, var: value}, mode)

        return central_difference(f, point, self.derivative_step)

    def _nintegrate(self, node: Call, env: dict[str, Any], mode: str) -> Any:
        self._check_arity(node, 4, 4)
        body, _, lo, hi = node.args
        var = self._bound_variable(node)
        start = self._eval(lo, env, mode)
        end = self._eval(hi, env, mode)

        def f(value: Any) -> Any:
            return self._eval(body, {**env, var: value}, mode)

        return simpson(f, start, end, self.integration_intervals)

    def _piecewise(self, node: Piecewise, env: dict[str, Any], mode: str) -> Any:
        shapes = [np.shape(v) for v in env.values()]
        shape = np.broadcast_shapes(*shapes) if shapes else ()
        result = np.full(shape, np.nan)
        pending = np.ones(shape, dtype=bool)
        for condition, value in node.pieces:
            if condition is None:
                hit = pending
            else:
                try:
                    cond = self._eval(condition, env, mode)
                except EvalError as exc:
                    logger.debug("Skipping piecewise condition that failed to evaluate: %s", exc)
                    continue
                hit = pending & _truthy(cond)
            if not hit.any():
                continue
            result = np.where(hit, _as_float(self._eval(value, env, mode)), result)
            pending = pending & ~hit
            if not pending.any():
                break
        return result
