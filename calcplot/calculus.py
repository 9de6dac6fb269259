"""Numeric differentiation and integration over the expression evaluator.

The primitives (:func:`central_difference`, :func:`simpson`) take any
callable, scalar or NumPy-vectorized. The wrappers (:func:`derivative`,
:func:`integral`) evaluate an expression string through an
:class:`~calcplot.evaluator.Evaluator`.

Step sizes
----------
``CALCULATOR_DERIVATIVE_STEP = 1e-5`` is used for one-off calculator
derivatives. ``PLOT_DERIVATIVE_STEP = 1e-4`` is used when a whole curve is
differentiated: the larger step loses some truncation accuracy but is less
exposed to cancellation near steep regions. Simpson uses 1000 subintervals
for the calculator and 100 for plots. Every loop here has a fixed trip count.

Failure semantics
-----------------
A sample that evaluates to NaN is not repaired: it propagates into the
derivative or poisons the Simpson sum.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

import numpy as np

from .config import (
    CALCULATOR_DERIVATIVE_STEP,
    CALCULATOR_SIMPSON_INTERVALS,
    PLOT_DERIVATIVE_STEP,
    PLOT_SIMPSON_INTERVALS,
)
from .InputConvert import InputConvert

if TYPE_CHECKING:
    from .evaluator import Evaluator

__all__ = [
    "CALCULATOR_DERIVATIVE_STEP",
    "PLOT_DERIVATIVE_STEP",
    "CALCULATOR_SIMPSON_INTERVALS",
    "PLOT_SIMPSON_INTERVALS",
    "central_difference",
    "simpson",
    "simpson_weights",
    "derivative",
    "integral",
]

ArrayFunc = Callable[[Any], Any]


def central_difference(f: ArrayFunc, at: Any, h: float) -> Any:
    """Return ``(f(at + h) - f(at - h)) / (2h)``."""
    if not h > 0:
        raise ValueError("h must be > 0")
    at = np.asarray(at, dtype=float)
    with np.errstate(all="ignore"):
        return (np.asarray(f(at + h), dtype=float) - np.asarray(f(at - h), dtype=float)) / (2.0 * h)


def simpson_weights(intervals: int) -> np.ndarray:
    """Return composite Simpson weights ``1, 4, 2, 4, ..., 2, 4, 1``."""
    if intervals <= 0 or intervals % 2:
        raise ValueError("Simpson's rule needs a positive, even number of intervals")
    weights = np.full(intervals + 1, 2.0)
    weights[1::2] = 4.0
    weights[0] = weights[-1] = 1.0
    return weights


def simpson(f: ArrayFunc, start: Any, end: Any, intervals: int) -> Any:
    """Integrate ``f`` from ``start`` to ``end`` with composite Simpson's rule.

    ``start`` and ``end`` may be arrays (one integral per element). The step
    ``h = (end - start) / intervals`` carries the sign, so reversed bounds
    give the negated integral; equal bounds give exactly 0.
    """
    weights = simpson_weights(intervals)
    start = np.asarray(start, dtype=float)
    end = np.asarray(end, dtype=float)
    h = (end - start) / intervals
    total = np.zeros(np.broadcast_shapes(start.shape, end.shape))
    with np.errstate(all="ignore"):
        for i, weight in enumerate(weights):
            total = total + weight * np.asarray(f(start + i * h), dtype=float)
        result = (h / 3.0) * total
    return np.where(start == end, 0.0, result)


def _bound(evaluator: "Evaluator", expression: str, var: str, bindings: Optional[Mapping[str, Any]]):
    node = evaluator.compile(expression)
    base = dict(bindings or {})

    def f(value: Any) -> Any:
        return evaluator.evaluate_node(node, {**base, var: value})

    return f


def derivative(
    evaluator: "Evaluator",
    expression: str,
    var: str,
    at: Any,
    *,
    step: float = CALCULATOR_DERIVATIVE_STEP,
    bindings: Optional[Mapping[str, Any]] = None,
) -> float:
    """Numeric derivative of ``expression`` with respect to ``var`` at ``at``.

    Parameters
    ----------
    evaluator : Evaluator
        Evaluator used for each point sample (and its angle mode).
    expression : str
        Expression text in user or canonical notation.
    var : str
        Variable to differentiate with respect to.
    at : float or str
        Evaluation point; strings such as ``"pi/4"`` are accepted.
    step : float, default=1e-5
        Central-difference step ``h``.
    bindings : mapping, optional
        Values for any other free variables.

    Raises
    ------
    EvalError
        If the expression cannot be evaluated.
    """
    point = InputConvert(at, float, evaluator=evaluator)
    f = _bound(evaluator, expression, var, bindings)
    return float(central_difference(f, point, step))


def integral(
    evaluator: "Evaluator",
    expression: str,
    var: str,
    start: Any,
    end: Any,
    *,
    intervals: int = CALCULATOR_SIMPSON_INTERVALS,
    bindings: Optional[Mapping[str, Any]] = None,
) -> float:
    """Definite integral of ``expression`` over ``var`` from ``start`` to ``end``."""
    lo = InputConvert(start, float, evaluator=evaluator)
    hi = InputConvert(end, float, evaluator=evaluator)
    f = _bound(evaluator, expression, var, bindings)
    return float(simpson(f, lo, hi, intervals))
