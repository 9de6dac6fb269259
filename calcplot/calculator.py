"""Calculation-mode facade.

Purpose
-------
``Calculator`` is what a calculator UI talks to: it takes the raw text from
the display, returns the text to show, and keeps the history.

Pipeline
--------
1. Parse (normalize + parse). Malformed input displays ``"Error"``.
2. Ask the symbolic engine first. A closed form (``deriv(x^3)`` ->
   ``3*x^2``) is shown as text; an exact number is formatted.
3. If the symbolic engine is disabled or raises :class:`SymbolicError`,
   evaluate numerically. Domain errors come back as NaN/inf and are
   formatted as ``"Error"``/``"Infinity"``.

Neither step's exceptions reach the caller of :meth:`Calculator.calculate`.

Examples
--------
>>> calc = Calculator()
>>> calc.calculate("2+3*4")
'14'
>>> calc.calculate("deriv(x^3)")
'3*x^2'
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from .errors import EvalError, SymbolicError
from .evaluator import Evaluator
from .formatting import ERROR_TEXT, format_result
from .history import History
from .symbolic import SymbolicEngine

__all__ = ["Calculator"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class Calculator:
    """Evaluate display text with symbolic-first, numeric-fallback semantics.

    Parameters
    ----------
    evaluator : Evaluator, optional
        Numeric evaluator; owns the angle mode. Shared with other
        collaborators when passed in.
    symbolic : SymbolicEngine, optional
        Symbolic engine consulted first. Created when omitted.
    use_symbolic : bool, default=True
        Set to ``False`` to skip the symbolic engine entirely.
    history : History, optional
        Destination for calculation records.
    """

    def __init__(
        self,
        evaluator: Optional[Evaluator] = None,
        *,
        symbolic: Optional[SymbolicEngine] = None,
        use_symbolic: bool = True,
        history: Optional[History] = None,
    ) -> None:
        self.evaluator = evaluator if evaluator is not None else Evaluator()
        if use_symbolic:
            self.symbolic: Optional[SymbolicEngine] = symbolic if symbolic is not None else SymbolicEngine()
        else:
            self.symbolic = None
        self.history = history if history is not None else History()
        self.result = "0"

    @property
    def angle_mode(self) -> str:
        return self.evaluator.angle_mode

    @angle_mode.setter
    def angle_mode(self, value: str) -> None:
        self.evaluator.angle_mode = value

    def toggle_angle_mode(self) -> str:
        """Switch between radians and degrees; returns the new mode."""
        self.angle_mode = "deg" if self.angle_mode == "rad" else "rad"
        return self.angle_mode

    def evaluate(self, text: str) -> Union[float, str]:
        """Return the raw result: a float, or symbolic text.

        Raises
        ------
        EvalError
            If the text does not parse or the numeric fallback fails.
        """
        node = self.evaluator.compile(text)
        if self.symbolic is not None:
            try:
                return self.symbolic.evaluate_node(node, angle_mode=self.angle_mode)
            except SymbolicError as exc:
                logger.debug("Symbolic evaluation of %r failed, using numeric path: %s", text, exc)
        return self.evaluator.evaluate_parsed(node)

    def calculate(self, text: str) -> str:
        """Evaluate display text and return the string to show.

        Empty input leaves the display at its current value and records
        nothing. Every other input, including failures, is recorded in the
        history.
        """
        if not text or not text.strip():
            return self.result
        try:
            value = self.evaluate(text)
        except EvalError as exc:
            logger.debug("Calculation of %r failed: %s", text, exc)
            result = ERROR_TEXT
        else:
            result = value if isinstance(value, str) else format_result(value)
        self.history.add(text, result)
        self.result = result
        return result
