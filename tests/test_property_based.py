"""Property-based checks for the evaluator, normalizer, and coordinate maps.

These complement the example-based tests with randomized inputs drawn from
the calculator vocabulary.
"""

from __future__ import annotations

import math

import pytest

from calcplot.calculus import integral
from calcplot.evaluator import Evaluator
from calcplot.normalize import normalize
from calcplot.view import ViewWindow

try:
    from hypothesis import given
    from hypothesis import strategies as st
except ModuleNotFoundError:  # pragma: no cover - environment-specific fallback
    pytest.skip("hypothesis is required for property-based tests", allow_module_level=True)


# Keep squares away from overflow so failures indicate semantic mismatches.
SAFE_FLOATS = st.floats(min_value=-1e150, max_value=1e150, allow_nan=False, allow_infinity=False)
SMALL_FLOATS = st.floats(min_value=-1e3, max_value=1e3, allow_nan=False, allow_infinity=False)

_VOCABULARY = [
    "x", "2", "3.5", "e", "π", "pi", "+", "-", "−", "*", "×", "/", "÷", "^", "²", "³", "!", "√",
    "(", ")", "{", "}", ",", ":", " ", "<", "=", "≤", "≠", "sin", "log", "logbase", "antilog",
    "ln", "deriv", "integ", "else", "and", "not", "$",
]
EXPRESSIONS = st.lists(st.sampled_from(_VOCABULARY), max_size=12).map("".join)

_EV = Evaluator()


@given(x=SAFE_FLOATS)
def test_square_matches_multiplication(x: float) -> None:
    assert _EV.evaluate("x^2", {"x": x}) == pytest.approx(x * x, rel=1e-12)


@given(x=SMALL_FLOATS)
def test_piecewise_absolute_value_matches_abs(x: float) -> None:
    assert _EV.evaluate("{x<0: -x, else: x}", {"x": x}) == abs(x)


@given(text=EXPRESSIONS)
def test_normalize_is_idempotent(text: str) -> None:
    once = normalize(text)
    assert normalize(once) == once


@given(a=SMALL_FLOATS, b=SMALL_FLOATS)
def test_reversing_integral_bounds_negates(a: float, b: float) -> None:
    forward = integral(_EV, "x^2", "x", a, b, intervals=10)
    backward = integral(_EV, "x^2", "x", b, a, intervals=10)
    assert forward == pytest.approx(-backward, rel=1e-9, abs=1e-9)
    assert forward == pytest.approx((b**3 - a**3) / 3, rel=1e-9, abs=1e-6)


@given(px=st.floats(min_value=0, max_value=400), py=st.floats(min_value=0, max_value=400))
def test_screen_world_maps_are_inverse(px: float, py: float) -> None:
    window = ViewWindow(-7, 3, -2, 9, 400)
    assert float(window.world_to_screen_x(window.screen_to_world_x(px))) == pytest.approx(px, abs=1e-9)
    assert float(window.world_to_screen_y(window.screen_to_world_y(py))) == pytest.approx(py, abs=1e-9)
    assert math.isfinite(float(window.screen_to_world_y(py)))
