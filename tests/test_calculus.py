from __future__ import annotations

import math

import numpy as np
import pytest

from calcplot.calculus import (
    CALCULATOR_DERIVATIVE_STEP,
    CALCULATOR_SIMPSON_INTERVALS,
    PLOT_DERIVATIVE_STEP,
    PLOT_SIMPSON_INTERVALS,
    central_difference,
    derivative,
    integral,
    simpson,
    simpson_weights,
)
from calcplot.errors import EvalError
from calcplot.evaluator import Evaluator


def test_documented_constants() -> None:
    assert CALCULATOR_DERIVATIVE_STEP == 1e-5
    assert PLOT_DERIVATIVE_STEP == 1e-4
    assert CALCULATOR_SIMPSON_INTERVALS == 1000
    assert PLOT_SIMPSON_INTERVALS == 100


def test_derivative_of_cube_at_two() -> None:
    ev = Evaluator()
    assert derivative(ev, "x^3", "x", 2) == pytest.approx(12.0, abs=1e-6)


def test_derivative_error_scales_with_h_squared() -> None:
    f = np.exp
    err_big = abs(central_difference(f, 1.0, 1e-2) - math.e)
    err_small = abs(central_difference(f, 1.0, 1e-3) - math.e)
    assert err_big / err_small == pytest.approx(100.0, rel=0.05)


def test_derivative_accepts_expression_points() -> None:
    ev = Evaluator()
    assert derivative(ev, "sin(x)", "x", "pi/3") == pytest.approx(0.5, abs=1e-8)


def test_derivative_uses_evaluator_angle_mode() -> None:
    ev = Evaluator("deg")
    # d/dx sin(x degrees) at 0 is pi/180
    assert derivative(ev, "sin(x)", "x", 0) == pytest.approx(math.pi / 180, rel=1e-6)


def test_integral_of_square_on_unit_interval() -> None:
    ev = Evaluator()
    assert integral(ev, "x^2", "x", 0, 1) == pytest.approx(1 / 3, abs=1e-12)


def test_integral_reversed_and_empty_bounds() -> None:
    ev = Evaluator()
    forward = integral(ev, "x^2", "x", 0, 2)
    assert integral(ev, "x^2", "x", 2, 0) == pytest.approx(-forward)
    assert integral(ev, "x^2", "x", 3, 3) == 0.0


def test_integral_error_scales_with_h_to_the_fourth() -> None:
    err_coarse = abs(simpson(np.exp, 0.0, 1.0, 4) - (math.e - 1))
    err_fine = abs(simpson(np.exp, 0.0, 1.0, 8) - (math.e - 1))
    assert err_coarse / err_fine == pytest.approx(16.0, rel=0.05)


def test_nan_sample_poisons_integral() -> None:
    ev = Evaluator()
    assert math.isnan(integral(ev, "sqrt(x)", "x", -1, 1))


def test_bindings_are_passed_through() -> None:
    ev = Evaluator()
    assert integral(ev, "a*x", "x", 0, 1, bindings={"a": 4}) == pytest.approx(2.0)


def test_simpson_weights_pattern() -> None:
    np.testing.assert_array_equal(simpson_weights(4), [1, 4, 2, 4, 1])
    with pytest.raises(ValueError):
        simpson_weights(5)
    with pytest.raises(ValueError):
        simpson_weights(0)


def test_simpson_accepts_array_bounds() -> None:
    ends = np.array([0.0, 1.0, 2.0])
    result = simpson(lambda t: 2 * t, 0.0, ends, 10)
    np.testing.assert_allclose(result, ends**2)


def test_central_difference_rejects_non_positive_step() -> None:
    with pytest.raises(ValueError):
        central_difference(np.sin, 0.0, 0.0)


def test_wrappers_propagate_evaluation_errors() -> None:
    ev = Evaluator()
    with pytest.raises(EvalError):
        derivative(ev, "x +", "x", 1)
    with pytest.raises(ValueError):
        integral(ev, "x", "x", "not a number", 1)
