from __future__ import annotations

import math
from importlib import import_module

import numpy as np
import pytest

from calcplot.evaluator import Evaluator

InputConvert = import_module("calcplot.InputConvert").InputConvert


def test_numbers_and_numeric_strings() -> None:
    assert InputConvert(3) == 3.0
    assert InputConvert(" 2.5 ") == 2.5
    assert InputConvert(np.float64(1.25)) == 1.25
    assert InputConvert("7", int) == 7


def test_expression_strings_are_evaluated() -> None:
    assert InputConvert("-2pi") == pytest.approx(-2 * math.pi)
    assert InputConvert("sqrt(2)/2") == pytest.approx(math.sqrt(2) / 2)


def test_expression_uses_given_evaluator_angle_mode() -> None:
    assert InputConvert("sin(30)", evaluator=Evaluator("deg")) == pytest.approx(0.5)


def test_int_truncation_rules() -> None:
    assert InputConvert(3.9, int) == 3
    assert InputConvert(3.0, int, truncate=False) == 3
    with pytest.raises(ValueError):
        InputConvert(3.1, int, truncate=False)
    with pytest.raises(ValueError):
        InputConvert("1/0", int)


@pytest.mark.parametrize("value", ["", "abc", "2+", None, [1, 2]])
def test_invalid_values_raise_value_error(value) -> None:
    with pytest.raises(ValueError):
        InputConvert(value)


def test_unsupported_destination_type() -> None:
    with pytest.raises(NotImplementedError):
        InputConvert(1, complex)
