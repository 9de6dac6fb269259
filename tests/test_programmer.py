from __future__ import annotations

import pytest

from calcplot.errors import EvalError
from calcplot.programmer import (
    BaseEvaluator,
    evaluate_base,
    format_in_base,
    resolve_radix,
    to_base_strings,
    unsigned_pattern,
)


def test_hex_and() -> None:
    assert evaluate_base("FF AND 0F", "hex") == 15
    assert evaluate_base("ff AND 0f", 16) == 15


def test_not_zero_is_all_ones() -> None:
    value = evaluate_base("NOT 0", "bin")
    assert value == -1
    assert format(unsigned_pattern(value), "b") == "1" * 32


@pytest.mark.parametrize(
    "expression, radix, expected",
    [
        ("1010 OR 0101", 2, 15),
        ("1100 XOR 1010", 2, 6),
        ("1 << 4", 10, 16),
        ("256 >> 4", 10, 16),
        ("17 + 5", 8, 0o17 + 5),
        ("A - F", 16, -5),
        ("6 * 7", 10, 42),
        ("7 / 2", 10, 3),
        ("-7 / 2", 10, -4),
        ("12", 10, 12),
    ],
)
def test_operators(expression: str, radix: int, expected: int) -> None:
    assert evaluate_base(expression, radix) == expected


def test_first_operator_in_scan_order_wins() -> None:
    # "AND" is looked for before "+", so the right operand "1 + 1" is invalid.
    assert evaluate_base("3 AND 1 + 1", 10) == 0


def test_bitwise_ops_wrap_to_32_bits() -> None:
    assert evaluate_base("1 << 31", 10) == -(2**31)
    assert evaluate_base("1 << 32", 10) == 1
    assert evaluate_base("FFFFFFFF AND FFFFFFFF", 16) == -1


@pytest.mark.parametrize("expression", ["", "2 +", "12 AND", "9 + 1", "NOT "])
def test_invalid_input_gives_zero(expression: str) -> None:
    assert evaluate_base(expression, 8) == 0


def test_division_by_zero_raises() -> None:
    with pytest.raises(EvalError):
        evaluate_base("1 / 0", 10)


def test_format_and_display_strings() -> None:
    assert format_in_base(255, "hex") == "FF"
    assert format_in_base(-10, 2) == "-1010"
    assert to_base_strings(255) == {"hex": "FF", "dec": "255", "oct": "377", "bin": "11111111"}


def test_resolve_radix() -> None:
    assert resolve_radix("HEX") == 16
    assert resolve_radix(8) == 8
    with pytest.raises(ValueError):
        resolve_radix(3)
    with pytest.raises(ValueError):
        resolve_radix("base64")


def test_base_evaluator_switches_radix() -> None:
    calc = BaseEvaluator("hex")
    assert calc.evaluate("F + 1") == 16
    assert calc.set_radix("bin", "F + 1") == "10000"
    assert calc.radix == 2
    assert calc.set_radix("dec", "") == ""
    assert calc.radix == 10


@pytest.mark.parametrize("text", ["1G", "1G AND 1", "12 + 3Z"])
def test_operands_with_trailing_invalid_digits_read_as_zero(text: str) -> None:
    assert evaluate_base(text, "hex") == 0
