from __future__ import annotations

import pytest

from calcplot.normalize import normalize
from calcplot.tokenizer import IDENT, NUMBER, UNKNOWN, render_tokens, split_top_level, tokenize


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2×3", "2*3"),
        ("6÷2", "6/2"),
        ("5−1", "5-1"),
        ("2·π", "2*pi"),
        ("x^2", "x**2"),
        ("x²+x³", "x**2+x**3"),
        ("x≤1", "x<=1"),
        ("x≥1", "x>=1"),
        ("x≠1", "x!=1"),
        ("√(2)", "sqrt(2)"),
        ("√9", "sqrt(9)"),
        ("√x+1", "sqrt(x)+1"),
        ("√√16", "sqrt(sqrt(16))"),
    ],
)
def test_glyphs_map_to_ascii_operators(text: str, expected: str) -> None:
    assert normalize(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("ln(5)", "ln(5)"),
        ("log(100)", "log10(100)"),
        ("log(8, 2)", "(ln(8)/ln(2))"),
        ("logbase(8, 2)", "(ln(8)/ln(2))"),
        ("antilog(2)", "(10**(2))"),
        ("antilog(3, 2)", "((2)**(3))"),
    ],
)
def test_logarithm_forms(text: str, expected: str) -> None:
    assert normalize(text) == expected


def test_log_names_are_matched_as_whole_tokens() -> None:
    assert normalize("logbase(x, 3)") == "(ln(x)/ln(3))"
    assert "log10" not in normalize("antilog(2)")
    assert normalize("catalog") == "catalog"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("5!", "factorial(5)"),
        ("n!", "factorial(n)"),
        ("(2+1)!", "factorial((2+1))"),
        ("sqrt(4)!", "factorial(sqrt(4))"),
        ("3!+1", "factorial(3)+1"),
    ],
)
def test_postfix_factorial(text: str, expected: str) -> None:
    assert normalize(text) == expected


def test_not_equal_is_not_a_factorial() -> None:
    assert normalize("x!=1") == "x!=1"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("deriv(x^3, x, 2)", "nderiv(x**3, x, 2)"),
        ("deriv(x^3, x)", "diff(x**3, x)"),
        ("deriv(x^3)", "diff(x**3, x)"),
        ("integ(x^2, x, 0, 1)", "nintegrate(x**2, x, 0, 1)"),
        ("integ(x^2, x)", "integrate(x**2, x)"),
        ("integ(x^2)", "integrate(x**2, x)"),
    ],
)
def test_calculus_call_forms(text: str, expected: str) -> None:
    assert normalize(text) == expected


def test_nested_calls_are_rewritten() -> None:
    assert normalize("log(log(100))") == "log10(log10(100))"


def test_euler_constant_is_not_taken_from_numeric_exponent() -> None:
    tokens = tokenize("2e5+e")
    assert [t.kind for t in tokens] == [NUMBER, "OP", IDENT]
    assert tokens[0].text == "2e5"
    assert normalize("2e") == "2 e"


def test_unknown_notation_passes_through() -> None:
    assert normalize("foo(1)") == "foo(1)"
    assert normalize("") == ""
    tokens = tokenize("2 $ 3")
    assert tokens[1].kind == UNKNOWN
    assert normalize("2 $ 3") == "2$3"


def test_unbalanced_text_does_not_raise() -> None:
    assert normalize("log(2") == "log(2"
    assert normalize("5)!") == "5)!"


@pytest.mark.parametrize(
    "text",
    [
        "2×π",
        "log(8, 2)+antilog(2)",
        "deriv(x^3, x, 2)",
        "{x<0: -x, else: x}",
        "√√16",
        "5!!",
        "2e",
        "sin(x)^2 + cos(x)^2",
    ],
)
def test_normalize_is_idempotent(text: str) -> None:
    once = normalize(text)
    assert normalize(once) == once


def test_render_round_trip_keeps_token_stream() -> None:
    tokens = tokenize("x ** -2 <= 3 and y")
    again = tokenize(render_tokens(tokens))
    assert [t.text for t in again] == [t.text for t in tokens]


def test_split_top_level_ignores_nested_commas() -> None:
    parts = split_top_level(tokenize("f(a, b), {x: 1, else: 2}, c"))
    assert [render_tokens(p) for p in parts] == ["f(a, b)", "{x: 1, else: 2}", "c"]
    assert split_top_level([]) == []
