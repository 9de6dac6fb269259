from __future__ import annotations

import pytest

from calcplot.errors import EvalError, ExpressionSyntaxError
from calcplot.parser import BinaryOp, Call, Identifier, NumberLit, Piecewise, UnaryOp, parse_expression


def test_precedence_multiplication_binds_tighter() -> None:
    node = parse_expression("2+3*4")
    assert node == BinaryOp("+", NumberLit(2.0, "2"), BinaryOp("*", NumberLit(3.0, "3"), NumberLit(4.0, "4")))


def test_power_is_right_associative_and_beats_unary_minus() -> None:
    assert parse_expression("2^3^2") == BinaryOp(
        "**", NumberLit(2.0, "2"), BinaryOp("**", NumberLit(3.0, "3"), NumberLit(2.0, "2"))
    )
    assert parse_expression("-2^2") == UnaryOp("-", BinaryOp("**", NumberLit(2.0, "2"), NumberLit(2.0, "2")))


def test_implicit_multiplication() -> None:
    assert parse_expression("2x") == BinaryOp("*", NumberLit(2.0, "2"), Identifier("x"))
    assert parse_expression("2pi") == BinaryOp("*", NumberLit(2.0, "2"), Identifier("pi"))
    node = parse_expression("3(x+1)")
    assert isinstance(node, BinaryOp) and node.op == "*"
    assert parse_expression("2x^2") == BinaryOp(
        "*", NumberLit(2.0, "2"), BinaryOp("**", Identifier("x"), NumberLit(2.0, "2"))
    )


def test_calls_and_arguments() -> None:
    node = parse_expression("atan2(1, 2)")
    assert node == Call("atan2", (NumberLit(1.0, "1"), NumberLit(2.0, "2")))
    assert parse_expression("f()") == Call("f", ())


def test_comparison_and_logic() -> None:
    node = parse_expression("x > 0 and not x > 5 || y")
    assert isinstance(node, BinaryOp) and node.op == "or"
    left = node.left
    assert isinstance(left, BinaryOp) and left.op == "and"
    assert isinstance(left.right, UnaryOp) and left.right.op == "not"


def test_piecewise_pieces_and_default() -> None:
    node = parse_expression("{x<0: -x, else: x}")
    assert isinstance(node, Piecewise)
    assert len(node.pieces) == 2
    condition, value = node.pieces[0]
    assert condition == BinaryOp("<", Identifier("x"), NumberLit(0.0, "0"))
    assert value == UnaryOp("-", Identifier("x"))
    assert node.pieces[1] == (None, Identifier("x"))


@pytest.mark.parametrize("keyword", ["else", "otherwise", "true"])
def test_piecewise_default_keywords(keyword: str) -> None:
    node = parse_expression(f"{{x>1: 1, {keyword}: 2}}")
    assert node.pieces[-1][0] is None


@pytest.mark.parametrize(
    "text",
    ["", "   ", "2+", "(1+2", "1+2)", "sin(1,", "{x: 1, 2}", "2 $ 3", "*3", "{x<0 -x}"],
)
def test_malformed_input_raises_syntax_error(text: str) -> None:
    with pytest.raises(ExpressionSyntaxError):
        parse_expression(text)


def test_syntax_error_is_an_eval_error_with_position() -> None:
    with pytest.raises(EvalError) as info:
        parse_expression("1+2)")
    assert info.value.position == 3


@pytest.mark.parametrize("text", ["(" * 500 + "1" + ")" * 500, "-" * 3000 + "1", "{1: " * 400 + "1" + "}" * 400])
def test_excessive_nesting_is_a_syntax_error(text: str) -> None:
    with pytest.raises(ExpressionSyntaxError, match="nested too deeply"):
        parse_expression(text)
