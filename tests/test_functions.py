from __future__ import annotations

import pytest

from calcplot.config import PALETTE
from calcplot.functions import FunctionHandle, FunctionSlots, GraphMode, normalize_color


def test_palette_cycles_by_slot_index() -> None:
    slots = FunctionSlots()
    handles = [slots.add(f"x+{i}") for i in range(len(PALETTE) + 1)]
    assert [slots[h].color for h in handles[: len(PALETTE)]] == list(PALETTE)
    assert slots[handles[-1]].color == PALETTE[0]


def test_remove_disables_but_keeps_slot() -> None:
    slots = FunctionSlots()
    a = slots.add("sin(x)")
    b = slots.add("cos(x)")
    slots.remove(a)
    assert len(slots) == 2
    assert slots[a].enabled is False
    assert slots[a].expression == "sin(x)"
    c = slots.add("tan(x)")
    assert c != a
    assert c.slot == 2
    assert [h for h, _ in slots.enabled()] == [b, c]


def test_enabled_skips_blank_expressions() -> None:
    slots = FunctionSlots()
    slots.add("")
    h = slots.add("  x ")
    assert [handle for handle, _ in slots.enabled()] == [h]


def test_setters_replace_definition() -> None:
    slots = FunctionSlots()
    h = slots.add("x")
    slots.set_expression(h, "x^2")
    slots.set_color(h, (255, 0, 16))
    slots.set_mode(h, "polar")
    definition = slots[h]
    assert definition.expression == "x^2"
    assert definition.color == "#ff0010"
    assert definition.mode is GraphMode.POLAR


def test_add_with_explicit_color_and_mode() -> None:
    slots = FunctionSlots()
    h = slots.add("t, t", color="#ABC", mode=GraphMode.PARAMETRIC)
    assert slots[h].color == "#aabbcc"
    assert slots[h].mode is GraphMode.PARAMETRIC


def test_unknown_handles_and_bad_values() -> None:
    slots = FunctionSlots()
    with pytest.raises(KeyError):
        slots[FunctionHandle(0)]
    h = slots.add("x")
    with pytest.raises(ValueError):
        slots.set_mode(h, "spiral")
    with pytest.raises(ValueError):
        slots.set_color(h, "blue-ish")
    with pytest.raises(ValueError):
        FunctionSlots(palette=())


@pytest.mark.parametrize(
    "value, expected",
    [("#6366F1", "#6366f1"), ("6366f1", "#6366f1"), ("#fff", "#ffffff"), ((0, 128, 255), "#0080ff")],
)
def test_normalize_color(value, expected: str) -> None:
    assert normalize_color(value) == expected
