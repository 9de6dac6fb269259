"""Plotted-function slots addressed by stable handles.

Functions are stored in an append-only arena. A slot is never reused:
removing a function only clears its ``enabled`` flag, so a handle held by an
editor or list row keeps pointing at the same function for the whole
session.

Examples
--------
>>> slots = FunctionSlots()
>>> h = slots.add("sin(x)")
>>> slots[h].color
'#6366f1'
>>> slots.remove(h)
>>> list(slots.enabled())
[]
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, Optional, Sequence, Union

from .config import PALETTE

__all__ = ["GraphMode", "FunctionHandle", "FunctionDefinition", "FunctionSlots", "normalize_color"]

ColorLike = Union[str, Sequence[int]]

_HEX6 = re.compile(r"^#?([0-9a-fA-F]{6})$")
_HEX3 = re.compile(r"^#?([0-9a-fA-F]{3})$")


class GraphMode(str, Enum):
    """How an expression is turned into a curve."""

    CARTESIAN = "cartesian"
    PARAMETRIC = "parametric"
    POLAR = "polar"
    IMPLICIT = "implicit"
    DERIVATIVE = "derivative"
    INTEGRAL = "integral"


@dataclass(frozen=True)
class FunctionHandle:
    """Opaque reference to one slot of a :class:`FunctionSlots` arena."""

    slot: int


@dataclass(frozen=True)
class FunctionDefinition:
    """One plotted function.

    Parameters
    ----------
    expression : str
        Expression text in user notation.
    color : str
        ``#rrggbb`` color.
    enabled : bool
        ``False`` once the function has been removed.
    mode : GraphMode
        Sampling strategy for the expression.
    """

    expression: str
    color: str
    enabled: bool = True
    mode: GraphMode = GraphMode.CARTESIAN


def normalize_color(color: ColorLike) -> str:
    """Return ``color`` as lower-case ``#rrggbb``.

    Accepts ``#rrggbb``, ``#rgb`` (with or without ``#``) or an RGB triple of
    integers in ``0..255``.
    """
    if isinstance(color, str):
        text = color.strip()
        match = _HEX6.match(text)
        if match:
            return "#" + match.group(1).lower()
        match = _HEX3.match(text)
        if match:
            return "#" + "".join(ch * 2 for ch in match.group(1).lower())
        raise ValueError(f"Unsupported color {color!r}; expected #rrggbb, #rgb or an RGB triple")
    channels = tuple(color)
    if len(channels) != 3 or not all(isinstance(c, int) and 0 <= c <= 255 for c in channels):
        raise ValueError(f"RGB color must be three integers in 0..255, got {color!r}")
    return "#{:02x}{:02x}{:02x}".format(*channels)


class FunctionSlots:
    """Append-only arena of :class:`FunctionDefinition` slots.

    Parameters
    ----------
    palette : sequence of str, optional
        Colors assigned to new slots by slot index, cycling.
    """

    def __init__(self, palette: Sequence[str] = PALETTE) -> None:
        if not palette:
            raise ValueError("palette must not be empty")
        self._palette = tuple(normalize_color(c) for c in palette)
        self._slots: list[FunctionDefinition] = []

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[tuple[FunctionHandle, FunctionDefinition]]:
        for index, definition in enumerate(self._slots):
            yield FunctionHandle(index), definition

    def __getitem__(self, handle: FunctionHandle) -> FunctionDefinition:
        return self._slots[self._index(handle)]

    def _index(self, handle: FunctionHandle) -> int:
        if not isinstance(handle, FunctionHandle) or not 0 <= handle.slot < len(self._slots):
            raise KeyError(f"Unknown function handle: {handle!r}")
        return handle.slot

    def _update(self, handle: FunctionHandle, **changes) -> FunctionDefinition:
        index = self._index(handle)
        self._slots[index] = replace(self._slots[index], **changes)
        return self._slots[index]

    def add(
        self,
        expression: str = "",
        color: Optional[ColorLike] = None,
        mode: Optional[Union[GraphMode, str]] = None,
    ) -> FunctionHandle:
        """Append a new enabled function and return its handle."""
        index = len(self._slots)
        resolved = self._palette[index % len(self._palette)] if color is None else normalize_color(color)
        self._slots.append(
            FunctionDefinition(
                expression=str(expression),
                color=resolved,
                mode=GraphMode.CARTESIAN if mode is None else GraphMode(mode),
            )
        )
        return FunctionHandle(index)

    def set_expression(self, handle: FunctionHandle, expression: str) -> FunctionDefinition:
        return self._update(handle, expression=str(expression))

    def set_color(self, handle: FunctionHandle, color: ColorLike) -> FunctionDefinition:
        return self._update(handle, color=normalize_color(color))

    def set_mode(self, handle: FunctionHandle, mode: Union[GraphMode, str]) -> FunctionDefinition:
        return self._update(handle, mode=GraphMode(mode))

    def remove(self, handle: FunctionHandle) -> None:
        """Disable the function; the slot and its handle stay valid."""
        self._update(handle, enabled=False)

    def enabled(self) -> Iterator[tuple[FunctionHandle, FunctionDefinition]]:
        """Yield enabled functions with non-blank expressions, in slot order."""
        for handle, definition in self:
            if definition.enabled and definition.expression.strip():
                yield handle, definition
