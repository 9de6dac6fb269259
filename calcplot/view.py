"""View window model: world rectangle, canvas mapping, zoom, and pan.

Purpose
-------
``ViewWindow`` is the state container for the part of the plane currently
mapped onto a square canvas. It owns the axis defaults and the live
viewport; curve sampling (:mod:`calcplot.sampler`) only reads it.

Coordinate maps
---------------
The screen origin is top-left, the world origin is bottom-left oriented::

    screen_x = (x - x_min) / (x_max - x_min) * size
    screen_y = size - (y - y_min) / (y_max - y_min) * size

Both maps and their inverses accept scalars or NumPy arrays.

Notes
-----
Window bounds go through :func:`calcplot.InputConvert.InputConvert`, so
``ViewWindow(x_min="-2pi", x_max="2pi")`` works.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Union

import numpy as np

from .config import DEFAULT_CANVAS_SIZE, DEFAULT_X_RANGE, DEFAULT_Y_RANGE
from .InputConvert import InputConvert

__all__ = ["ViewWindow"]

NumberLikeOrStr = Union[int, float, str]


def _ordered(lo: float, hi: float, axis: str) -> tuple[float, float]:
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ValueError(f"{axis} range must be finite, got ({lo}, {hi})")
    if not hi > lo:
        raise ValueError(f"{axis}_max must be greater than {axis}_min, got ({lo}, {hi})")
    return lo, hi


@dataclass
class ViewWindow:
    """World rectangle shown on a square canvas.

    Parameters
    ----------
    x_min, x_max, y_min, y_max : float or str
        Window bounds; ``x_max > x_min`` and ``y_max > y_min``.
    canvas_size : int
        Canvas side length in pixels, ``> 0``.

    Notes
    -----
    The bounds given at construction are remembered as the defaults that
    :meth:`reset` restores.
    """

    x_min: float = DEFAULT_X_RANGE[0]
    x_max: float = DEFAULT_X_RANGE[1]
    y_min: float = DEFAULT_Y_RANGE[0]
    y_max: float = DEFAULT_Y_RANGE[1]
    canvas_size: int = DEFAULT_CANVAS_SIZE
    _defaults: tuple[float, float, float, float] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.x_min, self.x_max = _ordered(InputConvert(self.x_min), InputConvert(self.x_max), "x")
        self.y_min, self.y_max = _ordered(InputConvert(self.y_min), InputConvert(self.y_max), "y")
        self.canvas_size = self._validate_size(self.canvas_size)
        self._defaults = (self.x_min, self.x_max, self.y_min, self.y_max)

    @classmethod
    def from_ranges(
        cls,
        x_range: tuple[NumberLikeOrStr, NumberLikeOrStr] = DEFAULT_X_RANGE,
        y_range: tuple[NumberLikeOrStr, NumberLikeOrStr] = DEFAULT_Y_RANGE,
        canvas_size: int = DEFAULT_CANVAS_SIZE,
    ) -> "ViewWindow":
        return cls(x_range[0], x_range[1], y_range[0], y_range[1], canvas_size)

    @staticmethod
    def _validate_size(size: Any) -> int:
        value = InputConvert(size, int, truncate=False)
        if value <= 0:
            raise ValueError(f"canvas_size must be > 0, got {value}")
        return value

    # -- derived ------------------------------------------------------------

    @property
    def x_span(self) -> float:
        return self.x_max - self.x_min

    @property
    def y_span(self) -> float:
        return self.y_max - self.y_min

    @property
    def x_range(self) -> tuple[float, float]:
        return (self.x_min, self.x_max)

    @property
    def y_range(self) -> tuple[float, float]:
        return (self.y_min, self.y_max)

    # -- coordinate maps ------------------------------------------------------

    def world_to_screen_x(self, x: Any) -> Any:
        return (np.asarray(x, dtype=float) - self.x_min) / self.x_span * self.canvas_size

    def world_to_screen_y(self, y: Any) -> Any:
        return self.canvas_size - (np.asarray(y, dtype=float) - self.y_min) / self.y_span * self.canvas_size

    def screen_to_world_x(self, px: Any) -> Any:
        return self.x_min + np.asarray(px, dtype=float) / self.canvas_size * self.x_span

    def screen_to_world_y(self, py: Any) -> Any:
        return self.y_max - np.asarray(py, dtype=float) / self.canvas_size * self.y_span

    # -- mutation ---------------------------------------------------------------

    def zoom(self, factor: NumberLikeOrStr) -> None:
        """Rescale both ranges about their centers.

        ``factor > 1`` zooms out, ``factor < 1`` zooms in.
        """
        value = InputConvert(factor)
        if not (math.isfinite(value) and value > 0):
            raise ValueError(f"zoom factor must be finite and > 0, got {factor!r}")
        x_center = (self.x_min + self.x_max) / 2
        y_center = (self.y_min + self.y_max) / 2
        x_half = self.x_span * value / 2
        y_half = self.y_span * value / 2
        self.x_min, self.x_max = _ordered(x_center - x_half, x_center + x_half, "x")
        self.y_min, self.y_max = _ordered(y_center - y_half, y_center + y_half, "y")

    def pan(self, dx: float, dy: float) -> None:
        """Shift the window by a pixel drag of ``(dx, dy)``.

        Dragging right moves the window left in world space; dragging down
        moves it up, since screen y grows downwards.
        """
        x_shift = -(float(dx) / self.canvas_size) * self.x_span
        y_shift = (float(dy) / self.canvas_size) * self.y_span
        self.x_min += x_shift
        self.x_max += x_shift
        self.y_min += y_shift
        self.y_max += y_shift

    def reset(self) -> None:
        """Restore the bounds given at construction."""
        self.x_min, self.x_max, self.y_min, self.y_max = self._defaults

    def resize(self, canvas_size: int) -> None:
        self.canvas_size = self._validate_size(canvas_size)

    # -- grid and cursor ----------------------------------------------------------

    @staticmethod
    def grid_step(span: float) -> float:
        """Pick a 1, 2, or 5 times 10**n step giving about ten gridlines.

        Examples
        --------
        >>> ViewWindow.grid_step(20)
        2.0
        >>> ViewWindow.grid_step(1)
        0.1
        """
        if not (math.isfinite(span) and span > 0):
            raise ValueError(f"span must be finite and > 0, got {span!r}")
        rough = span / 10
        magnitude = 10 ** math.floor(math.log10(rough))
        residual = rough / magnitude
        if residual < 1.5:
            nice = 1
        elif residual < 3.5:
            nice = 2
        elif residual < 7.5:
            nice = 5
        else:
            nice = 10
        return float(nice * magnitude)

    def ticks(self, axis: str = "x") -> np.ndarray:
        """Return the gridline world positions inside the window for ``axis``."""
        if axis == "x":
            lo, hi = self.x_min, self.x_max
        elif axis == "y":
            lo, hi = self.y_min, self.y_max
        else:
            raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")
        step = self.grid_step(hi - lo)
        first = math.ceil(lo / step)
        last = math.floor(hi / step)
        return np.arange(first, last + 1, dtype=float) * step

    def cursor_label(self, px: float, py: float) -> str:
        """World coordinates under a canvas pixel, e.g. ``"x: 1.250, y: -3.000"``."""
        x = float(self.screen_to_world_x(px))
        y = float(self.screen_to_world_y(py))
        return f"x: {x:.3f}, y: {y:.3f}"
