"""Curve sampling for plotted functions.

Purpose
-------
Turn one :class:`~calcplot.functions.FunctionDefinition` plus the current
:class:`~calcplot.view.ViewWindow` into drawable geometry: polylines in
world and screen coordinates, or a point cloud for implicit curves. The
sampler never draws; :mod:`calcplot.render` (or any other renderer) consumes
the :class:`Frame` it produces.

Concepts
--------
Each graph mode walks a fixed-size domain with one vectorized evaluator
call:

- **cartesian** ``f(x)``: one sample per pixel column (``canvas_size + 1``).
- **derivative** / **integral**: the cartesian samples of ``f'(x)`` (central
  difference) or ``F(x) = ∫_a^x f`` (Simpson) at plot precision.
- **parametric** ``x(t), y(t)``: ``t`` over a fixed span, independent of the
  window.
- **polar** ``r(θ)``: ``θ`` over two full turns, bound as ``theta`` and ``θ``.
- **implicit** ``lhs = rhs`` or ``g(x, y)``: a grid scan keeping points with
  ``|g| < threshold``. This is a contouring approximation, not root finding.

Segment breaks
--------------
A curve is split into separate polylines wherever a sample is non-finite
or, for window-mapped modes, lands more than one canvas height above or
below the canvas. Window-mapped modes also evaluate the curve halfway
between neighbouring samples and cut the pair apart when that midpoint is
non-finite, overshoots both neighbours by more than a canvas height, or
falls outside them while the curve changes sign. This separates the two
branches of ``1/x`` even when both samples next to the pole are on screen.

Logging
-------
Expressions that cannot be evaluated at all yield an empty curve and are
logged at DEBUG.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np

from .calculus import central_difference, simpson
from .config import PlotConfig
from .errors import EvalError, ExpressionSyntaxError
from .evaluator import Evaluator
from .functions import FunctionDefinition, FunctionHandle, FunctionSlots, GraphMode
from .tokenizer import COMMA, LPAREN, OP, matching_close, render_tokens, split_top_level, tokenize
from .view import ViewWindow

__all__ = ["Polyline", "SampledCurve", "Frame", "PlotSampler", "split_parametric", "implicit_residual"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_EMPTY_POINTS = np.empty((0, 2), dtype=float)


@dataclass(frozen=True)
class Polyline:
    """One unbroken run of samples; rows are ``(x, y)`` pairs."""

    world: np.ndarray
    screen: np.ndarray

    def __len__(self) -> int:
        return len(self.world)


@dataclass(frozen=True)
class SampledCurve:
    """Geometry for one function in one pass.

    ``segments`` holds polylines for line modes; ``markers`` holds
    ``(world, screen)`` point sets for implicit curves.
    """

    handle: Optional[FunctionHandle]
    mode: GraphMode
    color: str
    label: str
    segments: tuple[Polyline, ...] = ()
    markers: Optional[Polyline] = None

    @property
    def is_empty(self) -> bool:
        return not self.segments and (self.markers is None or len(self.markers) == 0)


@dataclass(frozen=True)
class Frame:
    """Everything a renderer needs for one pass."""

    window: ViewWindow
    curves: tuple[SampledCurve, ...] = field(default_factory=tuple)


def _split_runs(
    world: np.ndarray,
    screen: np.ndarray,
    valid: np.ndarray,
    cuts: Optional[np.ndarray] = None,
) -> tuple[Polyline, ...]:
    """Split parallel ``(n, 2)`` arrays into runs where ``valid`` holds.

    ``cuts[i]`` additionally separates sample ``i`` from sample ``i + 1``.
    Runs shorter than two points draw nothing and are dropped.
    """
    idx = np.flatnonzero(valid)
    if idx.size == 0:
        return ()
    gaps = np.diff(idx) > 1
    if cuts is not None:
        gaps |= cuts[idx[:-1]]
    out = []
    for run in np.split(idx, np.flatnonzero(gaps) + 1):
        if run.size >= 2:
            out.append(Polyline(world=world[run], screen=screen[run]))
    return tuple(out)


def _asymptote_cuts(sy: np.ndarray, mid_sy: np.ndarray, y: np.ndarray, size: int) -> np.ndarray:
    """Flag neighbouring samples that a pole separates.

    ``mid_sy`` is the screen ``y`` of the curve halfway between samples ``i``
    and ``i + 1``. The pair is cut when that midpoint is non-finite, when the
    curve changes sign and the midpoint falls outside the two endpoints, or
    when the midpoint overshoots the endpoints by more than a canvas height.
    """
    lo = np.minimum(sy[:-1], sy[1:])
    hi = np.maximum(sy[:-1], sy[1:])
    with np.errstate(invalid="ignore"):
        overshoot = np.maximum(lo - mid_sy, mid_sy - hi)
        flips = np.sign(y[:-1]) * np.sign(y[1:]) < 0
        return ~np.isfinite(mid_sy) | (flips & (overshoot > 0)) | (overshoot > size)


def _strip_outer_parens(tokens: list) -> list:
    while len(tokens) >= 2 and tokens[0].kind == LPAREN and matching_close(tokens, 0) == len(tokens) - 1:
        tokens = tokens[1:-1]
    return tokens


def split_parametric(expression: str) -> tuple[str, str]:
    """Split ``"x(t), y(t)"`` (optionally wrapped in parentheses) into its parts.

    Raises
    ------
    ExpressionSyntaxError
        If there are not exactly two top-level components.
    """
    tokens = _strip_outer_parens(tokenize(expression))
    parts = split_top_level(tokens, COMMA)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ExpressionSyntaxError(f"Parametric expression needs 'x(t), y(t)', got {expression!r}")
    return render_tokens(parts[0]), render_tokens(parts[1])


def implicit_residual(expression: str) -> str:
    """Rewrite ``lhs = rhs`` as ``(lhs)-(rhs)``; other text is returned as is."""
    parts = split_top_level(tokenize(expression), OP, "=")
    if len(parts) == 1:
        return expression
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ExpressionSyntaxError(f"Implicit equation needs exactly one '=', got {expression!r}")
    return f"({render_tokens(parts[0])})-({render_tokens(parts[1])})"


class PlotSampler:
    """Sample function definitions over a view window.

    Parameters
    ----------
    evaluator : Evaluator, optional
        Shared evaluator (and angle mode). When omitted one is built from
        ``config`` at plot precision.
    config : PlotConfig, optional
        Sampling spans, sample counts and implicit-curve settings.
    """

    def __init__(self, evaluator: Optional[Evaluator] = None, *, config: Optional[PlotConfig] = None) -> None:
        self.config = config if config is not None else PlotConfig()
        self.evaluator = (
            evaluator if evaluator is not None else Evaluator.from_config(self.config.evaluator_config())
        )

    # -- public API -----------------------------------------------------

    def sample(
        self,
        definition: FunctionDefinition,
        window: ViewWindow,
        handle: Optional[FunctionHandle] = None,
    ) -> SampledCurve:
        """Sample one definition; evaluation failures give an empty curve."""
        mode = GraphMode(definition.mode)
        strategy = {
            GraphMode.CARTESIAN: self._cartesian,
            GraphMode.DERIVATIVE: self._derivative,
            GraphMode.INTEGRAL: self._integral,
            GraphMode.PARAMETRIC: self._parametric,
            GraphMode.POLAR: self._polar,
            GraphMode.IMPLICIT: self._implicit,
        }[mode]
        curve = SampledCurve(
            handle=handle, mode=mode, color=definition.color, label=self._label(definition.expression, mode)
        )
        try:
            geometry = strategy(definition.expression, window)
        except EvalError as exc:
            logger.debug("Could not sample %r in %s mode: %s", definition.expression, mode.value, exc)
            return curve
        if mode is GraphMode.IMPLICIT:
            return SampledCurve(curve.handle, mode, curve.color, curve.label, markers=geometry)
        return SampledCurve(curve.handle, mode, curve.color, curve.label, segments=geometry)

    def sample_all(self, slots: FunctionSlots, window: ViewWindow) -> Frame:
        """Sample every enabled function, in slot order.

        The frame keeps a copy of ``window``, so later zoom or pan calls do
        not change a frame that was already produced.
        """
        curves = tuple(self.sample(definition, window, handle) for handle, definition in slots.enabled())
        return Frame(window=copy.copy(window), curves=curves)

    # -- strategies -------------------------------------------------------

    @staticmethod
    def _label(expression: str, mode: GraphMode) -> str:
        if mode is GraphMode.CARTESIAN:
            return f"y = {expression}"
        if mode is GraphMode.DERIVATIVE:
            return f"d/dx ({expression})"
        if mode is GraphMode.INTEGRAL:
            return f"∫ ({expression}) dx"
        if mode is GraphMode.POLAR:
            return f"r = {expression}"
        return expression

    def _columns(self, window: ViewWindow) -> np.ndarray:
        return window.screen_to_world_x(np.arange(window.canvas_size + 1, dtype=float))

    def _window_segments(self, f: Callable[[np.ndarray], Any], window: ViewWindow) -> tuple[Polyline, ...]:
        size = window.canvas_size
        x = self._columns(window)
        y = Evaluator.broadcast(f(x), {"x": x})
        mid_y = Evaluator.broadcast(f((x[:-1] + x[1:]) / 2), {"x": x[1:]})
        sx = window.world_to_screen_x(x)
        sy = window.world_to_screen_y(y)
        with np.errstate(invalid="ignore"):
            valid = np.isfinite(x) & np.isfinite(y) & (sy >= -size) & (sy <= 2 * size)
        cuts = _asymptote_cuts(sy, window.world_to_screen_y(mid_y), y, size)
        return _split_runs(np.column_stack([x, y]), np.column_stack([sx, sy]), valid, cuts)

    def _bound(self, expression: str) -> Callable[[np.ndarray], Any]:
        node = self.evaluator.compile(expression)

        def f(value: Any) -> Any:
            return self.evaluator.evaluate_node(node, {"x": value})

        return f

    def _cartesian(self, expression: str, window: ViewWindow) -> tuple[Polyline, ...]:
        return self._window_segments(self._bound(expression), window)

    def _derivative(self, expression: str, window: ViewWindow) -> tuple[Polyline, ...]:
        f = self._bound(expression)
        step = self.config.derivative_step
        return self._window_segments(lambda x: central_difference(f, x, step), window)

    def _integral(self, expression: str, window: ViewWindow) -> tuple[Polyline, ...]:
        f = self._bound(expression)
        origin, intervals = self.config.integral_origin, self.config.integration_intervals
        return self._window_segments(lambda x: simpson(f, origin, x, intervals), window)

    def _parametric(self, expression: str, window: ViewWindow) -> tuple[Polyline, ...]:
        x_text, y_text = split_parametric(expression)
        t0, t1 = self.config.parametric_range
        t = np.linspace(t0, t1, self.config.parametric_samples)
        x = self.evaluator.evaluate_array(x_text, {"t": t})
        y = self.evaluator.evaluate_array(y_text, {"t": t})
        valid = np.isfinite(x) & np.isfinite(y)
        screen = np.column_stack([window.world_to_screen_x(x), window.world_to_screen_y(y)])
        return _split_runs(np.column_stack([x, y]), screen, valid)

    def _polar(self, expression: str, window: ViewWindow) -> tuple[Polyline, ...]:
        a0, a1 = self.config.polar_range
        theta = np.linspace(a0, a1, self.config.polar_samples)
        r = self.evaluator.evaluate_array(expression, {"theta": theta, "θ": theta})
        with np.errstate(invalid="ignore"):
            x = r * np.cos(theta)
            y = r * np.sin(theta)
        screen = np.column_stack([window.world_to_screen_x(x), window.world_to_screen_y(y)])
        return _split_runs(np.column_stack([x, y]), screen, np.isfinite(r))

    def _implicit(self, expression: str, window: ViewWindow) -> Polyline:
        n = self.config.implicit_resolution
        xs = np.linspace(window.x_min, window.x_max, n)
        ys = np.linspace(window.y_min, window.y_max, n)
        grid_x, grid_y = np.meshgrid(xs, ys)
        g = self.evaluator.evaluate_array(implicit_residual(expression), {"x": grid_x, "y": grid_y})
        with np.errstate(invalid="ignore"):
            on_curve = np.isfinite(g) & (np.abs(g) < self.config.implicit_threshold)
        if not on_curve.any():
            return Polyline(world=_EMPTY_POINTS, screen=_EMPTY_POINTS)
        px, py = grid_x[on_curve], grid_y[on_curve]
        return Polyline(
            world=np.column_stack([px, py]),
            screen=np.column_stack([window.world_to_screen_x(px), window.world_to_screen_y(py)]),
        )
