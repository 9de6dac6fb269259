"""Configuration defaults for evaluation, plotting, and history.

Purpose
-------
Collect the tunable constants in one place. Components take plain keyword
arguments; the frozen dataclasses below bundle those arguments so an
application can build a consistent evaluator/sampler pair from one object.

Notes
-----
The calculator and the plotter use different calculus precision. The
calculator evaluates a single point with a small derivative step and a fine
Simpson grid; the plotter evaluates a whole curve per frame with a coarser
step that tolerates cancellation better.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

__all__ = [
    "ANGLE_MODES",
    "CALCULATOR_DERIVATIVE_STEP",
    "PLOT_DERIVATIVE_STEP",
    "CALCULATOR_SIMPSON_INTERVALS",
    "PLOT_SIMPSON_INTERVALS",
    "HISTORY_LIMIT",
    "DEFAULT_CANVAS_SIZE",
    "DEFAULT_X_RANGE",
    "DEFAULT_Y_RANGE",
    "DEBOUNCE_MS",
    "PALETTE",
    "EvaluatorConfig",
    "PlotConfig",
]

ANGLE_MODES: tuple[str, ...] = ("rad", "deg")

CALCULATOR_DERIVATIVE_STEP = 1e-5
PLOT_DERIVATIVE_STEP = 1e-4
CALCULATOR_SIMPSON_INTERVALS = 1000
PLOT_SIMPSON_INTERVALS = 100

HISTORY_LIMIT = 50

DEFAULT_CANVAS_SIZE = 400
DEFAULT_X_RANGE: tuple[float, float] = (-10.0, 10.0)
DEFAULT_Y_RANGE: tuple[float, float] = (-10.0, 10.0)
DEBOUNCE_MS = 300

PALETTE: tuple[str, ...] = (
    "#6366f1",
    "#8b5cf6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#14b8a6",
    "#ec4899",
    "#f97316",
)


@dataclass(frozen=True)
class EvaluatorConfig:
    """Settings consumed by :class:`calcplot.evaluator.Evaluator`.

    Parameters
    ----------
    angle_mode : str
        ``"rad"`` or ``"deg"``.
    derivative_step : float
        Central-difference step used by ``nderiv``.
    integration_intervals : int
        Even number of Simpson subintervals used by ``nintegrate``.
    """

    angle_mode: str = "rad"
    derivative_step: float = CALCULATOR_DERIVATIVE_STEP
    integration_intervals: int = CALCULATOR_SIMPSON_INTERVALS


@dataclass(frozen=True)
class PlotConfig:
    """Settings consumed by the plot sampler and graph session.

    Parameters
    ----------
    canvas_size : int
        Default square canvas extent in pixels.
    x_range, y_range : tuple[float, float]
        Default (and reset) view window.
    parametric_range : tuple[float, float]
        Parameter span for ``t`` in parametric mode.
    parametric_samples : int
        Number of ``t`` samples.
    polar_range : tuple[float, float]
        Angle span for ``theta`` in polar mode; two full turns by default so
        multi-loop curves close.
    polar_samples : int
        Number of ``theta`` samples.
    implicit_resolution : int
        Grid size per axis for implicit curves.
    implicit_threshold : float
        ``|g(x, y)|`` below this marks a grid point as on the curve. Larger
        values draw thicker curves and admit more false positives.
    debounce_ms : int
        Quiet period between an edit and the sampling pass it triggers.
    derivative_step : float
        Step for derivative curves and ``nderiv`` inside plotted expressions.
    integration_intervals : int
        Simpson subintervals for integral curves and ``nintegrate``.
    integral_origin : float
        Lower bound ``a`` of integral curves ``F(x) = ∫_a^x f``.
    palette : tuple[str, ...]
        Colors assigned to new functions by slot index.
    """

    canvas_size: int = DEFAULT_CANVAS_SIZE
    x_range: tuple[float, float] = DEFAULT_X_RANGE
    y_range: tuple[float, float] = DEFAULT_Y_RANGE
    parametric_range: tuple[float, float] = (0.0, 2.0 * math.pi)
    parametric_samples: int = 1000
    polar_range: tuple[float, float] = (0.0, 4.0 * math.pi)
    polar_samples: int = 1000
    implicit_resolution: int = 150
    implicit_threshold: float = 0.5
    debounce_ms: int = DEBOUNCE_MS
    derivative_step: float = PLOT_DERIVATIVE_STEP
    integration_intervals: int = PLOT_SIMPSON_INTERVALS
    integral_origin: float = 0.0
    palette: tuple[str, ...] = PALETTE

    def evaluator_config(self, angle_mode: str = "rad") -> EvaluatorConfig:
        """Return the evaluator settings matching this plot precision."""
        return EvaluatorConfig(
            angle_mode=angle_mode,
            derivative_step=self.derivative_step,
            integration_intervals=self.integration_intervals,
        )
