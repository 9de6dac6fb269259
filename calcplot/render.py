"""Plotly adapter for sampled frames.

The sampler hands out geometry only; this module turns a
:class:`~calcplot.sampler.Frame` into a ``plotly.graph_objects.Figure`` so a
frame can be shown in a notebook or saved to HTML.

Traces are drawn in canvas pixel coordinates with the y axis reversed, so
``(0, 0)`` is the top-left corner exactly as on the canvas. Each curve is one
trace; its polylines are joined with ``None`` gaps and ``connectgaps`` is
off, so segment breaks stay visible. Implicit curves are drawn as markers.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import plotly.graph_objects as go

from .functions import GraphMode
from .sampler import Frame, SampledCurve

__all__ = ["to_plotly_figure", "curve_trace"]

_GRID_COLOR = "rgba(148,163,184,0.35)"
_AXIS_COLOR = "#334155"


def _layout(size: int) -> Dict[str, Any]:
    axis = dict(showgrid=False, zeroline=False, showticklabels=False, fixedrange=True)
    return dict(
        template="plotly_white",
        width=size,
        height=size,
        showlegend=True,
        margin=dict(l=0, r=0, t=0, b=0),
        plot_bgcolor="#f8fafc",
        xaxis=dict(axis, range=[0, size]),
        yaxis=dict(axis, range=[size, 0], scaleanchor="x", scaleratio=1),
    )


def curve_trace(curve: SampledCurve) -> go.Scatter:
    """Build the scatter trace for one sampled curve."""
    if curve.mode is GraphMode.IMPLICIT:
        points = curve.markers
        xs = [] if points is None else points.screen[:, 0].tolist()
        ys = [] if points is None else points.screen[:, 1].tolist()
        return go.Scatter(
            x=xs,
            y=ys,
            mode="markers",
            name=curve.label,
            marker=dict(color=curve.color, size=2),
        )

    xs: list[Optional[float]] = []
    ys: list[Optional[float]] = []
    for segment in curve.segments:
        if xs:
            xs.append(None)
            ys.append(None)
        xs.extend(segment.screen[:, 0].tolist())
        ys.extend(segment.screen[:, 1].tolist())
    return go.Scatter(
        x=xs,
        y=ys,
        mode="lines",
        name=curve.label,
        connectgaps=False,
        line=dict(color=curve.color, width=2),
    )


def _grid_shapes(frame: Frame) -> list[Dict[str, Any]]:
    window = frame.window
    size = window.canvas_size
    shapes: list[Dict[str, Any]] = []
    for x in window.ticks("x"):
        px = float(window.world_to_screen_x(x))
        shapes.append(dict(type="line", x0=px, x1=px, y0=0, y1=size, line=dict(color=_GRID_COLOR, width=1), layer="below"))
    for y in window.ticks("y"):
        py = float(window.world_to_screen_y(y))
        shapes.append(dict(type="line", x0=0, x1=size, y0=py, y1=py, line=dict(color=_GRID_COLOR, width=1), layer="below"))
    if window.x_min <= 0 <= window.x_max:
        px = float(window.world_to_screen_x(0.0))
        shapes.append(dict(type="line", x0=px, x1=px, y0=0, y1=size, line=dict(color=_AXIS_COLOR, width=1.5), layer="below"))
    if window.y_min <= 0 <= window.y_max:
        py = float(window.world_to_screen_y(0.0))
        shapes.append(dict(type="line", x0=0, x1=size, y0=py, y1=py, line=dict(color=_AXIS_COLOR, width=1.5), layer="below"))
    return shapes


def to_plotly_figure(frame: Frame, *, show_grid: bool = True) -> go.Figure:
    """Render ``frame`` as a Plotly figure in canvas coordinates.

    Parameters
    ----------
    frame : Frame
        Output of :meth:`~calcplot.sampler.PlotSampler.sample_all`.
    show_grid : bool, default=True
        Draw gridlines at :meth:`~calcplot.view.ViewWindow.ticks` and the
        world axes when they are inside the window.
    """
    fig = go.Figure()
    fig.update_layout(**_layout(frame.window.canvas_size))
    for curve in frame.curves:
        fig.add_trace(curve_trace(curve))
    if show_grid:
        fig.update_layout(shapes=_grid_shapes(frame))
    return fig
