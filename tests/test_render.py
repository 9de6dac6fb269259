from __future__ import annotations

import plotly.graph_objects as go

from calcplot.functions import FunctionSlots, GraphMode
from calcplot.render import curve_trace, to_plotly_figure
from calcplot.sampler import PlotSampler
from calcplot.view import ViewWindow


def _frame(*expressions, mode=GraphMode.CARTESIAN):
    slots = FunctionSlots()
    for text in expressions:
        slots.add(text, mode=mode)
    return PlotSampler().sample_all(slots, ViewWindow(-10, 10, -10, 10, 400))


def test_segments_are_separated_by_gaps() -> None:
    frame = _frame("1/x")
    trace = curve_trace(frame.curves[0])
    assert isinstance(trace, go.Scatter)
    assert trace.mode == "lines"
    assert trace.connectgaps is False
    assert list(trace.x).count(None) == 1
    assert trace.line.color == "#6366f1"


def test_implicit_curves_are_markers() -> None:
    frame = _frame("x^2 + y^2 = 25", mode=GraphMode.IMPLICIT)
    trace = curve_trace(frame.curves[0])
    assert trace.mode == "markers"
    assert len(trace.x) == len(frame.curves[0].markers)


def test_figure_layout_matches_canvas() -> None:
    frame = _frame("x", "x^2")
    fig = to_plotly_figure(frame)
    assert len(fig.data) == 2
    assert tuple(fig.layout.yaxis.range) == (400, 0)
    assert tuple(fig.layout.xaxis.range) == (0, 400)
    # 11 + 11 gridlines plus both axes.
    assert len(fig.layout.shapes) == 24


def test_grid_can_be_disabled() -> None:
    fig = to_plotly_figure(_frame("x"), show_grid=False)
    assert len(fig.layout.shapes) == 0
