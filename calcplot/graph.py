"""Graph-mode session: function slots, view window, and render scheduling.

Purpose
-------
``GraphSession`` is the object a graphing UI drives. It owns one
:class:`~calcplot.view.ViewWindow`, one :class:`~calcplot.functions.FunctionSlots`
arena, a :class:`~calcplot.sampler.PlotSampler`, and the render callback that
receives each :class:`~calcplot.sampler.Frame`.

Render passes
-------------
A pass moves through ``IDLE -> SAMPLING -> RENDERING -> IDLE``. Passes are
serialized: there is never more than one in flight, even when the debounce
timer fires on its own thread. A request that arrives while a pass is
running is dropped.

- Typing into an expression schedules a *debounced* pass (300 ms by
  default). A newer edit supersedes the pending pass.
- Color changes, removal, zoom, pan, reset and resize render immediately
  and drop any pending debounced pass.

Logging
-------
A render callback that raises is logged with ``logger.exception``; the
session returns to ``IDLE`` and keeps accepting edits.

Examples
--------
>>> frames = []
>>> session = GraphSession(frames.append)
>>> h = session.add_function("sin(x)")
>>> session.zoom(0.5)
>>> len(frames[-1].curves)
1
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Union

from .config import PlotConfig
from .debouncing import Debouncer
from .functions import ColorLike, FunctionHandle, FunctionSlots, GraphMode
from .sampler import Frame, PlotSampler
from .view import ViewWindow

__all__ = ["RenderState", "GraphSession"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Renderer = Callable[[Frame], object]


class RenderState(str, Enum):
    IDLE = "idle"
    SAMPLING = "sampling"
    RENDERING = "rendering"


class GraphSession:
    """Coordinate sampling and rendering for a set of plotted functions.

    Parameters
    ----------
    renderer : callable, optional
        Receives each :class:`Frame`. When omitted frames are only stored
        in :attr:`last_frame`.
    sampler : PlotSampler, optional
        Sampler (and through it the evaluator and angle mode).
    window : ViewWindow, optional
        View window; defaults to ``config``'s ranges and canvas size.
    slots : FunctionSlots, optional
        Function arena; defaults to an empty one using ``config.palette``.
    config : PlotConfig, optional
        Plot defaults, including the debounce delay.
    mode : GraphMode or str, default="cartesian"
        Graph mode given to functions added without an explicit mode.
    """

    def __init__(
        self,
        renderer: Optional[Renderer] = None,
        *,
        sampler: Optional[PlotSampler] = None,
        window: Optional[ViewWindow] = None,
        slots: Optional[FunctionSlots] = None,
        config: Optional[PlotConfig] = None,
        mode: Union[GraphMode, str] = GraphMode.CARTESIAN,
    ) -> None:
        if config is None:
            config = sampler.config if sampler is not None else PlotConfig()
        self.config = config
        self.renderer = renderer
        self.sampler = sampler if sampler is not None else PlotSampler(config=config)
        self.window = (
            window
            if window is not None
            else ViewWindow.from_ranges(config.x_range, config.y_range, config.canvas_size)
        )
        self.slots = slots if slots is not None else FunctionSlots(config.palette)
        self.mode = GraphMode(mode)
        self.state = RenderState.IDLE
        self._state_lock = threading.Lock()
        self.last_frame: Optional[Frame] = None
        self._debouncer = Debouncer(self.render_now, delay_ms=config.debounce_ms)

    # -- functions --------------------------------------------------------

    def add_function(
        self,
        expression: str = "",
        color: Optional[ColorLike] = None,
        mode: Optional[Union[GraphMode, str]] = None,
    ) -> FunctionHandle:
        """Add a function and schedule a debounced pass."""
        handle = self.slots.add(expression, color, self.mode if mode is None else mode)
        self.request_render()
        return handle

    def edit_function(self, handle: FunctionHandle, expression: str) -> None:
        """Replace the expression text; the redraw is debounced."""
        self.slots.set_expression(handle, expression)
        self.request_render()

    def set_mode(self, handle: FunctionHandle, mode: Union[GraphMode, str]) -> None:
        self.slots.set_mode(handle, mode)
        self.render_now()

    def set_color(self, handle: FunctionHandle, color: ColorLike) -> None:
        self.slots.set_color(handle, color)
        self.render_now()

    def remove_function(self, handle: FunctionHandle) -> None:
        self.slots.remove(handle)
        self.render_now()

    # -- view ---------------------------------------------------------------

    def zoom(self, factor: float) -> None:
        self.window.zoom(factor)
        self.render_now()

    def pan(self, dx: float, dy: float) -> None:
        self.window.pan(dx, dy)
        self.render_now()

    def reset_view(self) -> None:
        self.window.reset()
        self.render_now()

    def resize(self, canvas_size: int) -> None:
        self.window.resize(canvas_size)
        self.render_now()

    def cursor_info(self, px: float, py: float) -> str:
        return self.window.cursor_label(px, py)

    # -- scheduling -----------------------------------------------------------

    @property
    def render_pending(self) -> bool:
        return self._debouncer.pending

    def request_render(self) -> None:
        """Schedule a pass after the debounce delay, superseding any pending one."""
        self._debouncer()

    def cancel_pending(self) -> None:
        self._debouncer.cancel()

    def render_now(self) -> Optional[Frame]:
        """Sample every enabled function and hand the frame to the renderer.

        Returns the new frame, or ``None`` when another pass is in flight,
        whether re-entrantly from the renderer or from another thread.
        """
        with self._state_lock:
            if self.state is not RenderState.IDLE:
                logger.debug("Render requested during %s pass; ignored", self.state.value)
                return None
            self.state = RenderState.SAMPLING
        try:
            self._debouncer.cancel()
            frame = self.sampler.sample_all(self.slots, self.window)
            self.last_frame = frame
            self.state = RenderState.RENDERING
            if self.renderer is not None:
                try:
                    self.renderer(frame)
                except Exception:
                    logger.exception("Render callback failed")
            return frame
        finally:
            with self._state_lock:
                self.state = RenderState.IDLE
