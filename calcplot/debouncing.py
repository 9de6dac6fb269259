"""Trailing-edge debouncing for sampling passes."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, Optional

__all__ = ["Debouncer"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class Debouncer:
    """Run ``callback`` once, ``delay_ms`` after the most recent call.

    Each call replaces the pending one: the previous timer is cancelled and
    only the newest arguments are delivered.

    Parameters
    ----------
    callback:
        Callable to execute after the quiet period.
    delay_ms:
        Quiet period in milliseconds.

    Notes
    -----
    Inside a running asyncio loop the timer is ``loop.call_later``;
    otherwise a daemon ``threading.Timer`` is used.
    """

    def __init__(self, callback: Callable[..., Any], *, delay_ms: int) -> None:
        if delay_ms <= 0:
            raise ValueError("delay_ms must be > 0")
        self._callback = callback
        self._delay_s = delay_ms / 1000.0

        self._lock = threading.Lock()
        self._timer: Optional[Any] = None
        self._generation = 0
        self._call: Optional[tuple[tuple[Any, ...], dict[str, Any]]] = None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._cancel_locked()
            self._call = (args, dict(kwargs))
            self._generation += 1
            self._schedule_locked(self._generation)

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._call is not None

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        with self._lock:
            self._cancel_locked()
            self._call = None

    def flush(self) -> bool:
        """Run the pending call now; returns ``False`` if nothing was pending."""
        with self._lock:
            self._cancel_locked()
            call, self._call = self._call, None
        if call is None:
            return False
        self._run(call)
        return True

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_locked(self, generation: int) -> None:
        def fire() -> None:
            self._on_tick(generation)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            timer = threading.Timer(self._delay_s, fire)
            timer.daemon = True
            self._timer = timer
            timer.start()
            return

        self._timer = loop.call_later(self._delay_s, fire)

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            # A timer that lost the race with a newer call must not fire it.
            if generation != self._generation:
                return
            self._timer = None
            call, self._call = self._call, None
        if call is not None:
            self._run(call)

    def _run(self, call: tuple[tuple[Any, ...], dict[str, Any]]) -> None:
        args, kwargs = call
        try:
            self._callback(*args, **kwargs)
        except Exception:
            logger.exception("Debouncer callback failed")
