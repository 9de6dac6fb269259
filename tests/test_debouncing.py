from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from calcplot.debouncing import Debouncer


class _FakeThreadTimer:
    created: list["_FakeThreadTimer"] = []

    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False
        _FakeThreadTimer.created.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True


class _FakeLoopHandle:
    def __init__(self, callback):
        self._callback = callback
        self.cancelled = False

    def fire(self) -> None:
        self._callback()

    def cancel(self) -> None:
        self.cancelled = True


class _FakeAsyncLoop:
    def __init__(self) -> None:
        self.handles: list[_FakeLoopHandle] = []
        self.delays: list[float] = []

    def call_later(self, delay: float, callback):
        handle = _FakeLoopHandle(callback)
        self.handles.append(handle)
        self.delays.append(delay)
        return handle


@pytest.fixture(autouse=True)
def _reset_fake_timers():
    _FakeThreadTimer.created.clear()
    yield
    _FakeThreadTimer.created.clear()


def test_newer_call_supersedes_pending_one_threading() -> None:
    calls = []
    with patch("calcplot.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = Debouncer(calls.append, delay_ms=300)
        debouncer("first")
        debouncer("second")
        first, second = _FakeThreadTimer.created
        assert first.cancelled and not second.cancelled
        assert second.daemon and second.started
        assert second.delay == pytest.approx(0.3)

        # A cancelled timer that fires anyway must not deliver anything.
        first.callback()
        assert calls == []
        second.callback()

    assert calls == ["second"]
    assert not debouncer.pending


def test_uses_running_loop_when_available() -> None:
    calls = []
    fake_loop = _FakeAsyncLoop()
    with patch("calcplot.debouncing.asyncio.get_running_loop", return_value=fake_loop):
        debouncer = Debouncer(calls.append, delay_ms=300)
        debouncer("a")
        debouncer("b")
        assert len(fake_loop.handles) == 2
        assert fake_loop.handles[0].cancelled
        assert fake_loop.delays == [pytest.approx(0.3), pytest.approx(0.3)]
        fake_loop.handles[1].fire()

    assert calls == ["b"]


def test_callback_error_is_logged_and_debouncer_keeps_working(caplog) -> None:
    state = {"n": 0}

    def _callback(_payload):
        state["n"] += 1
        if state["n"] == 1:
            raise RuntimeError("boom")

    with patch("calcplot.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = Debouncer(_callback, delay_ms=1)
        with caplog.at_level(logging.ERROR, logger="calcplot.debouncing"):
            debouncer("first")
            _FakeThreadTimer.created[-1].callback()
            debouncer("second")
            _FakeThreadTimer.created[-1].callback()

    assert state["n"] == 2
    assert "Debouncer callback failed" in caplog.text


def test_cancel_and_flush() -> None:
    calls = []
    with patch("calcplot.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = Debouncer(calls.append, delay_ms=300)
        debouncer("dropped")
        assert debouncer.pending
        debouncer.cancel()
        assert not debouncer.pending
        assert _FakeThreadTimer.created[-1].cancelled
        assert debouncer.flush() is False

        debouncer("now")
        assert debouncer.flush() is True
    assert calls == ["now"]


def test_delay_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Debouncer(lambda: None, delay_ms=0)
