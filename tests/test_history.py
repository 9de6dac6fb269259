from __future__ import annotations

import json

import pytest

from calcplot.history import History, HistoryEntry


def test_entries_are_most_recent_first_and_capped() -> None:
    history = History()
    for i in range(55):
        history.add(f"{i}+0", str(i), timestamp=i)
    assert len(history) == 50
    assert history[0].expression == "54+0"
    assert history[-1].expression == "5+0"


def test_add_stamps_milliseconds() -> None:
    entry = History().add("1+1", "2")
    assert isinstance(entry, HistoryEntry)
    # Any plausible wall-clock time in ms is well above 1e12.
    assert entry.timestamp > 10**12


def test_json_round_trip_and_persistence(tmp_path) -> None:
    history = History()
    history.add("1+1", "2", timestamp=1)
    history.add("2*3", "6", timestamp=2)
    records = json.loads(history.to_json())
    assert records == [
        {"expression": "2*3", "result": "6", "timestamp": 2},
        {"expression": "1+1", "result": "2", "timestamp": 1},
    ]

    path = tmp_path / "history.json"
    history.save(path)
    loaded = History.load(path)
    assert list(loaded) == list(history)


def test_from_json_respects_limit() -> None:
    records = [{"expression": str(i), "result": str(i), "timestamp": i} for i in range(5)]
    history = History.from_json(json.dumps(records), limit=3)
    assert [e.expression for e in history] == ["0", "1", "2"]


def test_load_missing_file_is_empty(tmp_path) -> None:
    assert len(History.load(tmp_path / "missing.json")) == 0


def test_invalid_input() -> None:
    with pytest.raises(ValueError):
        History(limit=0)
    with pytest.raises(ValueError):
        History.from_json('{"expression": "1"}')


def test_clear_and_latest() -> None:
    history = History()
    assert history.latest is None
    history.add("1", "1", timestamp=0)
    history.clear()
    assert len(history) == 0
