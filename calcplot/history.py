"""Bounded calculation history with JSON persistence.

Entries are kept most-recent-first. Adding to a full history drops the
oldest entry.
"""

from __future__ import annotations

import json
import time
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Deque, Iterator, Optional, Union

from .config import HISTORY_LIMIT

__all__ = ["HistoryEntry", "History"]


@dataclass(frozen=True)
class HistoryEntry:
    """One calculation: the typed expression, its displayed result, and a
    timestamp in milliseconds since the epoch."""

    expression: str
    result: str
    timestamp: int


class History:
    """Append-only, capped list of :class:`HistoryEntry` objects.

    Parameters
    ----------
    limit : int, default=50
        Maximum number of entries kept.
    """

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self._limit = int(limit)
        self._entries: Deque[HistoryEntry] = deque(maxlen=self._limit)

    @property
    def limit(self) -> int:
        return self._limit

    def add(self, expression: str, result: str, *, timestamp: Optional[int] = None) -> HistoryEntry:
        """Record a calculation as the newest entry and return it."""
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        entry = HistoryEntry(str(expression), str(result), int(timestamp))
        self._entries.appendleft(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> HistoryEntry:
        return self._entries[index]

    @property
    def latest(self) -> Optional[HistoryEntry]:
        return self._entries[0] if self._entries else None

    def to_json(self) -> str:
        """Serialize entries, most recent first."""
        return json.dumps([asdict(entry) for entry in self._entries])

    @classmethod
    def from_json(cls, text: str, limit: int = HISTORY_LIMIT) -> "History":
        """Rebuild a history from :meth:`to_json` output.

        Records beyond ``limit`` (the oldest ones) are dropped.
        """
        records = json.loads(text)
        if not isinstance(records, list):
            raise ValueError("History JSON must be a list of records")
        history = cls(limit)
        for record in records[:limit]:
            history._entries.append(
                HistoryEntry(
                    expression=str(record["expression"]),
                    result=str(record["result"]),
                    timestamp=int(record["timestamp"]),
                )
            )
        return history

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(self.to_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: Union[str, Path], limit: int = HISTORY_LIMIT) -> "History":
        """Load a saved history; a missing file yields an empty history."""
        p = Path(path)
        if not p.exists():
            return cls(limit)
        return cls.from_json(p.read_text(encoding="utf-8"), limit)
