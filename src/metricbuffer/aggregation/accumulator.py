"""Running totals for buffered counter series.

One ``AccumulatorTable`` exists per ``Direction``.  Each maps an encoded
metric key (see :mod:`metricbuffer.codec.keys`) to the float total added
since the key was last drained.

A key whose total is ``0`` is idle, not absent.  Entries are never evicted,
so a table grows with the number of distinct series ever seen.
"""
from __future__ import annotations

import threading
from enum import Enum


class Direction(str, Enum):
    """Which downstream counter call a buffered total is flushed through."""

    INCREMENT = "increment"
    DECREMENT = "decrement"


class AccumulatorTable:
    """Thread-safe map of encoded key to running total.

    The lock is held across the read-modify-write in :meth:`add` and across
    the snapshot-and-reset in :meth:`take_nonzero`, so a total is never both
    emitted and kept, and no concurrent add is lost.

    Examples
    --------
    >>> table = AccumulatorTable(Direction.INCREMENT)
    >>> table.add("req.count", 1)
    1.0
    >>> table.add("req.count", 2)
    3.0
    >>> table.take_nonzero()
    [('req.count', 3.0)]
    >>> table.get("req.count")
    0.0
    """

    def __init__(self, direction: Direction) -> None:
        self._direction = direction
        self._lock = threading.Lock()
        self._totals: dict[str, float] = {}

    @property
    def direction(self) -> Direction:
        return self._direction

    def add(self, key: str, value: float) -> float:
        """Add *value* to the total for *key* and return the new total.

        A missing key starts from ``0``.
        """
        with self._lock:
            total = self._totals.get(key, 0.0) + value
            self._totals[key] = total
        return total

    def take_nonzero(self) -> list[tuple[str, float]]:
        """Return every non-zero ``(key, total)`` and reset those totals to 0.

        Zero entries are left where they are.
        """
        with self._lock:
            taken = [(key, total) for key, total in self._totals.items() if total]
            for key, _ in taken:
                self._totals[key] = 0.0
        return taken

    def get(self, key: str) -> float:
        """Return the current total for *key* (``0.0`` if never seen)."""
        with self._lock:
            return self._totals.get(key, 0.0)

    def snapshot(self) -> dict[str, float]:
        """Return a copy of every key and its current total."""
        with self._lock:
            return dict(self._totals)

    def __len__(self) -> int:
        with self._lock:
            return len(self._totals)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._totals

    def __repr__(self) -> str:
        return f"AccumulatorTable(direction={self._direction.value!r}, keys={len(self)})"
