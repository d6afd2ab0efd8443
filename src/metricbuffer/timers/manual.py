"""Virtual-clock timer backend.

``ManualTimerFactory`` never fires on its own: time only moves when
:meth:`ManualTimerFactory.advance` is called, and every callback whose due
time falls inside the advanced span runs synchronously on the caller's
thread, in due-time order.  This gives deterministic flush timing in tests
and in single-threaded hosts that drive their own clock.

Examples
--------
>>> timers = ManualTimerFactory()
>>> fired = []
>>> _ = timers.schedule(100, lambda: fired.append(timers.now))
>>> timers.advance(99)
>>> fired
[]
>>> timers.advance(1)
>>> fired
[100.0]
"""
from __future__ import annotations

import heapq
import itertools
import threading

from metricbuffer.timers.base import TimerCallback, TimerFactory, TimerHandle


class _ManualTimerHandle(TimerHandle):
    def __init__(self, due: float, callback: TimerCallback) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerFactory(TimerFactory):
    """Timer backend driven by an explicit virtual clock, in milliseconds."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._lock = threading.Lock()
        self._seq = itertools.count()
        self._queue: list[tuple[float, int, _ManualTimerHandle]] = []

    @property
    def now(self) -> float:
        """Current virtual time in milliseconds."""
        return self._now

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have neither run nor been cancelled."""
        with self._lock:
            return sum(1 for _, _, h in self._queue if not h.cancelled)

    def schedule(self, delay_ms: float, callback: TimerCallback) -> TimerHandle:
        handle = _ManualTimerHandle(self._now + max(delay_ms, 0.0), callback)
        with self._lock:
            heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def advance(self, delay_ms: float) -> None:
        """Move the clock forward by *delay_ms*, running every callback that
        comes due on the way, including ones scheduled by earlier callbacks.
        """
        target = self._now + delay_ms
        while True:
            with self._lock:
                if not self._queue or self._queue[0][0] > target:
                    break
                due, _, handle = heapq.heappop(self._queue)
            self._now = due
            if handle.cancelled:
                continue
            handle.fired = True
            handle.callback()
        self._now = target

    def __repr__(self) -> str:
        return f"ManualTimerFactory(now={self._now}, pending={self.pending})"
