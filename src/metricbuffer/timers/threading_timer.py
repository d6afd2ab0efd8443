"""Timer backend built on ``threading.Timer``.

Each scheduled callback gets its own daemon timer thread, so a pending flush
never keeps the interpreter alive at exit.
"""
from __future__ import annotations

import logging
import threading

from metricbuffer.timers.base import TimerCallback, TimerFactory, TimerHandle

logger = logging.getLogger(__name__)


class _ThreadTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    @property
    def active(self) -> bool:
        return self._timer.is_alive() and not self._timer.finished.is_set()

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingTimerFactory(TimerFactory):
    """Schedule callbacks on background ``threading.Timer`` threads.

    Parameters
    ----------
    daemon:
        Whether timer threads are daemonic.  Defaults to ``True``.
    """

    def __init__(self, *, daemon: bool = True) -> None:
        self._daemon = daemon

    def schedule(self, delay_ms: float, callback: TimerCallback) -> TimerHandle:
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = self._daemon
        timer.name = f"metricbuffer-flush-{id(timer):x}"
        timer.start()
        logger.debug("Started %s (delay=%.1fms)", timer.name, delay_ms)
        return _ThreadTimerHandle(timer)

    def __repr__(self) -> str:
        return f"ThreadingTimerFactory(daemon={self._daemon})"
