"""Timer backend built on an asyncio event loop.

Callbacks run on the loop thread via ``loop.call_later``.  Scheduling from
another thread is supported when the loop was passed in explicitly; the
timer is then installed through ``call_soon_threadsafe``.

A handle only reports itself active while its loop is running.  Once the
loop stops or closes (for example between two ``asyncio.run`` calls) the
scheduler sees the handle as dead and arms a new timer on whichever loop is
running at that point.
"""
from __future__ import annotations

import asyncio
import logging
import threading

from metricbuffer.schema.errors import SchedulerError
from metricbuffer.timers.base import TimerCallback, TimerFactory, TimerHandle

logger = logging.getLogger(__name__)


class _AsyncioTimerHandle(TimerHandle):
    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._lock = threading.Lock()
        self._handle: asyncio.TimerHandle | None = None
        self._cancelled = False
        self._fired = False

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def active(self) -> bool:
        # A timer left on a loop that stopped or closed never fires.
        with self._lock:
            if self._cancelled or self._fired:
                return False
        return self._loop.is_running() and not self._loop.is_closed()

    def _install(self, delay_ms: float, callback: TimerCallback) -> None:
        def run() -> None:
            with self._lock:
                if self._cancelled:
                    return
                self._fired = True
            callback()

        with self._lock:
            if self._cancelled:
                return
            self._handle = self._loop.call_later(delay_ms / 1000.0, run)

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            handle = self._handle
        if handle is None:
            return
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(handle.cancel)


class AsyncioTimerFactory(TimerFactory):
    """Schedule callbacks on an asyncio event loop.

    Parameters
    ----------
    loop:
        Loop to schedule on.  When omitted, the loop running in the calling
        thread at :meth:`schedule` time is used.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, delay_ms: float, callback: TimerCallback) -> TimerHandle:
        try:
            running: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        loop = self._loop or running
        if loop is None:
            raise SchedulerError(
                "AsyncioTimerFactory needs a running event loop or an explicit loop.",
                context={"delay_ms": delay_ms},
            )
        if loop.is_closed():
            raise SchedulerError(
                "Cannot schedule a flush on a closed event loop.",
                context={"delay_ms": delay_ms},
            )

        handle = _AsyncioTimerHandle(loop)
        if loop is running:
            handle._install(delay_ms, callback)
        else:
            loop.call_soon_threadsafe(handle._install, delay_ms, callback)
        return handle

    def __repr__(self) -> str:
        return f"AsyncioTimerFactory(loop={self._loop!r})"
