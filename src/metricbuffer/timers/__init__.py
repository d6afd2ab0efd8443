"""Timer backends used by the flush scheduler."""
from __future__ import annotations

from metricbuffer.timers.asyncio_timer import AsyncioTimerFactory
from metricbuffer.timers.base import TimerCallback, TimerFactory, TimerHandle
from metricbuffer.timers.manual import ManualTimerFactory
from metricbuffer.timers.threading_timer import ThreadingTimerFactory

__all__ = [
    "TimerCallback",
    "TimerHandle",
    "TimerFactory",
    "ThreadingTimerFactory",
    "AsyncioTimerFactory",
    "ManualTimerFactory",
]
