"""Timer backend abstraction.

The flush scheduler only needs one capability from its environment: run a
callback once after a delay, with a way to cancel it before it runs.
``TimerFactory`` captures exactly that so the same scheduler can run on
threads, on an asyncio loop, or on a virtual clock in tests.

Shipped in this module
----------------------
- TimerHandle   — ABC for a single scheduled callback
- TimerFactory  — ABC for timer backends
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

TimerCallback = Callable[[], None]


class TimerHandle(ABC):
    """A callback scheduled by a :class:`TimerFactory`."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running.  No-op if it already ran."""

    @property
    def active(self) -> bool:
        """Whether the callback can still run.

        Backends whose timers can be orphaned (an event loop that stopped
        before the delay elapsed) return ``False`` once that happens, so the
        scheduler knows to arm a fresh timer instead of waiting forever.
        """
        return True


class TimerFactory(ABC):
    """Abstract base class for timer backends."""

    @abstractmethod
    def schedule(self, delay_ms: float, callback: TimerCallback) -> TimerHandle:
        """Run *callback* once, *delay_ms* milliseconds from now.

        Raises
        ------
        SchedulerError
            If the backend cannot accept the callback right now.
        """
