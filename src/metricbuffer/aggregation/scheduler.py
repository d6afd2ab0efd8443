"""Fixed-delay flush scheduler.

One ``FlushScheduler`` exists per ``Direction``.  It guarantees at most one
pending flush at a time, fired a fixed delay after the *first* event of a
quiet period.  Later events inside the window neither push the fire time
back nor schedule a second flush.

States
------
IDLE     : No flush is scheduled.
PENDING  : A flush is scheduled; further ``arm()`` calls are coalesced.

Transitions
-----------
IDLE     --arm()-->    PENDING
PENDING  --arm()-->    PENDING   (no-op while the timer is live)
PENDING  --arm()-->    PENDING   (new timer when the old one was orphaned)
PENDING  --fire-->     IDLE      (then the flush callback runs)
PENDING  --cancel()--> IDLE
"""
from __future__ import annotations

import functools
import logging
import threading
from enum import Enum
from typing import Callable

from metricbuffer.aggregation.accumulator import Direction
from metricbuffer.schema.errors import MetricBufferError, SchedulerError
from metricbuffer.timers.base import TimerFactory, TimerHandle

logger = logging.getLogger(__name__)

FlushCallback = Callable[[Direction], object]
ErrorCallback = Callable[[MetricBufferError], None]


class ScheduleState(str, Enum):
    """Whether a flush is outstanding for a direction."""

    IDLE = "idle"
    PENDING = "pending"


class FlushScheduler:
    """Coalesce flush requests for one direction into a single timer.

    Parameters
    ----------
    direction:
        The direction passed to *on_fire* when the timer fires.
    delay_ms:
        Fixed delay between arming and firing, in milliseconds.
    timer_factory:
        Backend used to schedule the timer.
    on_fire:
        Called with *direction* when the timer fires.
    on_error:
        Optional side channel for scheduling failures.
    """

    def __init__(
        self,
        direction: Direction,
        delay_ms: float,
        timer_factory: TimerFactory,
        on_fire: FlushCallback,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._direction = direction
        self._delay_ms = delay_ms
        self._timers = timer_factory
        self._on_fire = on_fire
        self._on_error = on_error
        self._lock = threading.Lock()
        self._state = ScheduleState.IDLE
        self._handle: TimerHandle | None = None
        # Bumped on every arm/cancel so a stale timer that was already
        # running when it got cancelled does not fire a flush.
        self._generation = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def delay_ms(self) -> float:
        return self._delay_ms

    @property
    def state(self) -> ScheduleState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state is ScheduleState.PENDING

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def arm(self) -> bool:
        """Schedule a flush unless a live one is already pending.

        A pending timer whose backend reports it inactive (its event loop
        went away before the delay elapsed) is discarded and replaced.

        Returns
        -------
        bool
            ``True`` if this call scheduled a new flush, ``False`` if it was
            coalesced into the pending one or scheduling failed.
        """
        with self._lock:
            if self._state is ScheduleState.PENDING:
                if self._handle is None or self._handle.active:
                    return False
                logger.info(
                    "Pending %s flush was orphaned by its timer backend; re-arming",
                    self._direction.value,
                )
                self._handle.cancel()
                self._handle = None
                self._state = ScheduleState.IDLE
            self._generation += 1
            generation = self._generation
            try:
                self._handle = self._timers.schedule(
                    self._delay_ms, functools.partial(self._fire, generation)
                )
            except SchedulerError as exc:
                error = exc
            except Exception as exc:
                error = SchedulerError(
                    f"Timer backend failed to schedule a {self._direction.value} flush: {exc}",
                    context={"direction": self._direction.value, "delay_ms": self._delay_ms},
                )
                error.__cause__ = exc
            else:
                self._state = ScheduleState.PENDING
                logger.debug(
                    "Armed %s flush in %.1fms", self._direction.value, self._delay_ms
                )
                return True

        logger.warning(
            "Could not schedule %s flush: %s", self._direction.value, error
        )
        if self._on_error is not None:
            self._on_error(error)
        return False

    def cancel(self) -> bool:
        """Cancel the pending flush, if any.

        Returns
        -------
        bool
            ``True`` if a pending flush was cancelled.
        """
        with self._lock:
            if self._state is ScheduleState.IDLE:
                return False
            self._generation += 1
            handle, self._handle = self._handle, None
            self._state = ScheduleState.IDLE
        if handle is not None:
            handle.cancel()
        logger.debug("Cancelled pending %s flush", self._direction.value)
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state is not ScheduleState.PENDING:
                return
            # Back to IDLE before draining: an add that lands mid-drain
            # re-arms instead of waiting for some later event.
            self._state = ScheduleState.IDLE
            self._handle = None
        logger.debug("Firing %s flush", self._direction.value)
        self._on_fire(self._direction)

    def __repr__(self) -> str:
        return (
            f"FlushScheduler(direction={self._direction.value!r}, "
            f"delay_ms={self._delay_ms}, state={self._state.value!r})"
        )
