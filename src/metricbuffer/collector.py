"""Buffering counter collector.

``Collector`` sits between application code and a statsd-style transport.
Bursts of ``increment``/``decrement`` calls for the same metric and tag list
are summed in memory and delivered as a single ``increment_by`` /
``decrement_by`` call per series, a fixed delay after the first call of each
quiet period.  ``timing``, ``gauge``, ``histogram`` and ``set`` are forwarded
unbuffered.

Example
-------
::

    from metricbuffer import Collector
    from metricbuffer.transport import DogStatsdTransport

    collector = Collector(DogStatsdTransport(statsd), flush_delay=5000)
    collector.increment("req.count", tags=["route:/home"])
    collector.increment("req.count", 0.5, ["route:/home"])
    # five seconds later: statsd.increment("req.count", value=3, tags=["route:/home"])

Tag order matters: ``["a", "b"]`` and ``["b", "a"]`` are buffered as two
separate series.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from metricbuffer.aggregation.accumulator import AccumulatorTable, Direction
from metricbuffer.aggregation.executor import FlushExecutor, FlushResult
from metricbuffer.aggregation.scheduler import FlushScheduler
from metricbuffer.codec.keys import encode_key
from metricbuffer.config.defaults import DEFAULT_CONFIG
from metricbuffer.config.loader import ConfigLoader
from metricbuffer.schema.config import CollectorConfig
from metricbuffer.schema.errors import (
    ConfigurationError,
    ErrorSeverity,
    MetricBufferError,
    TransportError,
)
from metricbuffer.timers.asyncio_timer import AsyncioTimerFactory
from metricbuffer.timers.base import TimerFactory
from metricbuffer.timers.threading_timer import ThreadingTimerFactory
from metricbuffer.transport.base import Tags

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[MetricBufferError], None]


def _timer_factory_for(backend: str) -> TimerFactory:
    if backend == "asyncio":
        return AsyncioTimerFactory()
    return ThreadingTimerFactory()


class Collector:
    """Buffer counter calls and flush them to *transport* on a fixed delay.

    Parameters
    ----------
    transport:
        Downstream client exposing ``increment_by``, ``decrement_by``,
        ``timing``, ``gauge``, ``histogram`` and ``set``.  When ``None``
        every emitting method is a silent no-op.
    flush_delay:
        Milliseconds between the first buffered call in a quiet period and
        the flush.  ``None`` or ``0`` uses ``config.flush_delay_ms``
        (10000 by default).
    timer_factory:
        Timer backend.  Defaults to the backend named by
        ``config.timer_backend``.
    config:
        Collector configuration.  Defaults to ``DEFAULT_CONFIG``.
    on_error:
        Optional callback receiving a :class:`~metricbuffer.schema.errors.MetricBufferError`
        whenever a series cannot be delivered or a flush cannot be scheduled.
        Nothing is ever raised to the caller of an emitting method.

    Raises
    ------
    ConfigurationError
        If *flush_delay* is negative.
    """

    def __init__(
        self,
        transport: Any | None = None,  # noqa: ANN401
        flush_delay: float | None = None,
        *,
        timer_factory: TimerFactory | None = None,
        config: CollectorConfig | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._config = config or DEFAULT_CONFIG
        if flush_delay is not None and flush_delay < 0:
            raise ConfigurationError(
                f"flush_delay must not be negative, got {flush_delay!r}",
                context={"flush_delay": flush_delay},
            )
        self._delay_ms: float = float(flush_delay or self._config.flush_delay_ms)
        self._transport = transport if self._config.enabled else None
        self._timers = timer_factory or _timer_factory_for(self._config.timer_backend)
        self._on_error = on_error
        self._closed = False

        self._tables: dict[Direction, AccumulatorTable] = {
            direction: AccumulatorTable(direction) for direction in Direction
        }
        self._executor = FlushExecutor(self._tables, self._transport, self._report_error)
        self._schedulers: dict[Direction, FlushScheduler] = {
            direction: FlushScheduler(
                direction,
                self._delay_ms,
                self._timers,
                self._executor.drain,
                self._report_error,
            )
            for direction in Direction
        }

        if self._transport is None:
            logger.debug("Collector created without a transport; metrics are disabled.")

    @classmethod
    def from_config(
        cls,
        config: CollectorConfig,
        transport: Any | None = None,  # noqa: ANN401
        *,
        timer_factory: TimerFactory | None = None,
        on_error: ErrorCallback | None = None,
    ) -> "Collector":
        """Build a collector whose delay and backend come from *config*."""
        return cls(
            transport,
            timer_factory=timer_factory,
            config=config,
            on_error=on_error,
        )

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        transport: Any | None = None,  # noqa: ANN401
        *,
        timer_factory: TimerFactory | None = None,
        on_error: ErrorCallback | None = None,
    ) -> "Collector":
        """Build a collector from a YAML (``.yaml``/``.yml``) or JSON config file.

        Raises
        ------
        ConfigurationError
            If the file is missing, unparsable, or fails validation.
        """
        loader = ConfigLoader()
        resolved = Path(path)
        if resolved.suffix in {".yaml", ".yml"}:
            config = loader.load_yaml(resolved)
        else:
            config = loader.load_json(resolved)
        return cls.from_config(
            config, transport, timer_factory=timer_factory, on_error=on_error
        )

    @classmethod
    def from_env(
        cls,
        transport: Any | None = None,  # noqa: ANN401
        *,
        prefix: str = "METRICBUFFER_",
        timer_factory: TimerFactory | None = None,
        on_error: ErrorCallback | None = None,
    ) -> "Collector":
        """Build a collector from ``METRICBUFFER_*`` environment variables."""
        config = ConfigLoader().load_env(prefix=prefix)
        return cls.from_config(
            config, transport, timer_factory=timer_factory, on_error=on_error
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def transport(self) -> Any | None:  # noqa: ANN401
        return self._transport

    @property
    def flush_delay(self) -> float:
        """Flush delay in milliseconds."""
        return self._delay_ms

    @property
    def config(self) -> CollectorConfig:
        return self._config

    @property
    def is_enabled(self) -> bool:
        """``True`` when calls are buffered and delivered."""
        return self._transport is not None and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def is_pending(self, direction: Direction) -> bool:
        """Return whether a flush is scheduled for *direction*."""
        return self._schedulers[direction].is_pending

    def snapshot(self, direction: Direction) -> dict[str, float]:
        """Return every encoded key buffered for *direction* with its total.

        Keys that were already flushed remain with a total of ``0.0``.
        """
        return self._tables[direction].snapshot()

    # ------------------------------------------------------------------
    # Buffered counters
    # ------------------------------------------------------------------

    def increment(
        self, metric: str, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Count one event, scaled up by ``1 / sample``.

        *sample* is the fraction of events the caller actually reports,
        in ``(0, 1]``.  ``None`` or ``0`` means every event is reported.
        """
        if not self.is_enabled:
            return
        self.increment_by(metric, 1 / (sample or 1), tags)

    def decrement(
        self, metric: str, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Count one decrement, scaled up by ``1 / sample``."""
        if not self.is_enabled:
            return
        self.decrement_by(metric, 1 / (sample or 1), tags)

    def increment_by(
        self, metric: str, value: float | None = None, tags: Tags = None
    ) -> None:
        """Add *value* (default ``1``) to the buffered total for the series."""
        self._add(Direction.INCREMENT, metric, 1 if value is None else value, tags)

    def decrement_by(
        self, metric: str, value: float | None = None, tags: Tags = None
    ) -> None:
        """Add *value* (default ``1``) to the buffered decrement total."""
        self._add(Direction.DECREMENT, metric, 1 if value is None else value, tags)

    def _add(self, direction: Direction, metric: str, value: float, tags: Tags) -> None:
        if not self.is_enabled:
            return
        self._tables[direction].add(encode_key(metric, tags), value)
        self._schedulers[direction].arm()

    # ------------------------------------------------------------------
    # Pass-through
    # ------------------------------------------------------------------

    def timing(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Forward a duration to the transport unbuffered."""
        self._forward("timing", metric, value, sample, tags)

    def gauge(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Forward a gauge value to the transport unbuffered."""
        self._forward("gauge", metric, value, sample, tags)

    def histogram(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Forward a histogram observation to the transport unbuffered."""
        self._forward("histogram", metric, value, sample, tags)

    def set(
        self, metric: str, value: object, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Forward a set member to the transport unbuffered."""
        self._forward("set", metric, value, sample, tags)

    def _forward(
        self, method: str, metric: str, value: object, sample: float | None, tags: Tags
    ) -> None:
        if not self.is_enabled:
            return
        try:
            getattr(self._transport, method)(metric, value, sample, tags)
        except Exception as exc:
            logger.exception("Transport %s failed for %r", method, metric)
            error = TransportError(
                f"Transport {method} failed for {metric!r}: {exc}",
                severity=ErrorSeverity.MEDIUM,
                context={"metric": metric, "method": method, "tags": tags},
            )
            error.__cause__ = exc
            self._report_error(error)

    # ------------------------------------------------------------------
    # Flushing and shutdown
    # ------------------------------------------------------------------

    def flush(self) -> list[FlushResult]:
        """Cancel pending timers and drain both directions immediately."""
        results: list[FlushResult] = []
        for direction in Direction:
            self._schedulers[direction].cancel()
            results.append(self._executor.drain(direction))
        return results

    def close(self) -> None:
        """Stop buffering.

        Pending timers are cancelled and, when ``config.flush_on_close`` is
        set, outstanding totals are flushed first.  Later calls to any
        emitting method are ignored.  Calling ``close`` twice is harmless.
        """
        if self._closed:
            return
        # Set before draining: adds racing with the final drain are ignored.
        self._closed = True
        if self._config.flush_on_close:
            self.flush()
        else:
            for scheduler in self._schedulers.values():
                scheduler.cancel()
        logger.debug("Collector closed")

    def __enter__(self) -> "Collector":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _report_error(self, error: MetricBufferError) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("on_error callback raised while reporting %r", error)

    def __repr__(self) -> str:
        return (
            f"Collector(enabled={self.is_enabled}, flush_delay={self._delay_ms}, "
            f"series={sum(len(t) for t in self._tables.values())})"
        )
