"""Flush executor: drains buffered totals into the transport.

Each drain takes every non-zero total out of one direction's table
(resetting those entries to ``0``), decodes the key back into its metric name
and tags, and makes one downstream call per series.  Zero entries are left in
the table untouched.

Nothing raised here escapes to the caller.  A key that fails to decode is
logged and dropped; a transport call that raises is logged and reported, and
its total is not retried.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from metricbuffer.aggregation.accumulator import AccumulatorTable, Direction
from metricbuffer.codec.keys import decode_key
from metricbuffer.schema.errors import (
    ErrorSeverity,
    KeyCodecError,
    MetricBufferError,
    TransportError,
)

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[MetricBufferError], None]

_TRANSPORT_METHODS: dict[Direction, str] = {
    Direction.INCREMENT: "increment_by",
    Direction.DECREMENT: "decrement_by",
}


@dataclass(frozen=True)
class FlushResult:
    """Outcome of a single drain.

    Attributes
    ----------
    direction:
        The direction that was drained.
    emitted:
        Number of series delivered to the transport.
    dropped:
        Number of series whose key could not be decoded.
    failed:
        Number of series whose transport call raised.
    """

    direction: Direction
    emitted: int = 0
    dropped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        """Number of non-zero series taken out of the table."""
        return self.emitted + self.dropped + self.failed


class FlushExecutor:
    """Drain :class:`AccumulatorTable` totals into a transport.

    Parameters
    ----------
    tables:
        One table per direction.
    transport:
        Downstream transport, or ``None`` to make every drain a no-op.
    on_error:
        Optional side channel receiving a :class:`KeyCodecError` or
        :class:`TransportError` for each series that was not delivered.
    """

    def __init__(
        self,
        tables: dict[Direction, AccumulatorTable],
        transport: Any | None,  # noqa: ANN401
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._tables = tables
        self._transport = transport
        self._on_error = on_error

    def drain(self, direction: Direction) -> FlushResult:
        """Deliver every non-zero total buffered for *direction*."""
        if self._transport is None:
            return FlushResult(direction)

        emit = getattr(self._transport, _TRANSPORT_METHODS[direction])
        emitted = dropped = failed = 0

        for key, total in self._tables[direction].take_nonzero():
            decoded = decode_key(key)
            if decoded is None or not decoded.metric:
                dropped += 1
                logger.warning(
                    "Dropping %s total %s for undecodable key %r",
                    direction.value,
                    total,
                    key,
                )
                self._report(
                    KeyCodecError(
                        f"Cannot decode metric key {key!r}",
                        severity=ErrorSeverity.LOW,
                        context={"key": key, "total": total, "direction": direction.value},
                    )
                )
                continue

            try:
                emit(decoded.metric, total, decoded.tags)
            except Exception as exc:
                failed += 1
                logger.exception(
                    "Transport %s failed for %s (total=%s)",
                    _TRANSPORT_METHODS[direction],
                    key,
                    total,
                )
                error = TransportError(
                    f"Transport {_TRANSPORT_METHODS[direction]} failed for {decoded.metric!r}: {exc}",
                    severity=ErrorSeverity.MEDIUM,
                    context={
                        "metric": decoded.metric,
                        "tags": decoded.tags,
                        "total": total,
                        "direction": direction.value,
                    },
                )
                error.__cause__ = exc
                self._report(error)
            else:
                emitted += 1

        result = FlushResult(direction, emitted=emitted, dropped=dropped, failed=failed)
        if result.total:
            logger.debug(
                "Flushed %s: emitted=%d dropped=%d failed=%d",
                direction.value,
                emitted,
                dropped,
                failed,
            )
        return result

    def _report(self, error: MetricBufferError) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("on_error callback raised while reporting %r", error)
