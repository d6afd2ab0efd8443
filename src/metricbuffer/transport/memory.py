"""In-process transports: one that discards, one that remembers.

Shipped in this module
----------------------
- NullTransport       — discards every call
- TransportCall       — one recorded transport call
- RecordingTransport  — keeps every call in memory, in order
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field

from metricbuffer.transport.base import MetricTransport, Tags


class NullTransport(MetricTransport):
    """Transport that silently discards everything.

    Unlike passing ``transport=None`` to the collector, buffering and
    flushing still happen; only the final delivery is dropped.
    """

    def increment_by(self, metric: str, value: float, tags: Tags = None) -> None:
        """Discard."""

    def decrement_by(self, metric: str, value: float, tags: Tags = None) -> None:
        """Discard."""

    def timing(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Discard."""

    def gauge(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Discard."""

    def histogram(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Discard."""

    def set(
        self, metric: str, value: object, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Discard."""


@dataclass(frozen=True)
class TransportCall:
    """A single call received by a :class:`RecordingTransport`.

    Attributes
    ----------
    method:
        Transport method name, e.g. ``"increment_by"``.
    metric:
        Metric name.
    value:
        Value passed with the call.
    tags:
        Tag list, or ``None``.
    sample:
        Sample rate for pass-through calls; always ``None`` for counters.
    """

    method: str
    metric: str
    value: object
    tags: tuple[str, ...] | None = None
    sample: float | None = None


@dataclass
class RecordingTransport(MetricTransport):
    """Transport that records every call for later inspection.

    Useful in tests and for embedding hosts that want to route flushed
    totals somewhere themselves.

    Examples
    --------
    >>> transport = RecordingTransport()
    >>> transport.increment_by("jobs", 3, ["queue:a"])
    >>> transport.calls[0]
    TransportCall(method='increment_by', metric='jobs', value=3, tags=('queue:a',), sample=None)
    """

    calls: list[TransportCall] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def _record(
        self, method: str, metric: str, value: object, tags: Tags, sample: float | None = None
    ) -> None:
        call = TransportCall(
            method=method,
            metric=metric,
            value=value,
            tags=tuple(tags) if tags is not None else None,
            sample=sample,
        )
        with self._lock:
            self.calls.append(call)

    def increment_by(self, metric: str, value: float, tags: Tags = None) -> None:
        self._record("increment_by", metric, value, tags)

    def decrement_by(self, metric: str, value: float, tags: Tags = None) -> None:
        self._record("decrement_by", metric, value, tags)

    def timing(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._record("timing", metric, value, tags, sample)

    def gauge(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._record("gauge", metric, value, tags, sample)

    def histogram(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._record("histogram", metric, value, tags, sample)

    def set(
        self, metric: str, value: object, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._record("set", metric, value, tags, sample)

    def calls_for(self, method: str) -> list[TransportCall]:
        """Return the recorded calls to *method*, oldest first."""
        with self._lock:
            return [call for call in self.calls if call.method == method]

    def clear(self) -> None:
        """Forget every recorded call."""
        with self._lock:
            self.calls.clear()
