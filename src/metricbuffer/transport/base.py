"""Downstream transport interface for metricbuffer-sdk.

A transport is whatever actually ships metrics onward, typically a
statsd-style client.  The collector calls :meth:`MetricTransport.increment_by`
and :meth:`MetricTransport.decrement_by` once per series per flush, and
forwards ``timing``, ``gauge``, ``histogram`` and ``set`` straight through.

Subclassing ``MetricTransport`` is optional: the collector accepts any
object exposing the same six methods.

Shipped in this module
----------------------
- MetricTransport  — ABC for all transports
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

Tags = Sequence[str] | None


class MetricTransport(ABC):
    """Abstract base class for downstream metric transports."""

    @abstractmethod
    def increment_by(self, metric: str, value: float, tags: Tags = None) -> None:
        """Add *value* to the counter *metric*."""

    @abstractmethod
    def decrement_by(self, metric: str, value: float, tags: Tags = None) -> None:
        """Subtract *value* from the counter *metric*."""

    @abstractmethod
    def timing(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Record a duration in milliseconds."""

    @abstractmethod
    def gauge(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Set a gauge to *value*."""

    @abstractmethod
    def histogram(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Record one observation in a histogram."""

    @abstractmethod
    def set(
        self, metric: str, value: object, sample: float | None = None, tags: Tags = None
    ) -> None:
        """Record *value* as a member of a unique-count set."""
