"""Adapter for DogStatsD-style clients.

Clients such as ``datadog.DogStatsd`` name their counter methods
``increment``/``decrement`` and take the amount as ``value=``.  This adapter
maps the transport interface onto that shape without importing any client
library: pass in whatever client instance the application already owns.
"""
from __future__ import annotations

from typing import Any

from metricbuffer.transport.base import MetricTransport, Tags


def _tag_list(tags: Tags) -> list[str] | None:
    return list(tags) if tags else None


class DogStatsdTransport(MetricTransport):
    """Forward transport calls to a DogStatsD-style *client*.

    Examples
    --------
    ::

        from datadog import DogStatsd
        collector = Collector(DogStatsdTransport(DogStatsd(host="localhost")))
    """

    def __init__(self, client: Any) -> None:  # noqa: ANN401
        self._client = client

    @property
    def client(self) -> Any:  # noqa: ANN401
        return self._client

    def increment_by(self, metric: str, value: float, tags: Tags = None) -> None:
        self._client.increment(metric, value=value, tags=_tag_list(tags))

    def decrement_by(self, metric: str, value: float, tags: Tags = None) -> None:
        self._client.decrement(metric, value=value, tags=_tag_list(tags))

    def timing(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._client.timing(metric, value, tags=_tag_list(tags), sample_rate=sample)

    def gauge(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._client.gauge(metric, value, tags=_tag_list(tags), sample_rate=sample)

    def histogram(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._client.histogram(metric, value, tags=_tag_list(tags), sample_rate=sample)

    def set(
        self, metric: str, value: object, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._client.set(metric, value, tags=_tag_list(tags), sample_rate=sample)

    def __repr__(self) -> str:
        return f"DogStatsdTransport(client={self._client!r})"
