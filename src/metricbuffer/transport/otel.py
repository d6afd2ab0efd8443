"""OpenTelemetry transport for metricbuffer-sdk.

Maps flushed counter totals and pass-through observations onto instruments
from the globally configured OpenTelemetry ``MeterProvider``.  Requires the
``otel`` extra (``opentelemetry-api``); this module is not imported by
``metricbuffer.transport`` so the rest of the SDK does not depend on it.

Mapping
-------
increment_by / decrement_by  → UpDownCounter.add(+value / -value)
timing / histogram           → Histogram.record
gauge                        → Gauge.set
set                          → Counter.add(1) with a ``set.member`` attribute

Tags of the form ``"key:value"`` become attributes ``{key: value}``; a bare
tag ``"flag"`` becomes ``{"flag": "true"}``.
"""
from __future__ import annotations

import logging
import threading
from typing import Any

from opentelemetry import metrics as otel_metrics

from metricbuffer.transport.base import MetricTransport, Tags

logger = logging.getLogger(__name__)


def tags_to_attributes(tags: Tags) -> dict[str, str]:
    """Convert a statsd-style tag list into an OTel attribute dict.

    Examples
    --------
    >>> tags_to_attributes(["env:prod", "canary"])
    {'env': 'prod', 'canary': 'true'}
    """
    attributes: dict[str, str] = {}
    for tag in tags or ():
        key, sep, value = tag.partition(":")
        attributes[key] = value if sep else "true"
    return attributes


class OTelTransport(MetricTransport):
    """Record metrics through the OpenTelemetry metrics API.

    Parameters
    ----------
    meter_name:
        Instrumentation scope name passed to ``get_meter``.
    meter:
        Explicit meter to use instead of the global provider's.
    """

    def __init__(
        self,
        meter_name: str = "metricbuffer",
        meter: Any | None = None,  # noqa: ANN401
    ) -> None:
        self._meter = meter or otel_metrics.get_meter(meter_name)
        self._lock = threading.Lock()
        self._instruments: dict[tuple[str, str], Any] = {}

    def _instrument(self, kind: str, name: str) -> Any:  # noqa: ANN401
        with self._lock:
            instrument = self._instruments.get((kind, name))
            if instrument is None:
                factory = {
                    "updown": self._meter.create_up_down_counter,
                    "histogram": self._meter.create_histogram,
                    "gauge": self._meter.create_gauge,
                    "counter": self._meter.create_counter,
                }[kind]
                instrument = factory(name=name, description=f"metricbuffer {kind}: {name}")
                self._instruments[(kind, name)] = instrument
                logger.debug("Created OTel %s instrument %r", kind, name)
        return instrument

    def increment_by(self, metric: str, value: float, tags: Tags = None) -> None:
        self._instrument("updown", metric).add(value, attributes=tags_to_attributes(tags))

    def decrement_by(self, metric: str, value: float, tags: Tags = None) -> None:
        self._instrument("updown", metric).add(-value, attributes=tags_to_attributes(tags))

    def timing(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._instrument("histogram", metric).record(value, attributes=tags_to_attributes(tags))

    def gauge(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._instrument("gauge", metric).set(value, attributes=tags_to_attributes(tags))

    def histogram(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._instrument("histogram", metric).record(value, attributes=tags_to_attributes(tags))

    def set(
        self, metric: str, value: object, sample: float | None = None, tags: Tags = None
    ) -> None:
        attributes = tags_to_attributes(tags)
        attributes["set.member"] = str(value)
        self._instrument("counter", metric).add(1, attributes=attributes)

    def __repr__(self) -> str:
        with self._lock:
            count = len(self._instruments)
        return f"OTelTransport(instruments={count})"
