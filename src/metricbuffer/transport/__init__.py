"""Downstream transports for metricbuffer-sdk.

``OTelTransport`` lives in :mod:`metricbuffer.transport.otel` and is not
re-exported here because it needs the optional ``otel`` extra.
"""
from __future__ import annotations

from metricbuffer.transport.base import MetricTransport, Tags
from metricbuffer.transport.console import ConsoleTransport
from metricbuffer.transport.dogstatsd import DogStatsdTransport
from metricbuffer.transport.memory import NullTransport, RecordingTransport, TransportCall

__all__ = [
    "Tags",
    "MetricTransport",
    "NullTransport",
    "RecordingTransport",
    "TransportCall",
    "ConsoleTransport",
    "DogStatsdTransport",
]
