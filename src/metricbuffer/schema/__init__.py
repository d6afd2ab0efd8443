"""Schema package for metricbuffer-sdk: configuration model and errors."""
from __future__ import annotations

from metricbuffer.schema.config import DEFAULT_FLUSH_DELAY_MS, CollectorConfig
from metricbuffer.schema.errors import (
    ConfigurationError,
    ErrorSeverity,
    KeyCodecError,
    MetricBufferError,
    SchedulerError,
    TransportError,
)

__all__ = [
    "CollectorConfig",
    "DEFAULT_FLUSH_DELAY_MS",
    "ErrorSeverity",
    "MetricBufferError",
    "ConfigurationError",
    "KeyCodecError",
    "TransportError",
    "SchedulerError",
]
