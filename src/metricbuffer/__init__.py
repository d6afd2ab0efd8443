"""metricbuffer-sdk — client-side buffering for statsd-style counters.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Quick-start
-----------
>>> from metricbuffer import Collector, ManualTimerFactory, RecordingTransport
>>> transport = RecordingTransport()
>>> timers = ManualTimerFactory()
>>> collector = Collector(transport, timer_factory=timers)
>>> collector.increment("req.count")
>>> collector.increment("req.count")
>>> collector.increment("req.count", 0.5)
>>> timers.advance(10000)
>>> [(c.method, c.metric, c.value) for c in transport.calls]
[('increment_by', 'req.count', 4.0)]
"""
from __future__ import annotations

__version__: str = "0.1.0"

from metricbuffer.collector import Collector

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
from metricbuffer.schema.config import DEFAULT_FLUSH_DELAY_MS, CollectorConfig
from metricbuffer.schema.errors import (
    ConfigurationError,
    ErrorSeverity,
    KeyCodecError,
    MetricBufferError,
    SchedulerError,
    TransportError,
)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
from metricbuffer.config.defaults import DEFAULT_CONFIG
from metricbuffer.config.loader import ConfigLoader
from metricbuffer.config.schema import validate_config

# ---------------------------------------------------------------------------
# Codec and aggregation
# ---------------------------------------------------------------------------
from metricbuffer.codec.keys import DecodedKey, decode_key, encode_key
from metricbuffer.aggregation.accumulator import AccumulatorTable, Direction
from metricbuffer.aggregation.executor import FlushExecutor, FlushResult
from metricbuffer.aggregation.scheduler import FlushScheduler, ScheduleState

# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------
from metricbuffer.timers.asyncio_timer import AsyncioTimerFactory
from metricbuffer.timers.base import TimerFactory, TimerHandle
from metricbuffer.timers.manual import ManualTimerFactory
from metricbuffer.timers.threading_timer import ThreadingTimerFactory

# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------
from metricbuffer.transport.base import MetricTransport
from metricbuffer.transport.console import ConsoleTransport
from metricbuffer.transport.dogstatsd import DogStatsdTransport
from metricbuffer.transport.memory import NullTransport, RecordingTransport, TransportCall

__all__ = [
    "__version__",
    "Collector",
    # schema
    "CollectorConfig",
    "DEFAULT_FLUSH_DELAY_MS",
    "ErrorSeverity",
    "MetricBufferError",
    "ConfigurationError",
    "KeyCodecError",
    "TransportError",
    "SchedulerError",
    # config
    "DEFAULT_CONFIG",
    "ConfigLoader",
    "validate_config",
    # codec
    "DecodedKey",
    "encode_key",
    "decode_key",
    # aggregation
    "Direction",
    "AccumulatorTable",
    "FlushScheduler",
    "ScheduleState",
    "FlushExecutor",
    "FlushResult",
    # timers
    "TimerFactory",
    "TimerHandle",
    "ThreadingTimerFactory",
    "AsyncioTimerFactory",
    "ManualTimerFactory",
    # transports
    "MetricTransport",
    "NullTransport",
    "RecordingTransport",
    "TransportCall",
    "ConsoleTransport",
    "DogStatsdTransport",
]
