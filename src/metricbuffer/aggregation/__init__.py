"""Aggregation engine: running totals, flush scheduling, and draining."""
from __future__ import annotations

from metricbuffer.aggregation.accumulator import AccumulatorTable, Direction
from metricbuffer.aggregation.executor import FlushExecutor, FlushResult
from metricbuffer.aggregation.scheduler import FlushScheduler, ScheduleState

__all__ = [
    "Direction",
    "AccumulatorTable",
    "FlushScheduler",
    "ScheduleState",
    "FlushExecutor",
    "FlushResult",
]
