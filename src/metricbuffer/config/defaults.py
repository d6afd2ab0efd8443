"""Default configuration for metricbuffer-sdk.

``DEFAULT_CONFIG`` is the starting point used by ``ConfigLoader.load_auto()``
before applying file or environment overrides.
"""
from __future__ import annotations

from metricbuffer.schema.config import DEFAULT_FLUSH_DELAY_MS, CollectorConfig

DEFAULT_CONFIG: CollectorConfig = CollectorConfig(
    flush_delay_ms=DEFAULT_FLUSH_DELAY_MS,
    enabled=True,
    timer_backend="thread",
    flush_on_close=True,
    custom_settings={},
)
"""Baseline ``CollectorConfig`` used when no file or env config is present."""
