"""Config package for metricbuffer-sdk.

Provides configuration loading, validation, and defaults.
"""
from __future__ import annotations

from metricbuffer.config.defaults import DEFAULT_CONFIG
from metricbuffer.config.loader import ConfigLoader
from metricbuffer.config.schema import CollectorConfig, validate_config

__all__ = [
    "CollectorConfig",
    "validate_config",
    "ConfigLoader",
    "DEFAULT_CONFIG",
]
