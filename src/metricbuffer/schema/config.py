"""Collector configuration schema for metricbuffer-sdk.

``CollectorConfig`` is a Pydantic v2 model that acts as the validated,
strongly-typed boundary object between raw configuration sources (YAML files,
environment variables, in-memory dicts) and the collector.

Shipped in this module
----------------------
- CollectorConfig  — Pydantic v2 model with class-method loaders
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

DEFAULT_FLUSH_DELAY_MS: float = 10000.0
"""Delay between the first buffered event and its flush, in milliseconds."""


class CollectorConfig(BaseModel):
    """Validated runtime configuration for a buffering collector.

    All fields have defaults so that a collector can start with zero
    configuration.

    Parameters
    ----------
    flush_delay_ms:
        Fixed delay between the first buffered event in a quiet period and
        the flush that drains it.  Must be positive.
    enabled:
        When ``False`` the collector behaves as if no transport were
        configured: every emitting call is a silent no-op.
    timer_backend:
        ``"thread"`` schedules flushes on ``threading.Timer`` threads,
        ``"asyncio"`` on the running event loop.
    flush_on_close:
        Whether ``Collector.close()`` drains outstanding totals before
        shutting the timers down.
    custom_settings:
        Arbitrary key/value store for transport-specific settings.
    """

    model_config = {"extra": "allow", "validate_assignment": True}

    flush_delay_ms: float = Field(default=DEFAULT_FLUSH_DELAY_MS, gt=0)
    enabled: bool = Field(default=True)
    timer_backend: Literal["thread", "asyncio"] = Field(default="thread")
    flush_on_close: bool = Field(default=True)
    custom_settings: dict[str, object] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _normalise_delay(cls, values: Any) -> Any:  # noqa: ANN401
        """Treat an explicit ``None`` delay as "use the default"."""
        if isinstance(values, dict) and "flush_delay_ms" in values:
            if values["flush_delay_ms"] is None:
                values = dict(values)
                values.pop("flush_delay_ms")
        return values

    # ------------------------------------------------------------------
    # Class-method loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CollectorConfig":
        """Load and validate configuration from a YAML file.

        Raises
        ------
        FileNotFoundError
            If ``path`` does not exist.
        pydantic.ValidationError
            If the parsed data fails validation.
        """
        resolved = Path(path)
        if not resolved.exists():
            raise FileNotFoundError(f"Config file not found: {resolved}")
        with resolved.open(encoding="utf-8") as fh:
            raw: object = yaml.safe_load(fh)
        data: dict[str, object] = dict(raw) if isinstance(raw, dict) else {}
        return cls.model_validate(data)

    @classmethod
    def from_env(cls, prefix: str = "METRICBUFFER_") -> "CollectorConfig":
        """Build configuration from environment variables.

        Variables are mapped by stripping the ``prefix`` and lower-casing the
        remainder.  For example ``METRICBUFFER_FLUSH_DELAY_MS=500`` maps to
        ``flush_delay_ms=500``.

        Boolean values accept ``"true"`` / ``"1"`` / ``"yes"`` as truthy and
        anything else as falsy (case-insensitive).
        """
        data: dict[str, object] = {}
        bool_fields = {"enabled", "flush_on_close"}

        for raw_key, raw_value in os.environ.items():
            if not raw_key.startswith(prefix):
                continue
            key = raw_key[len(prefix):].lower()
            if key in bool_fields:
                data[key] = raw_value.lower() in {"true", "1", "yes"}
            elif key == "custom_settings":
                try:
                    parsed = json.loads(raw_value)
                    data[key] = parsed if isinstance(parsed, dict) else {}
                except json.JSONDecodeError:
                    data[key] = {}
            else:
                data[key] = raw_value

        return cls.model_validate(data)

    def merge(self, overrides: "CollectorConfig") -> "CollectorConfig":
        """Produce a new config with non-default values from *overrides*.

        ``custom_settings`` is merged key by key; every other field in
        *overrides* that differs from the class default replaces the value
        in *self*.  Neither input is mutated.
        """
        merged = self.model_dump()
        default_data = CollectorConfig().model_dump()

        for key, override_value in overrides.model_dump().items():
            if override_value == default_data.get(key):
                continue
            if key == "custom_settings":
                settings = dict(merged.get("custom_settings", {}))  # type: ignore[arg-type]
                if isinstance(override_value, dict):
                    settings.update(override_value)
                merged["custom_settings"] = settings
            else:
                merged[key] = override_value

        return CollectorConfig.model_validate(merged)
