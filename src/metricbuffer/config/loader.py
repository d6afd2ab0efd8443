"""Configuration loader for metricbuffer-sdk.

``ConfigLoader`` resolves a ``CollectorConfig`` from YAML files, JSON files,
environment variables, or auto-discovers the first available source by
searching well-known paths.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import IO, Callable

import yaml

from metricbuffer.config.defaults import DEFAULT_CONFIG
from metricbuffer.config.schema import validate_config
from metricbuffer.schema.config import CollectorConfig
from metricbuffer.schema.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Ordered list of paths searched by load_auto()
_AUTO_SEARCH_PATHS: tuple[str, ...] = (
    "metricbuffer.yaml",
    "metricbuffer.yml",
    "metricbuffer.json",
    ".metricbuffer.yaml",
    ".metricbuffer.yml",
    ".metricbuffer.json",
)


class ConfigLoader:
    """Loads ``CollectorConfig`` from multiple sources.

    All loader methods return a validated ``CollectorConfig`` instance.

    Examples
    --------
    >>> loader = ConfigLoader()
    >>> loader.load_env(prefix="NO_SUCH_PREFIX_").flush_delay_ms
    10000.0
    """

    def load_yaml(self, path: str | Path) -> CollectorConfig:
        """Load configuration from a YAML file.

        Raises
        ------
        ConfigurationError
            If the file cannot be read or fails validation.
        """
        return self._load_file(path, "YAML", yaml.safe_load, yaml.YAMLError)

    def load_json(self, path: str | Path) -> CollectorConfig:
        """Load configuration from a JSON file.

        Raises
        ------
        ConfigurationError
            If the file cannot be read or fails validation.
        """
        return self._load_file(path, "JSON", json.load, json.JSONDecodeError)

    def _load_file(
        self,
        path: str | Path,
        fmt: str,
        parse: Callable[[IO[str]], object],
        parse_error: type[Exception],
    ) -> CollectorConfig:
        resolved = Path(path)
        if not resolved.is_file():
            raise ConfigurationError(
                f"{fmt} config file not found: {resolved}",
                context={"path": str(resolved), "format": fmt},
            )
        try:
            with resolved.open(encoding="utf-8") as fh:
                raw = parse(fh)
        except parse_error as exc:
            raise ConfigurationError(
                f"Failed to parse {fmt} config at {resolved}: {exc}",
                context={"path": str(resolved), "format": fmt},
            ) from exc

        # An empty file or a top-level scalar/list carries no settings.
        data: dict[str, object] = dict(raw) if isinstance(raw, dict) else {}
        logger.debug("Loaded %s config from %s", fmt, resolved)
        return validate_config(data)

    def load_env(self, prefix: str = "METRICBUFFER_") -> CollectorConfig:
        """Build configuration from environment variables.

        See :meth:`~metricbuffer.schema.config.CollectorConfig.from_env` for
        variable mapping rules.

        Raises
        ------
        ConfigurationError
            If an environment value fails validation.
        """
        data: dict[str, object] = {}
        matching = {k: v for k, v in os.environ.items() if k.startswith(prefix)}
        if matching:
            try:
                data = CollectorConfig.from_env(prefix=prefix).model_dump()
            except ValueError as exc:
                raise ConfigurationError(
                    f"Invalid environment configuration under {prefix!r}: {exc}",
                    context={"prefix": prefix, "keys": sorted(matching)},
                ) from exc
        logger.debug("Loaded config from environment with prefix %r", prefix)
        return validate_config(data)

    def load_auto(
        self,
        search_dir: str | Path | None = None,
        env_prefix: str = "METRICBUFFER_",
    ) -> CollectorConfig:
        """Auto-discover and load configuration.

        Discovery order:

        1. Search *search_dir* (defaults to ``cwd``) for ``metricbuffer.yaml``,
           ``metricbuffer.yml``, ``metricbuffer.json``, and hidden variants.
        2. Overlay environment variables from *env_prefix* on top.
        3. Fall back to ``DEFAULT_CONFIG`` if nothing is found.
        """
        base_dir = Path(search_dir) if search_dir is not None else Path.cwd()
        base_config: CollectorConfig | None = None

        for candidate_name in _AUTO_SEARCH_PATHS:
            candidate = base_dir / candidate_name
            if not candidate.exists():
                continue
            try:
                if candidate.suffix in {".yaml", ".yml"}:
                    base_config = self.load_yaml(candidate)
                else:
                    base_config = self.load_json(candidate)
                logger.info("Auto-loaded metricbuffer config from %s", candidate)
                break
            except ConfigurationError:
                logger.warning("Could not load config from %s; trying next.", candidate)

        if base_config is None:
            base_config = DEFAULT_CONFIG
            logger.debug("No config file found; using DEFAULT_CONFIG.")

        if any(k.startswith(env_prefix) for k in os.environ):
            base_config = base_config.merge(self.load_env(prefix=env_prefix))
            logger.debug("Applied environment variable overlay.")

        return base_config
