"""Config schema re-export and validation helper for metricbuffer-sdk.

Re-exports ``CollectorConfig`` so that ``metricbuffer.config`` is a complete
import path for consumers who prefer not to reach into ``metricbuffer.schema``.
"""
from __future__ import annotations

from pydantic import ValidationError

from metricbuffer.schema.config import CollectorConfig
from metricbuffer.schema.errors import ConfigurationError

__all__ = ["CollectorConfig", "validate_config"]


def validate_config(data: dict[str, object]) -> CollectorConfig:
    """Validate a raw dict against the ``CollectorConfig`` schema.

    Parameters
    ----------
    data:
        Unvalidated key/value mapping.

    Returns
    -------
    CollectorConfig
        Validated and typed configuration.

    Raises
    ------
    ConfigurationError
        If the data fails Pydantic validation.  The original
        ``ValidationError`` is attached as the ``__cause__``.

    Examples
    --------
    >>> validate_config({"flush_delay_ms": 250}).flush_delay_ms
    250.0
    """
    try:
        return CollectorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Configuration validation failed: {exc}",
            context={"errors": exc.errors()},
        ) from exc
