"""Error taxonomy for metricbuffer-sdk.

All exceptions raised by metricbuffer derive from ``MetricBufferError`` so
that callers can catch the entire family with a single
``except MetricBufferError`` clause while still being able to distinguish
individual failure modes.

Normal metric emission never raises.  These classes surface at
configuration time, or are handed to the collector's ``on_error`` callback
when a downstream transport fails during a flush.

Shipped in this module
----------------------
- ErrorSeverity      — ordered severity enum
- MetricBufferError  — root exception with severity and context payload
- Domain subclasses  — ConfigurationError, KeyCodecError, TransportError,
                       SchedulerError
"""
from __future__ import annotations

from enum import Enum


class ErrorSeverity(str, Enum):
    """Ordered severity levels for ``MetricBufferError`` instances.

    Severity is advisory metadata only; it lets logging and alerting
    infrastructure filter by impact level.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class MetricBufferError(Exception):
    """Root exception for all metricbuffer failures.

    Parameters
    ----------
    message:
        Human-readable description of what went wrong.
    severity:
        Advisory ``ErrorSeverity`` level.  Defaults to ``HIGH``.
    context:
        Optional dict of structured metadata (metric names, keys, totals)
        that helps diagnostics without requiring log scraping.

    Examples
    --------
    >>> try:
    ...     raise MetricBufferError("something broke", ErrorSeverity.MEDIUM)
    ... except MetricBufferError as exc:
    ...     print(exc.severity.value)
    medium
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.severity: ErrorSeverity = severity
        self.context: dict[str, object] = context or {}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"message={str(self)!r}, "
            f"severity={self.severity.value!r})"
        )


class ConfigurationError(MetricBufferError):
    """Raised when configuration loading or validation fails.

    Examples: non-positive flush delay, unknown timer backend, bad YAML.
    """


class KeyCodecError(MetricBufferError):
    """Raised for an encoded metric key that cannot be decoded."""


class TransportError(MetricBufferError):
    """Wraps an exception raised by the downstream metrics transport."""


class SchedulerError(MetricBufferError):
    """Raised when a timer backend cannot schedule a flush."""
