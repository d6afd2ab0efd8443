"""Transport that prints every call to the terminal via ``rich``.

Primarily useful for local development, to watch what a collector would
have sent to a real metrics backend.
"""
from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console
from rich.markup import escape

from metricbuffer.transport.base import MetricTransport, Tags


class ConsoleTransport(MetricTransport):
    """Print each transport call as one line.

    Parameters
    ----------
    console:
        Console to print on.  Defaults to a new stdout ``Console``.

    Examples
    --------
    >>> transport = ConsoleTransport(Console(no_color=True, width=120))
    >>> transport.increment_by("jobs", 2)  # doctest: +ELLIPSIS
    [...] increment_by jobs value=2
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def _print(
        self,
        method: str,
        metric: str,
        value: object,
        tags: Tags,
        sample: float | None = None,
    ) -> None:
        timestamp = datetime.now(tz=timezone.utc).isoformat()
        line = f"[dim]\\[{timestamp}][/dim] [bold]{method}[/bold] {escape(metric)} value={value}"
        if sample is not None:
            line += f" sample={sample}"
        if tags:
            line += f" tags={escape(','.join(tags))}"
        self._console.print(line, highlight=False)

    def increment_by(self, metric: str, value: float, tags: Tags = None) -> None:
        self._print("increment_by", metric, value, tags)

    def decrement_by(self, metric: str, value: float, tags: Tags = None) -> None:
        self._print("decrement_by", metric, value, tags)

    def timing(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._print("timing", metric, value, tags, sample)

    def gauge(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._print("gauge", metric, value, tags, sample)

    def histogram(
        self, metric: str, value: float, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._print("histogram", metric, value, tags, sample)

    def set(
        self, metric: str, value: object, sample: float | None = None, tags: Tags = None
    ) -> None:
        self._print("set", metric, value, tags, sample)
