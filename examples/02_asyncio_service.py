#!/usr/bin/env python3
"""Example: asyncio service

Runs the collector on the asyncio event loop and forwards flushed totals
to a DogStatsD-style client (stubbed here so the example runs offline).

Usage:
    python examples/02_asyncio_service.py

Requirements:
    pip install metricbuffer-sdk
"""
from __future__ import annotations

import asyncio
import logging

from metricbuffer import Collector, CollectorConfig, DogStatsdTransport


class PrintingStatsd:
    """Stand-in for ``datadog.DogStatsd`` that prints what it would send."""

    def increment(self, metric: str, value: float = 1, tags: list[str] | None = None) -> None:
        print(f"statsd.increment {metric} value={value} tags={tags}")

    def decrement(self, metric: str, value: float = 1, tags: list[str] | None = None) -> None:
        print(f"statsd.decrement {metric} value={value} tags={tags}")

    def timing(self, metric: str, value: float, tags=None, sample_rate=None) -> None:  # type: ignore[no-untyped-def]
        print(f"statsd.timing {metric} {value}ms tags={tags}")

    gauge = histogram = set = timing


async def handle_request(collector: Collector, n: int) -> None:
    collector.increment("jobs.started", tags=["worker:a"])
    await asyncio.sleep(0.01)
    collector.increment("jobs.done", tags=["worker:a"])
    collector.timing("jobs.duration", 10 + n)


async def main_async() -> None:
    config = CollectorConfig(flush_delay_ms=200, timer_backend="asyncio")
    collector = Collector.from_config(config, DogStatsdTransport(PrintingStatsd()))

    await asyncio.gather(*(handle_request(collector, n) for n in range(20)))
    await asyncio.sleep(0.5)
    collector.close()


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
