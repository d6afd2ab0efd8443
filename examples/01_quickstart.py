#!/usr/bin/env python3
"""Example: Quickstart

Buffers a burst of counter calls and prints the single flushed call per
series using the console transport.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install metricbuffer-sdk
"""
from __future__ import annotations

import time

import metricbuffer
from metricbuffer import Collector, ConsoleTransport


def main() -> None:
    print(f"metricbuffer-sdk version: {metricbuffer.__version__}")

    # Step 1: Flush every 500 ms to the terminal
    collector = Collector(ConsoleTransport(), flush_delay=500)

    # Step 2: A burst of increments, some sampled at 50%
    for _ in range(10):
        collector.increment("req.count", tags=["route:/home"])
    for _ in range(5):
        collector.increment("req.count", 0.5, ["route:/search"])
    collector.decrement_by("queue.depth", 3)

    # Step 3: Pass-through calls are sent immediately
    collector.timing("req.latency", 42, tags=["route:/home"])

    # Step 4: Wait for the window to close
    time.sleep(1.0)
    collector.close()


if __name__ == "__main__":
    main()
