"""Unit tests for metricbuffer.collector — buffering, flushing, pass-through."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, call

import pytest

from metricbuffer.aggregation.accumulator import Direction
from metricbuffer.collector import Collector
from metricbuffer.schema.config import CollectorConfig
from metricbuffer.schema.errors import ConfigurationError, SchedulerError, TransportError
from metricbuffer.timers.base import TimerCallback, TimerFactory, TimerHandle
from metricbuffer.timers.manual import ManualTimerFactory
from metricbuffer.timers.threading_timer import ThreadingTimerFactory

INTERVAL = 10000


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture()
def collector(client: MagicMock, timers: ManualTimerFactory) -> Collector:
    return Collector(client, timer_factory=timers)


# Each counter entry point paired with the transport method it flushes through.
SAMPLED = [("increment", "increment_by"), ("decrement", "decrement_by")]
VALUED = [("increment_by", "increment_by"), ("decrement_by", "decrement_by")]
ALL_COUNTERS = SAMPLED + VALUED


class _ThreadlessTimers(TimerFactory):
    def schedule(self, delay_ms: float, callback: TimerCallback) -> TimerHandle:
        raise RuntimeError("can't start new thread")


# ---------------------------------------------------------------------------
# Single calls
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("entry,target", ALL_COUNTERS)
class TestSingleCall:
    def test_flushes_after_delay(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        getattr(collector, entry)("test.metric")
        getattr(client, target).assert_not_called()

        timers.advance(INTERVAL)

        getattr(client, target).assert_called_once_with("test.metric", 1, None)

    def test_not_flushed_before_delay(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        getattr(collector, entry)("test.metric")
        timers.advance(INTERVAL - 1)
        getattr(client, target).assert_not_called()
        timers.advance(1)
        getattr(client, target).assert_called_once()

    def test_preserves_tags(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        getattr(collector, entry)("test.metric", None, ["tag:first", "tag:second"])
        timers.advance(INTERVAL)
        getattr(client, target).assert_called_once_with(
            "test.metric", 1, ["tag:first", "tag:second"]
        )

    def test_cleans_up_after_flushes(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        getattr(collector, entry)("test.metric", 1)
        timers.advance(INTERVAL)
        getattr(collector, entry)("test.metric", 1, ["tag:second", "tag:third"])
        timers.advance(INTERVAL)
        getattr(collector, entry)("test.metric", 1)
        timers.advance(INTERVAL)

        assert getattr(client, target).call_args_list == [
            call("test.metric", 1, None),
            call("test.metric", 1, ["tag:second", "tag:third"]),
            call("test.metric", 1, None),
        ]


# ---------------------------------------------------------------------------
# Multiple calls within one window
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("entry,target", ALL_COUNTERS)
class TestMultipleCalls:
    def test_coalesces_into_one_call(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        for _ in range(4):
            getattr(collector, entry)("test.metric")
        getattr(client, target).assert_not_called()

        timers.advance(INTERVAL)

        getattr(client, target).assert_called_once_with("test.metric", 4, None)

    def test_one_call_per_tag_list(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        emit = getattr(collector, entry)
        emit("test.metric", None, ["tag:first", "tag:second"])
        emit("test.metric", None, ["tag:first", "tag:second"])
        emit("test.metric", None, ["tag:second", "tag:third"])
        emit("test.metric", None, ["tag:second", "tag:third"])
        emit("test.metric", None, ["tag:third", "tag:fourth"])

        timers.advance(INTERVAL)

        assert getattr(client, target).call_args_list == [
            call("test.metric", 2, ["tag:first", "tag:second"]),
            call("test.metric", 2, ["tag:second", "tag:third"]),
            call("test.metric", 1, ["tag:third", "tag:fourth"]),
        ]

    def test_cleans_up_after_flushes(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        emit = getattr(collector, entry)
        emit("test.metric")
        emit("test.metric")
        timers.advance(INTERVAL)
        emit("test.metric", None, ["tag:second", "tag:third"])
        emit("test.metric", None, ["tag:second", "tag:third"])
        timers.advance(INTERVAL)
        emit("test.metric")
        emit("test.metric")
        timers.advance(INTERVAL)

        assert getattr(client, target).call_args_list == [
            call("test.metric", 2, None),
            call("test.metric", 2, ["tag:second", "tag:third"]),
            call("test.metric", 2, None),
        ]


# ---------------------------------------------------------------------------
# Sample-rate compensation (increment / decrement)
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("entry,target", SAMPLED)
class TestSampleCompensation:
    def test_single_samples(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        emit = getattr(collector, entry)
        emit("test.metric", 1)
        timers.advance(INTERVAL)
        emit("test.metric", 0.5)
        timers.advance(INTERVAL)
        emit("test.metric", 0.2)
        timers.advance(INTERVAL)

        assert getattr(client, target).call_args_list == [
            call("test.metric", 1, None),
            call("test.metric", 2, None),
            call("test.metric", 5, None),
        ]

    def test_mixed_samples_per_series(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        emit = getattr(collector, entry)
        emit("test.metric", 1, ["tag:first", "tag:second"])
        emit("test.metric", 0.5, ["tag:first", "tag:second"])
        emit("test.metric", None, ["tag:second", "tag:third"])
        emit("test.metric", 0.2, ["tag:second", "tag:third"])
        emit("test.metric", 0.25, ["tag:third", "tag:fourth"])

        timers.advance(INTERVAL)

        assert getattr(client, target).call_args_list == [
            call("test.metric", 3, ["tag:first", "tag:second"]),
            call("test.metric", 6, ["tag:second", "tag:third"]),
            call("test.metric", 4, ["tag:third", "tag:fourth"]),
        ]

    def test_zero_sample_means_uncompensated(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        getattr(collector, entry)("test.metric", 0)
        timers.advance(INTERVAL)
        getattr(client, target).assert_called_once_with("test.metric", 1, None)


# ---------------------------------------------------------------------------
# Explicit values (increment_by / decrement_by)
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("entry,target", VALUED)
class TestExplicitValues:
    def test_respects_single_value(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        getattr(collector, entry)("test.metric", 5)
        timers.advance(INTERVAL)
        getattr(client, target).assert_called_once_with("test.metric", 5, None)

    def test_sums_values(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        for value in (1, 3, 5, 7):
            getattr(collector, entry)("test.metric", value)
        timers.advance(INTERVAL)
        getattr(client, target).assert_called_once_with("test.metric", 16, None)

    def test_sums_values_per_series(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        emit = getattr(collector, entry)
        emit("test.metric", None, ["tag:first", "tag:second"])
        emit("test.metric", 1, ["tag:first", "tag:second"])
        emit("test.metric", 3, ["tag:second", "tag:third"])
        emit("test.metric", 5, ["tag:second", "tag:third"])
        emit("test.metric", 7, ["tag:third", "tag:fourth"])

        timers.advance(INTERVAL)

        assert getattr(client, target).call_args_list == [
            call("test.metric", 2, ["tag:first", "tag:second"]),
            call("test.metric", 8, ["tag:second", "tag:third"]),
            call("test.metric", 7, ["tag:third", "tag:fourth"]),
        ]

    def test_later_windows_start_fresh(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        emit = getattr(collector, entry)
        emit("test.metric")
        emit("test.metric", 1)
        timers.advance(INTERVAL)
        emit("test.metric", 3, ["tag:second", "tag:third"])
        emit("test.metric", 5, ["tag:second", "tag:third"])
        timers.advance(INTERVAL)
        emit("test.metric", 7)
        emit("test.metric", 9)
        timers.advance(INTERVAL)

        assert getattr(client, target).call_args_list == [
            call("test.metric", 2, None),
            call("test.metric", 8, ["tag:second", "tag:third"]),
            call("test.metric", 16, None),
        ]

    def test_explicit_zero_is_not_replaced_by_one(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory,
        entry: str, target: str,
    ) -> None:
        getattr(collector, entry)("test.metric", 0)
        timers.advance(INTERVAL)
        getattr(client, target).assert_not_called()


# ---------------------------------------------------------------------------
# Timing window
# ---------------------------------------------------------------------------


class TestFlushWindow:
    def test_fire_time_is_not_pushed_back_by_later_calls(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector.increment("m")
        timers.advance(6000)
        collector.increment("m")
        timers.advance(4000)
        client.increment_by.assert_called_once_with("m", 2, None)

    def test_calls_after_window_go_to_next_window(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector.increment("m")
        timers.advance(INTERVAL)
        collector.increment("m")
        collector.increment("m")
        assert client.increment_by.call_count == 1
        timers.advance(INTERVAL)
        assert client.increment_by.call_args_list == [
            call("m", 1, None),
            call("m", 2, None),
        ]

    def test_directions_are_independent(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector.increment("m")
        timers.advance(5000)
        collector.decrement("m")
        timers.advance(5000)
        client.increment_by.assert_called_once_with("m", 1, None)
        client.decrement_by.assert_not_called()
        timers.advance(5000)
        client.decrement_by.assert_called_once_with("m", 1, None)

    def test_only_one_timer_per_window(
        self, collector: Collector, timers: ManualTimerFactory
    ) -> None:
        for _ in range(50):
            collector.increment("m")
        assert timers.pending == 1
        assert collector.is_pending(Direction.INCREMENT)
        assert not collector.is_pending(Direction.DECREMENT)

    def test_custom_flush_delay(self, client: MagicMock, timers: ManualTimerFactory) -> None:
        collector = Collector(client, 250, timer_factory=timers)
        collector.increment("m")
        timers.advance(249)
        client.increment_by.assert_not_called()
        timers.advance(1)
        client.increment_by.assert_called_once()

    def test_zero_flush_delay_uses_default(self, client: MagicMock) -> None:
        assert Collector(client, 0).flush_delay == 10000

    def test_negative_flush_delay_rejected(self, client: MagicMock) -> None:
        with pytest.raises(ConfigurationError, match="must not be negative"):
            Collector(client, -1)


# ---------------------------------------------------------------------------
# Key handling
# ---------------------------------------------------------------------------


class TestSeriesKeys:
    def test_tag_order_creates_distinct_series(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector.increment("m", None, ["a", "b"])
        collector.increment("m", None, ["b", "a"])
        timers.advance(INTERVAL)
        assert client.increment_by.call_args_list == [
            call("m", 1, ["a", "b"]),
            call("m", 1, ["b", "a"]),
        ]

    def test_empty_tags_share_series_with_no_tags(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector.increment("m", None, [])
        collector.increment("m")
        timers.advance(INTERVAL)
        client.increment_by.assert_called_once_with("m", 2, None)

    def test_flushed_series_stay_in_table_at_zero(
        self, collector: Collector, timers: ManualTimerFactory
    ) -> None:
        collector.increment("m", None, ["a"])
        timers.advance(INTERVAL)
        assert collector.snapshot(Direction.INCREMENT) == {"m[a]": 0.0}

    def test_undecodable_key_is_dropped(
        self, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        errors: list[object] = []
        collector = Collector(client, timer_factory=timers, on_error=errors.append)
        collector.increment("")
        collector.increment("ok")
        timers.advance(INTERVAL)
        client.increment_by.assert_called_once_with("ok", 1, None)
        assert len(errors) == 1
        assert collector.snapshot(Direction.INCREMENT) == {"": 0.0, "ok": 0.0}


# ---------------------------------------------------------------------------
# Disabled mode
# ---------------------------------------------------------------------------


class TestDisabled:
    def _exercise(self, collector: Collector) -> None:
        collector.increment("m")
        collector.increment("m", 0.5, ["a"])
        collector.increment_by("m", 3)
        collector.decrement("m")
        collector.decrement_by("m", 2, ["a"])
        collector.timing("t", 12)
        collector.gauge("g", 1)
        collector.histogram("h", 5)
        collector.set("s", "user-1")
        collector.flush()

    def test_no_transport_is_a_silent_no_op(self, timers: ManualTimerFactory) -> None:
        collector = Collector(None, timer_factory=timers)
        self._exercise(collector)
        timers.advance(INTERVAL)
        assert collector.is_enabled is False
        assert timers.pending == 0
        assert collector.snapshot(Direction.INCREMENT) == {}

    def test_disabled_config_ignores_transport(
        self, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector = Collector(
            client, timer_factory=timers, config=CollectorConfig(enabled=False)
        )
        self._exercise(collector)
        timers.advance(INTERVAL)
        assert client.method_calls == []


# ---------------------------------------------------------------------------
# Pass-through
# ---------------------------------------------------------------------------


class TestPassThrough:
    @pytest.mark.parametrize("method", ["timing", "gauge", "histogram", "set"])
    def test_forwards_immediately(
        self, collector: Collector, client: MagicMock, method: str
    ) -> None:
        getattr(collector, method)("m", 42, 0.5, ["a:b"])
        getattr(client, method).assert_called_once_with("m", 42, 0.5, ["a:b"])

    def test_defaults_forwarded_as_none(self, collector: Collector, client: MagicMock) -> None:
        collector.timing("m", 12)
        client.timing.assert_called_once_with("m", 12, None, None)

    def test_transport_failure_is_reported_not_raised(self, timers: ManualTimerFactory) -> None:
        client = MagicMock()
        client.gauge.side_effect = RuntimeError("socket closed")
        errors: list[object] = []
        collector = Collector(client, timer_factory=timers, on_error=errors.append)

        collector.gauge("g", 1)

        assert len(errors) == 1
        assert isinstance(errors[0], TransportError)


# ---------------------------------------------------------------------------
# Scheduling failures
# ---------------------------------------------------------------------------


class TestSchedulingFailures:
    def test_backend_crash_does_not_escape_increment(self, client: MagicMock) -> None:
        errors: list[object] = []
        collector = Collector(client, timer_factory=_ThreadlessTimers(), on_error=errors.append)

        collector.increment("m")

        assert collector.snapshot(Direction.INCREMENT) == {"m": 1.0}
        assert len(errors) == 1
        assert isinstance(errors[0], SchedulerError)
        assert isinstance(errors[0].__cause__, RuntimeError)

    def test_buffered_total_still_flushable(self, client: MagicMock) -> None:
        collector = Collector(client, timer_factory=_ThreadlessTimers())
        collector.decrement_by("m", 3)
        collector.flush()
        client.decrement_by.assert_called_once_with("m", 3, None)


# ---------------------------------------------------------------------------
# Transport failures during flush
# ---------------------------------------------------------------------------


class TestFlushFailures:
    def test_failure_does_not_stop_other_series(self, timers: ManualTimerFactory) -> None:
        client = MagicMock()
        client.increment_by.side_effect = [RuntimeError("boom"), None]
        errors: list[object] = []
        collector = Collector(client, timer_factory=timers, on_error=errors.append)

        collector.increment("first")
        collector.increment("second")
        timers.advance(INTERVAL)

        assert client.increment_by.call_count == 2
        assert isinstance(errors[0], TransportError)
        assert isinstance(errors[0].__cause__, RuntimeError)

    def test_failed_total_is_not_retried(self, timers: ManualTimerFactory) -> None:
        client = MagicMock()
        client.increment_by.side_effect = [RuntimeError("boom"), None]
        collector = Collector(client, timer_factory=timers)

        collector.increment("m")
        timers.advance(INTERVAL)
        collector.increment("m")
        timers.advance(INTERVAL)

        assert client.increment_by.call_args_list[-1] == call("m", 1, None)

    def test_raising_error_callback_is_contained(self, timers: ManualTimerFactory) -> None:
        client = MagicMock()
        client.increment_by.side_effect = RuntimeError("boom")

        def bad_callback(error: object) -> None:
            raise ValueError("callback broke")

        collector = Collector(client, timer_factory=timers, on_error=bad_callback)
        collector.increment("m")
        timers.advance(INTERVAL)


# ---------------------------------------------------------------------------
# flush / close / context manager
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_flush_drains_both_directions_now(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector.increment("up", None, ["a"])
        collector.decrement_by("down", 3)

        results = collector.flush()

        client.increment_by.assert_called_once_with("up", 1, ["a"])
        client.decrement_by.assert_called_once_with("down", 3, None)
        assert [r.emitted for r in results] == [1, 1]
        assert timers.pending == 0

    def test_timer_after_flush_does_not_resend(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector.increment("m")
        collector.flush()
        timers.advance(INTERVAL)
        client.increment_by.assert_called_once_with("m", 1, None)

    def test_add_after_flush_rearms(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector.increment("m")
        collector.flush()
        collector.increment("m")
        timers.advance(INTERVAL)
        assert client.increment_by.call_count == 2

    def test_close_flushes_and_disables(
        self, collector: Collector, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector.increment("m")
        collector.close()
        collector.increment("m")
        timers.advance(INTERVAL)

        client.increment_by.assert_called_once_with("m", 1, None)
        assert collector.closed is True
        assert collector.is_enabled is False

    def test_close_without_flush_discards_pending_timer(
        self, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector = Collector(
            client, timer_factory=timers, config=CollectorConfig(flush_on_close=False)
        )
        collector.increment("m")
        collector.close()
        timers.advance(INTERVAL)
        client.increment_by.assert_not_called()

    def test_close_is_idempotent(self, collector: Collector, client: MagicMock) -> None:
        collector.increment("m")
        collector.close()
        collector.close()
        client.increment_by.assert_called_once()

    def test_add_during_final_drain_is_ignored(
        self, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        collector = Collector(client, timer_factory=timers)
        client.increment_by.side_effect = lambda *args: collector.increment("late")

        collector.increment("m")
        collector.close()

        assert collector.snapshot(Direction.INCREMENT) == {"m": 0.0}
        assert collector.is_pending(Direction.INCREMENT) is False
        assert timers.pending == 0

    def test_context_manager_closes(self, client: MagicMock, timers: ManualTimerFactory) -> None:
        with Collector(client, timer_factory=timers) as collector:
            collector.increment("m")
        client.increment_by.assert_called_once_with("m", 1, None)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_default_flush_delay(self, client: MagicMock) -> None:
        assert Collector(client).flush_delay == 10000

    def test_from_config_uses_config_delay(
        self, client: MagicMock, timers: ManualTimerFactory
    ) -> None:
        config = CollectorConfig(flush_delay_ms=500)
        collector = Collector.from_config(config, client, timer_factory=timers)
        assert collector.flush_delay == 500
        assert collector.config is config

    def test_default_timer_backend_is_threading(self, client: MagicMock) -> None:
        collector = Collector(client)
        assert isinstance(collector._timers, ThreadingTimerFactory)

    def test_repr(self, collector: Collector) -> None:
        collector.increment("m")
        text = repr(collector)
        assert "enabled=True" in text
        assert "series=1" in text

    def test_from_file_yaml(
        self, client: MagicMock, timers: ManualTimerFactory, tmp_path: Path
    ) -> None:
        config_file = tmp_path / "metricbuffer.yaml"
        config_file.write_text("flush_delay_ms: 250\nflush_on_close: false\n")
        collector = Collector.from_file(config_file, client, timer_factory=timers)
        assert collector.flush_delay == 250
        assert collector.config.flush_on_close is False

    def test_from_file_json(
        self, client: MagicMock, timers: ManualTimerFactory, tmp_path: Path
    ) -> None:
        config_file = tmp_path / "metricbuffer.json"
        config_file.write_text('{"flush_delay_ms": 750}')
        collector = Collector.from_file(str(config_file), client, timer_factory=timers)
        collector.increment("m")
        timers.advance(750)
        client.increment_by.assert_called_once_with("m", 1, None)

    def test_from_file_missing_raises(self, client: MagicMock, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            Collector.from_file(tmp_path / "absent.yml", client)

    def test_from_env(
        self, client: MagicMock, timers: ManualTimerFactory, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("COLLTEST_FLUSH_DELAY_MS", "400")
        collector = Collector.from_env(client, prefix="COLLTEST_", timer_factory=timers)
        assert collector.flush_delay == 400

    def test_from_env_disabled(self, client: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLLTEST_ENABLED", "false")
        collector = Collector.from_env(client, prefix="COLLTEST_")
        assert collector.is_enabled is False
        assert collector.transport is None
