"""Tests for the metric registration cache."""

from __future__ import annotations

import threading

import pytest

from statsbridge.errors import RegistrationError
from statsbridge.metrics.cache import (
    TIMER_BUCKETS_MS,
    Family,
    MetricRegistrationCache,
    sanitize,
)
from statsbridge.stats import (
    AggregationType,
    MeasureDouble,
    MeasureInt64,
    MeasureUnit,
)
from tests.conftest import RecordingExporter, SpyStats


class RejectingExporter(RecordingExporter):
    def on_register_view(self, view) -> None:
        raise ValueError(f"bad instrument name {view.name}")


class TestSanitize:
    """Tests for backend-visible names."""

    def test_replaces_every_dot(self) -> None:
        """Test all dots become underscores."""
        assert sanitize("requests.total.count") == "requests_total_count"

    def test_leaves_plain_names(self) -> None:
        """Test names without dots are untouched."""
        assert sanitize("uptime") == "uptime"


class TestEnsure:
    """Tests for lazy measure/view registration."""

    def test_first_call_creates_measure_and_view(self, stats: SpyStats, exporter: RecordingExporter) -> None:
        """Test the first ensure creates, views and registers in that order."""
        cache = MetricRegistrationCache(stats)

        measure = cache.ensure(Family.COUNTER, "a.b")

        assert isinstance(measure, MeasureInt64)
        assert stats.creations() == [
            ("create_measure_int64", "a_b"),
            ("create_view", "a_b"),
            ("register_view", "a_b"),
        ]
        assert [view.name for view in exporter.views] == ["a_b"]

    def test_idempotent(self, stats: SpyStats) -> None:
        """Test repeated ensure returns the same handle without backend calls."""
        cache = MetricRegistrationCache(stats)

        first = cache.ensure(Family.COUNTER, "a.b")
        calls = len(stats.calls)
        second = cache.ensure(Family.COUNTER, "a.b")

        assert first is second
        assert len(stats.calls) == calls

    def test_families_are_independent(self, stats: SpyStats) -> None:
        """Test the same name yields distinct measures per family."""
        cache = MetricRegistrationCache(stats)

        counter = cache.ensure(Family.COUNTER, "x")
        gauge = cache.ensure(Family.GAUGE, "x")
        timer = cache.ensure(Family.TIMER, "x")

        assert len({id(counter), id(gauge), id(timer)}) == 3
        assert len(cache) == 3

    def test_cache_keys_by_original_name(self, stats: SpyStats) -> None:
        """Test the dotted name is the key while the backend sees underscores."""
        cache = MetricRegistrationCache(stats)

        measure = cache.ensure(Family.COUNTER, "requests.total.count")

        assert measure.name == "requests_total_count"
        assert cache.measures(Family.COUNTER) == {"requests.total.count": measure}
        assert (Family.COUNTER, "requests.total.count") in cache
        assert (Family.COUNTER, "requests_total_count") not in cache

    @pytest.mark.parametrize(
        ("family", "kind", "unit", "aggregation"),
        [
            (Family.COUNTER, MeasureInt64, MeasureUnit.UNIT, AggregationType.COUNT),
            (Family.GAUGE, MeasureDouble, MeasureUnit.UNIT, AggregationType.SUM),
            (Family.TIMER, MeasureDouble, MeasureUnit.MS, AggregationType.DISTRIBUTION),
        ],
    )
    def test_family_settings(self, stats: SpyStats, exporter: RecordingExporter, family, kind, unit, aggregation) -> None:
        """Test each family gets its measure kind, unit, aggregation and tag keys."""
        cache = MetricRegistrationCache(stats)

        measure = cache.ensure(family, "m")
        view = exporter.views[0]

        assert type(measure) is kind
        assert measure.unit == unit
        assert measure.description == "None provided"
        assert view.aggregation.aggregation_type is aggregation
        assert view.tag_keys == ("status",)

    def test_timer_buckets(self, stats: SpyStats, exporter: RecordingExporter) -> None:
        """Test timers use the fixed millisecond buckets."""
        MetricRegistrationCache(stats).ensure(Family.TIMER, "db.query")

        assert exporter.views[0].aggregation.boundaries == TIMER_BUCKETS_MS
        assert TIMER_BUCKETS_MS == (0, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)

    @pytest.mark.parametrize("alias", ["counter", "counters"])
    def test_accepts_family_strings(self, stats: SpyStats, alias: str) -> None:
        """Test family names and batch keys both resolve."""
        cache = MetricRegistrationCache(stats)

        assert cache.ensure(alias, "a") is cache.ensure(Family.COUNTER, "a")

    def test_rejects_unknown_family(self, stats: SpyStats) -> None:
        """Test an unknown family is a ValueError."""
        with pytest.raises(ValueError, match="unknown metric family"):
            MetricRegistrationCache(stats).ensure("sets", "a")

    def test_failed_view_is_not_retried(self) -> None:
        """Test a measure whose view failed is cached and not created again."""
        stats = SpyStats()
        stats.register_exporter(RejectingExporter())
        cache = MetricRegistrationCache(stats)

        with pytest.raises(RegistrationError, match="bad instrument name"):
            cache.ensure(Family.COUNTER, "9.lives")
        measure = cache.ensure(Family.COUNTER, "9.lives")

        assert measure.name == "9_lives"
        assert stats.creations().count(("create_measure_int64", "9_lives")) == 1

    def test_concurrent_ensure_creates_once(self, stats: SpyStats) -> None:
        """Test racing threads share one measure."""
        cache = MetricRegistrationCache(stats)
        barrier = threading.Barrier(8)
        results = []

        def worker() -> None:
            barrier.wait()
            results.append(cache.ensure(Family.GAUGE, "shared.gauge"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(measure) for measure in results}) == 1
        assert stats.creations().count(("create_measure_double", "shared_gauge")) == 1
