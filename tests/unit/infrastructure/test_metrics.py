"""Tests for the zero-impact MetricsCollector."""

from __future__ import annotations

from hublinks.infrastructure.metrics import ClassifierStats, MetricsCollector, ResolverStats


class TestResolverStats:
    def test_default_values(self) -> None:
        stats = ResolverStats()
        assert stats.resolutions == 0
        assert stats.successes == 0
        assert stats.failures == 0
        assert stats.total_links == 0

    def test_snapshot_no_resolutions(self) -> None:
        assert ResolverStats().snapshot()["avg_duration_ms"] == 0.0

    def test_snapshot_with_data(self) -> None:
        stats = ResolverStats(
            resolutions=4,
            successes=3,
            failures=1,
            total_links=9,
            total_duration_ns=2_000_000_000,  # 2s total
        )
        snap = stats.snapshot()
        assert snap["successes"] == 3
        assert snap["total_links"] == 9
        assert snap["avg_duration_ms"] == 500.0


class TestClassifierStats:
    def test_servers_sorted(self) -> None:
        stats = ClassifierStats()
        stats.servers["Pixeldrain"] += 2
        stats.servers["Cf Worker"] += 1
        assert list(stats.snapshot()["servers"]) == ["Cf Worker", "Pixeldrain"]


class TestMetricsCollector:
    def test_record_success_and_failure(self) -> None:
        mc = MetricsCollector()
        mc.record_resolution("hubcloud", 1_000_000, 3)
        mc.record_resolution("hubcloud", 3_000_000, 0)

        snap = mc.snapshot()["resolvers"]["hubcloud"]
        assert snap["resolutions"] == 2
        assert snap["successes"] == 1
        assert snap["failures"] == 1
        assert snap["total_links"] == 3
        assert snap["avg_duration_ms"] == 2.0

    def test_resolvers_tracked_separately(self) -> None:
        mc = MetricsCollector()
        mc.record_resolution("hubcloud", 1, 1)
        mc.record_resolution("hdhub4u", 1, 1)
        assert list(mc.snapshot()["resolvers"]) == ["hdhub4u", "hubcloud"]

    def test_record_anchor(self) -> None:
        mc = MetricsCollector()
        mc.record_anchor("Pixeldrain")
        mc.record_anchor(None)
        mc.record_anchor(None, excluded=True)

        snap = mc.snapshot()["classifier"]
        assert snap == {
            "anchors": 3,
            "excluded": 1,
            "misses": 1,
            "servers": {"Pixeldrain": 1},
        }

    def test_uptime_non_negative(self) -> None:
        assert MetricsCollector().snapshot()["uptime_seconds"] >= 0
