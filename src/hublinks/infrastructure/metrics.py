"""Zero-impact in-memory resolver metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop: no locks, no I/O, no external dependencies.

``time.perf_counter_ns()`` is used for timing (monotonic, nanosecond
resolution, near-zero overhead).
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field


@dataclass
class ResolverStats:
    """Accumulated statistics for a single resolver."""

    resolutions: int = 0
    successes: int = 0
    failures: int = 0
    total_links: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""
        avg_ms = (
            round(self.total_duration_ns / self.resolutions / 1_000_000, 1)
            if self.resolutions
            else 0.0
        )
        return {
            "resolutions": self.resolutions,
            "successes": self.successes,
            "failures": self.failures,
            "total_links": self.total_links,
            "avg_duration_ms": avg_ms,
        }


@dataclass
class ClassifierStats:
    """Anchor classification counts across all landing pages."""

    anchors: int = 0
    excluded: int = 0
    misses: int = 0
    servers: Counter[str] = field(default_factory=Counter)

    def snapshot(self) -> dict[str, object]:
        return {
            "anchors": self.anchors,
            "excluded": self.excluded,
            "misses": self.misses,
            "servers": dict(sorted(self.servers.items())),
        }


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector.

    The async event loop is single-threaded, so plain integer
    increments need no locking.
    """

    _resolvers: dict[str, ResolverStats] = field(default_factory=dict)
    _classifier: ClassifierStats = field(default_factory=ClassifierStats)
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_resolution(self, name: str, duration_ns: int, link_count: int) -> None:
        """Record one resolver invocation. Zero links counts as a failure."""
        stats = self._resolvers.get(name)
        if stats is None:
            stats = ResolverStats()
            self._resolvers[name] = stats

        stats.resolutions += 1
        stats.total_duration_ns += duration_ns

        if link_count:
            stats.successes += 1
            stats.total_links += link_count
        else:
            stats.failures += 1

    def record_anchor(self, server: str | None, *, excluded: bool = False) -> None:
        """Record the classification of one anchor (``None`` = miss)."""
        self._classifier.anchors += 1
        if excluded:
            self._classifier.excluded += 1
        elif server is None:
            self._classifier.misses += 1
        else:
            self._classifier.servers[server] += 1

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of all metrics."""
        uptime_ns = time.perf_counter_ns() - self._start_ns
        uptime_s = round(uptime_ns / 1_000_000_000, 1)

        return {
            "uptime_seconds": uptime_s,
            "resolvers": {
                name: stats.snapshot()
                for name, stats in sorted(self._resolvers.items())
            },
            "classifier": self._classifier.snapshot(),
        }
