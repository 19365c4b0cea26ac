"""
Machinetags Metrics Store.

In-process metrics collection for observability without external dependencies.
Tracks:
- Tagged-with query latencies (per match mode, percentiles)
- Error counts by code (MachineTagsException.code)
- Tag list parses (standard vs quick mode, tags produced)

Thread-safe via locks. Singleton pattern for global access.
"""

from __future__ import annotations

import statistics
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any


@dataclass
class QueryMetrics:
    """Metrics for one match mode."""

    latencies_ms: list[float] = field(default_factory=list)
    error_counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    call_count: int = 0
    empty_filter_count: int = 0
    last_called: datetime | None = None

    # Keep last N latencies to avoid unbounded memory
    MAX_LATENCIES = 1000

    def record_latency(self, ms: float) -> None:
        self.latencies_ms.append(ms)
        if len(self.latencies_ms) > self.MAX_LATENCIES:
            self.latencies_ms = self.latencies_ms[-self.MAX_LATENCIES :]
        self.call_count += 1
        self.last_called = datetime.now(timezone.utc)

    def record_error(self, code: str) -> None:
        self.error_counts[code] += 1

    def get_percentiles(self) -> dict[str, float]:
        if not self.latencies_ms:
            return {}
        sorted_latencies = sorted(self.latencies_ms)
        n = len(sorted_latencies)
        return {
            "p50_ms": sorted_latencies[int(n * 0.5)],
            "p90_ms": sorted_latencies[int(n * 0.9)],
            "p99_ms": sorted_latencies[int(n * 0.99)] if n > 1 else sorted_latencies[-1],
            "mean_ms": statistics.mean(sorted_latencies),
            "max_ms": max(sorted_latencies),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "call_count": self.call_count,
            "empty_filter_count": self.empty_filter_count,
            "last_called": self.last_called.isoformat() if self.last_called else None,
            **self.get_percentiles(),
            "errors": dict(self.error_counts),
        }


@dataclass
class ParseMetrics:
    """Tag list parse counters."""

    standard_count: int = 0
    quick_mode_count: int = 0
    tags_produced: int = 0


class MetricsStore:
    """
    Central metrics store for machinetags observability.

    Thread-safe singleton for collecting metrics across the application.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._queries: dict[str, QueryMetrics] = defaultdict(QueryMetrics)
        self._global_errors: dict[str, int] = defaultdict(int)
        self._parses = ParseMetrics()
        self._started_at = datetime.now(timezone.utc)

    # -------------------------------------------------------------------------
    # Query Metrics
    # -------------------------------------------------------------------------

    def record_query_latency(self, mode: str, ms: float) -> None:
        """Record a tagged-with query latency for ``match_any`` or ``match_all``."""
        with self._lock:
            self._queries[mode].record_latency(ms)

    def record_empty_filter(self, mode: str) -> None:
        """Record a query short-circuited by an empty tag list."""
        with self._lock:
            self._queries[mode].empty_filter_count += 1

    def record_query_error(self, mode: str, code: str) -> None:
        """Record an error for a specific match mode."""
        with self._lock:
            self._queries[mode].record_error(code)
            self._global_errors[code] += 1

    # -------------------------------------------------------------------------
    # Global Errors
    # -------------------------------------------------------------------------

    def record_error(self, code: str) -> None:
        """Record a global error (not tied to a query)."""
        with self._lock:
            self._global_errors[code] += 1

    # -------------------------------------------------------------------------
    # Parse Metrics
    # -------------------------------------------------------------------------

    def record_parse(self, quick_mode: bool, tag_count: int) -> None:
        with self._lock:
            if quick_mode:
                self._parses.quick_mode_count += 1
            else:
                self._parses.standard_count += 1
            self._parses.tags_produced += tag_count

    # -------------------------------------------------------------------------
    # Summary / Export
    # -------------------------------------------------------------------------

    def get_summary(self) -> dict[str, Any]:
        """
        Get a summary of all metrics.

        Returns a dict suitable for JSON serialization and /metrics endpoint.
        """
        with self._lock:
            now = datetime.now(timezone.utc)
            uptime_seconds = (now - self._started_at).total_seconds()

            return {
                "uptime_seconds": round(uptime_seconds, 1),
                "collected_at": now.isoformat(),
                "queries": {mode: metrics.to_dict() for mode, metrics in self._queries.items()},
                "global_errors": dict(self._global_errors),
                "parses": {
                    "standard_count": self._parses.standard_count,
                    "quick_mode_count": self._parses.quick_mode_count,
                    "tags_produced": self._parses.tags_produced,
                },
            }

    def reset(self) -> None:
        """Reset all metrics. Useful for testing."""
        with self._lock:
            self._queries.clear()
            self._global_errors.clear()
            self._parses = ParseMetrics()
            self._started_at = datetime.now(timezone.utc)


# -----------------------------------------------------------------------------
# Singleton accessor
# -----------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_metrics_store() -> MetricsStore:
    """Get the global MetricsStore singleton."""
    return MetricsStore()
