"""
Symlog Metrics

In-process counters and latency histograms for the conversation engine.
Nothing is exported; hosts read values through the registry.
"""

import time
from collections import defaultdict
from threading import Lock
from typing import Any


def _labels_key(labels: dict[str, str] | None) -> str:
    if not labels:
        return ""
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


class Counter:
    """
    Monotonically increasing counter.

    Usage:
        counter = Counter("turns_total", "Turns processed")
        counter.inc()
        counter.inc(labels={"outcome": "partial"})
    """

    def __init__(self, name: str, description: str = "") -> None:
        self.name = name
        self.description = description
        self._values: dict[str, float] = defaultdict(float)
        self._lock = Lock()

    def inc(self, value: float = 1.0, labels: dict[str, str] | None = None) -> None:
        """Increment counter."""
        key = _labels_key(labels)
        with self._lock:
            self._values[key] += value

    def get(self, labels: dict[str, str] | None = None) -> float:
        """Get current value."""
        key = _labels_key(labels)
        with self._lock:
            return self._values[key]

    def total(self) -> float:
        """Sum across all label combinations."""
        with self._lock:
            return sum(self._values.values())

    def values(self) -> dict[str, float]:
        with self._lock:
            return dict(self._values)


class Histogram:
    """
    Distribution of observed values (here: generator latencies).

    Usage:
        with hist.time():
            await generator.generate(...)
    """

    def __init__(self, name: str, description: str = "") -> None:
        self.name = name
        self.description = description
        self._sums: dict[str, float] = defaultdict(float)
        self._counts: dict[str, int] = defaultdict(int)
        self._lock = Lock()

    def observe(self, value: float, labels: dict[str, str] | None = None) -> None:
        key = _labels_key(labels)
        with self._lock:
            self._sums[key] += value
            self._counts[key] += 1

    def time(self, labels: dict[str, str] | None = None) -> "_HistogramTimer":
        """Context manager for timing operations."""
        return _HistogramTimer(self, labels)

    def get_count(self, labels: dict[str, str] | None = None) -> int:
        key = _labels_key(labels)
        with self._lock:
            return self._counts[key]

    def get_mean(self, labels: dict[str, str] | None = None) -> float:
        key = _labels_key(labels)
        with self._lock:
            if self._counts[key] == 0:
                return 0.0
            return self._sums[key] / self._counts[key]


class _HistogramTimer:
    def __init__(self, histogram: Histogram, labels: dict[str, str] | None) -> None:
        self._histogram = histogram
        self._labels = labels
        self._start: float | None = None

    def __enter__(self) -> "_HistogramTimer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        if self._start is not None:
            self._histogram.observe(time.perf_counter() - self._start, self._labels)


class MetricsRegistry:
    """Registry for all metrics, keyed by name."""

    def __init__(self) -> None:
        self._metrics: dict[str, Counter | Histogram] = {}
        self._lock = Lock()

    def counter(self, name: str, description: str = "") -> Counter:
        """Get or create counter."""
        with self._lock:
            if name not in self._metrics:
                self._metrics[name] = Counter(name, description)
            return self._metrics[name]  # type: ignore[return-value]

    def histogram(self, name: str, description: str = "") -> Histogram:
        """Get or create histogram."""
        with self._lock:
            if name not in self._metrics:
                self._metrics[name] = Histogram(name, description)
            return self._metrics[name]  # type: ignore[return-value]

    def get_all(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        with self._lock:
            for name, metric in self._metrics.items():
                if isinstance(metric, Counter):
                    result[name] = metric.values()
                else:
                    result[name] = {"count": metric.get_count(), "mean": metric.get_mean()}
        return result

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()


# Global metrics registry
_registry: MetricsRegistry | None = None


def get_registry() -> MetricsRegistry:
    """Get global metrics registry."""
    global _registry
    if _registry is None:
        _registry = MetricsRegistry()
    return _registry


def reset_metrics() -> None:
    """Reset global metrics."""
    global _registry
    _registry = None


class SymlogMetrics:
    """Pre-defined symlog metrics."""

    def __init__(self, registry: MetricsRegistry | None = None) -> None:
        self._registry = registry or get_registry()

    @property
    def turns(self) -> Counter:
        """Turns processed, labelled by outcome."""
        return self._registry.counter("symlog_turns_total", "Turns processed")

    @property
    def generator_requests(self) -> Counter:
        return self._registry.counter("symlog_generator_requests_total", "Generator requests")

    @property
    def generator_latency(self) -> Histogram:
        return self._registry.histogram("symlog_generator_latency_seconds", "Generator latency")

    @property
    def validation_failures(self) -> Counter:
        """Validation failures by error kind."""
        return self._registry.counter(
            "symlog_validation_failures_total", "Validation failures by kind"
        )

    @property
    def tool_calls(self) -> Counter:
        return self._registry.counter("symlog_tool_calls_total", "Tool calls by tool name")

    @property
    def records_committed(self) -> Counter:
        return self._registry.counter("symlog_records_committed_total", "Committed records")


def get_symlog_metrics() -> SymlogMetrics:
    """Get symlog metrics instance."""
    return SymlogMetrics()
