"""
Symlog Observability Layer

Logging setup, in-process tracing and metrics.
"""

from symlog.observability.log_config import configure_logging
from symlog.observability.metrics import (
    Counter,
    Histogram,
    MetricsRegistry,
    SymlogMetrics,
    get_registry,
    get_symlog_metrics,
    reset_metrics,
)
from symlog.observability.tracer import (
    SpanKind,
    SpanStatus,
    TurnSpan,
    TurnTracer,
    get_tracer,
    reset_tracers,
)

__all__ = [
    # Logging
    "configure_logging",
    # Tracer
    "TurnTracer",
    "TurnSpan",
    "SpanKind",
    "SpanStatus",
    "get_tracer",
    "reset_tracers",
    # Metrics
    "MetricsRegistry",
    "Counter",
    "Histogram",
    "SymlogMetrics",
    "get_registry",
    "get_symlog_metrics",
    "reset_metrics",
]
