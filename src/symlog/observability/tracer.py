"""
Symlog Turn Tracer

Traces conversation turns. Each call to ``advance`` opens a turn span with a
fresh trace id; generator calls and tool dispatches nest beneath it. Turn
spans carry the attempt and iteration counters, every validation failure and
the final outcome, so a single JSON line explains how a turn was resolved.

Spans stay in memory; with the debug flag on they are also appended as JSON
lines under the data directory.
"""

import json
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Generator

from symlog.config import get_settings
from symlog.core.enums import ErrorKind


class SpanKind(str, Enum):
    """Units of work inside a turn."""

    TURN = "advance"
    GENERATE = "generate"
    TOOL = "tool"


class SpanStatus(str, Enum):
    """Span completion status."""

    UNSET = "unset"
    OK = "ok"
    ERROR = "error"


@dataclass
class TurnSpan:
    """
    One traced unit of work.

    ``attempts``, ``iterations``, ``failures`` and ``outcome`` are only
    filled in on turn spans; generate spans record their iteration number and
    tool spans the tool name in ``detail``.
    """

    trace_id: str
    span_id: str
    kind: SpanKind
    parent_id: str | None = None
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    status: SpanStatus = SpanStatus.UNSET
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    attempts: int = 0
    iterations: int = 0
    outcome: str | None = None
    failures: list[dict[str, Any]] = field(default_factory=list)
    detail: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000

    def record_failure(
        self, attempt: int, error_kind: ErrorKind, field_name: str | None = None
    ) -> None:
        """Note a failed attempt without ending the span."""
        self.attempts = attempt
        self.failures.append(
            {"attempt": attempt, "kind": error_kind.value, "field": field_name}
        )

    def fail(self, error_kind: ErrorKind | None, message: str) -> None:
        self.status = SpanStatus.ERROR
        self.error_kind = error_kind
        self.error_message = message

    def to_dict(self) -> dict[str, Any]:
        data = {
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "parent_id": self.parent_id,
            "kind": self.kind.value,
            "start_time": self.start_time,
            "duration_ms": self.duration_ms,
            "status": self.status.value,
        }
        if self.error_kind is not None or self.error_message:
            data["error_kind"] = self.error_kind.value if self.error_kind else None
            data["error_message"] = self.error_message
        if self.kind == SpanKind.TURN:
            data.update(
                attempts=self.attempts,
                iterations=self.iterations,
                outcome=self.outcome,
                failures=self.failures,
            )
        if self.detail:
            data["detail"] = self.detail
        return data


class TurnTracer:
    """
    Records turn, generate and tool spans.

    Usage:
        tracer = get_tracer("symlog.orchestration")

        with tracer.turn(history_length=4, active_issues=1) as turn:
            with tracer.generation(iteration=1):
                ...
            turn.outcome = "success"
    """

    def __init__(self, name: str, export_path: Path | None = None) -> None:
        self._name = name
        self._export_path = export_path
        self._spans: list[TurnSpan] = []
        self._stack: list[TurnSpan] = []

    @staticmethod
    def _generate_id() -> str:
        return uuid.uuid4().hex[:16]

    @property
    def name(self) -> str:
        return self._name

    @property
    def current_turn(self) -> TurnSpan | None:
        return self._stack[0] if self._stack else None

    @contextmanager
    def turn(
        self, history_length: int = 0, active_issues: int = 0
    ) -> Generator[TurnSpan, None, None]:
        with self._span(
            SpanKind.TURN, {"history_length": history_length, "active_issues": active_issues}
        ) as span:
            yield span

    @contextmanager
    def generation(self, iteration: int) -> Generator[TurnSpan, None, None]:
        with self._span(SpanKind.GENERATE, {"iteration": iteration}) as span:
            turn = self.current_turn
            if turn is not None:
                turn.iterations = max(turn.iterations, iteration)
            yield span

    @contextmanager
    def tool(self, tool_name: str) -> Generator[TurnSpan, None, None]:
        with self._span(SpanKind.TOOL, {"tool": tool_name}) as span:
            yield span

    @contextmanager
    def _span(self, kind: SpanKind, detail: dict[str, Any]) -> Generator[TurnSpan, None, None]:
        parent = self._stack[-1] if self._stack else None
        span = TurnSpan(
            trace_id=parent.trace_id if parent else self._generate_id(),
            span_id=self._generate_id(),
            kind=kind,
            parent_id=parent.span_id if parent else None,
            detail=detail,
        )
        self._stack.append(span)

        try:
            yield span
            if span.status == SpanStatus.UNSET:
                span.status = SpanStatus.OK
        except Exception as e:
            span.fail(getattr(e, "error_kind", None), str(e))
            raise
        finally:
            span.end_time = time.time()
            self._stack.pop()
            self._spans.append(span)
            if self._export_path:
                self._export_span(span)

    def _export_span(self, span: TurnSpan) -> None:
        self._export_path.mkdir(parents=True, exist_ok=True)
        day = datetime.now(timezone.utc).strftime("%Y%m%d")
        with open(self._export_path / f"turns_{day}.jsonl", "a") as f:
            f.write(json.dumps({"tracer": self._name, **span.to_dict()}, default=str) + "\n")

    def get_spans(self, kind: SpanKind | None = None) -> list[TurnSpan]:
        if kind is None:
            return self._spans.copy()
        return [s for s in self._spans if s.kind == kind]


# Global tracer registry
_tracers: dict[str, TurnTracer] = {}


def get_tracer(name: str) -> TurnTracer:
    """Get or create a tracer by name; exports to the data directory in debug mode."""
    if name not in _tracers:
        settings = get_settings()
        export_path = None
        if settings.features.debug:
            export_path = settings.storage.data_path / "traces"
        _tracers[name] = TurnTracer(name, export_path)
    return _tracers[name]


def reset_tracers() -> None:
    """Reset all tracers (for testing)."""
    global _tracers
    _tracers = {}
