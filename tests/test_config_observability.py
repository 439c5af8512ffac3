"""
Tests for settings, logging setup, tracing and metrics.
"""

import json
import logging

import pytest
from pydantic import ValidationError

from symlog.config import ConversationSettings, LoggingSettings, get_settings, reset_settings
from symlog.core.enums import ErrorKind
from symlog.core.exceptions import IterationLimitExceededError
from symlog.observability import (
    SpanKind,
    SpanStatus,
    TurnTracer,
    configure_logging,
    get_registry,
    get_symlog_metrics,
    get_tracer,
)


@pytest.fixture(autouse=True)
def restore_symlog_logger():
    logger = logging.getLogger("symlog")
    yield
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestSettings:
    def test_conversation_defaults(self):
        conversation = get_settings().conversation
        assert conversation.max_iterations == 5
        assert conversation.max_validation_attempts == 3
        assert conversation.backoff_base_ms == 100
        assert conversation.backoff_cap_ms == 1000
        assert conversation.link_confidence_threshold == 0.7
        assert conversation.draft_ttl_hours == 24.0
        assert conversation.accept_partial_on_final_attempt is True

    def test_singleton_until_reset(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first
        monkeypatch.setenv("SYMLOG_MAX_ITERATIONS", "7")
        reset_settings()
        assert get_settings().conversation.max_iterations == 7

    def test_threshold_bounds(self):
        with pytest.raises(ValidationError):
            ConversationSettings(link_confidence_threshold=1.5)

    def test_storage_paths_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SYMLOG_DB_PATH", str(tmp_path / "x.db"))
        reset_settings()
        assert get_settings().storage.db_path == (tmp_path / "x.db").resolve()


class TestLogging:
    def test_json_format(self, capsys):
        configure_logging(LoggingSettings(LOG_LEVEL="INFO", LOG_FORMAT="json"))
        logging.getLogger("symlog.test").info("hello")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["level"] == "INFO"
        assert payload["logger"] == "symlog.test"
        assert payload["message"] == "hello"

    def test_level_filters(self, capsys):
        configure_logging(LoggingSettings(LOG_LEVEL="WARNING", LOG_FORMAT="text"))
        logging.getLogger("symlog.test").info("quiet")
        logging.getLogger("symlog.test").warning("loud")

        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "WARNING symlog.test: loud" in err

    def test_reconfigure_replaces_handler(self):
        configure_logging(LoggingSettings())
        configure_logging(LoggingSettings())
        assert len(logging.getLogger("symlog").handlers) == 1


class TestTracer:
    def test_generate_and_tool_nest_under_turn(self):
        tracer = TurnTracer("symlog.test")
        with tracer.turn(history_length=2, active_issues=1) as turn:
            with tracer.generation(1) as generate:
                pass
            with tracer.tool("get_history") as tool:
                pass
            turn.outcome = "success"

        assert [s.kind for s in tracer.get_spans()] == [
            SpanKind.GENERATE,
            SpanKind.TOOL,
            SpanKind.TURN,
        ]
        assert generate.parent_id == turn.span_id
        assert tool.trace_id == turn.trace_id
        assert tool.detail == {"tool": "get_history"}
        assert turn.iterations == 1
        assert turn.status == SpanStatus.OK

    def test_each_turn_gets_its_own_trace(self):
        tracer = TurnTracer("symlog.test")
        with tracer.turn() as first:
            pass
        with tracer.turn() as second:
            pass
        assert first.trace_id != second.trace_id

    def test_error_kind_taken_from_exception(self):
        tracer = TurnTracer("symlog.test")
        with pytest.raises(IterationLimitExceededError):
            with tracer.turn():
                raise IterationLimitExceededError(5, "Response is not valid JSON")
        (span,) = tracer.get_spans()
        assert span.status == SpanStatus.ERROR
        assert span.error_kind == ErrorKind.ITERATION_LIMIT_EXCEEDED

    def test_failures_recorded_on_turn(self):
        tracer = TurnTracer("symlog.test")
        with tracer.turn() as turn:
            turn.record_failure(1, ErrorKind.SCHEMA_VIOLATION, "metadata.severity")
        assert turn.attempts == 1
        assert turn.to_dict()["failures"] == [
            {"attempt": 1, "kind": "schema-violation", "field": "metadata.severity"}
        ]

    def test_jsonl_export(self, tmp_path):
        tracer = TurnTracer("symlog.test", export_path=tmp_path)
        with tracer.tool("manage_todos") as span:
            span.fail(ErrorKind.TOOL_EXECUTION_ERROR, "boom")
        (path,) = tmp_path.glob("turns_*.jsonl")
        record = json.loads(path.read_text().strip())
        assert record["tracer"] == "symlog.test"
        assert record["kind"] == "tool"
        assert record["status"] == "error"
        assert record["error_kind"] == "tool-execution-error"
        assert "attempts" not in record

    def test_registry_returns_same_tracer(self):
        assert get_tracer("symlog.x") is get_tracer("symlog.x")


class TestMetrics:
    def test_counters_by_label(self):
        metrics = get_symlog_metrics()
        metrics.turns.inc(labels={"outcome": "success"})
        metrics.turns.inc(labels={"outcome": "success"})
        metrics.turns.inc(labels={"outcome": "partial"})
        assert metrics.turns.get(labels={"outcome": "success"}) == 2
        assert metrics.turns.total() == 3

    def test_histogram_timer(self):
        metrics = get_symlog_metrics()
        with metrics.generator_latency.time():
            pass
        assert metrics.generator_latency.get_count() == 1
        snapshot = get_registry().get_all()
        assert snapshot["symlog_generator_latency_seconds"]["count"] == 1
