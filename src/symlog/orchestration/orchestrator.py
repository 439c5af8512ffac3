"""
Conversation Orchestrator

Drives one conversational turn: builds the generator request, runs the
bounded tool/validation loop with corrective feedback and backoff, then
annotates the accepted record with the insight trigger and the next phase.

Budgets:
    - max_iterations generator invocations per turn, shared by tool
      round-trips and validation retries
    - max_validation_attempts failed replies (including timeouts and
      generator errors) before the best-effort policy applies
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Sequence

from symlog.config import ConversationSettings, get_settings
from symlog.core.clock import Clock, utc_now
from symlog.core.enums import ConversationPhase, ErrorKind, TransitionIntent
from symlog.core.exceptions import (
    GeneratorError,
    GeneratorTimeoutError,
    IterationLimitExceededError,
    ValidationAttemptsExhaustedError,
)
from symlog.core.schemas import (
    AdditionalInsights,
    EnrichedIssue,
    ExtractionEnvelope,
    IssueSelection,
    SuggestedIssue,
    SymptomEntry,
    SymptomMetadata,
    Utterance,
)
from symlog.extraction.feedback import build_retry_prompt
from symlog.extraction.triggers import TriggerDecision, evaluate
from symlog.extraction.validator import ValidationFailure, salvage_metadata, validate
from symlog.llm.base import Generator, GeneratorReply, ToolCall
from symlog.llm.prompts import build_context_summary, build_system_contract
from symlog.llm.tool_schemas import get_tool_definitions
from symlog.observability.metrics import get_symlog_metrics
from symlog.observability.tracer import TurnSpan, get_tracer
from symlog.orchestration.state import (
    TurnOutcomeKind,
    TurnSnapshot,
    transition,
)
from symlog.tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

FALLBACK_REPLY = (
    "Sorry, I had trouble processing that. Could you tell me a little more about your symptom?"
)


@dataclass(frozen=True)
class PriorTurn:
    """Conversation state carried into a turn."""

    record: SymptomMetadata | None = None
    insights: AdditionalInsights = field(default_factory=AdditionalInsights)
    phase: ConversationPhase = ConversationPhase.ELICITING


@dataclass
class TurnResult:
    record: SymptomMetadata
    insights: AdditionalInsights
    assistant_reply: str
    phase: ConversationPhase
    trigger: TriggerDecision
    history: list[Utterance]
    suggested_linkage: SuggestedIssue | None = None
    issue_selection: IssueSelection | None = None
    complete: bool = False
    queued_subjects: list[str] = field(default_factory=list)
    attempts: int = 1
    iterations: int = 1
    tool_calls: list[ToolCall] = field(default_factory=list)
    partial: bool = False
    rationale: list[str] = field(default_factory=list)
    intents: list[TransitionIntent] = field(default_factory=list)


class ConversationOrchestrator:
    """
    The ``advance`` controller.

    The generator, dispatcher, clock and sleep are injected; nothing here is a
    process-wide singleton.
    """

    def __init__(
        self,
        generator: Generator,
        dispatcher: ToolDispatcher,
        settings: ConversationSettings | None = None,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._generator = generator
        self._dispatcher = dispatcher
        self._settings = settings or get_settings().conversation
        self._clock = clock
        self._sleep = sleep
        self._tracer = get_tracer("symlog.orchestration")
        self._metrics = get_symlog_metrics()

    @property
    def settings(self) -> ConversationSettings:
        return self._settings

    def backoff_seconds(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        delay_ms = min(
            self._settings.backoff_base_ms * 2 ** (attempt - 1), self._settings.backoff_cap_ms
        )
        return delay_ms / 1000.0

    async def advance(
        self,
        history: Sequence[Utterance],
        utterance: str,
        active_issues: Sequence[EnrichedIssue],
        recent_records: Sequence[SymptomEntry],
        *,
        prior: PriorTurn | None = None,
    ) -> TurnResult:
        """
        Run one turn.

        Raises:
            IterationLimitExceededError: If the shared invocation budget runs out.
            ValidationAttemptsExhaustedError: If every attempt failed and
                partial acceptance is disabled.
        """
        prior = prior or PriorTurn()
        today = self._clock().date()
        settings = self._settings

        user = Utterance.user(utterance)
        transcript = [*list(history)[-settings.history_window:], user]
        system_contract = build_system_contract(today)
        context_summary = build_context_summary(active_issues, recent_records, today)
        tool_defs = get_tool_definitions()

        attempts = 0
        iterations = 0
        rationale: list[str] = []
        tool_calls: list[ToolCall] = []
        last_error: str | None = None

        with self._tracer.turn(len(history), len(active_issues)) as span:
            while iterations < settings.max_iterations:
                iterations += 1

                try:
                    reply = await self._invoke(
                        system_contract, context_summary, transcript, tool_defs, iterations
                    )
                except GeneratorError as e:
                    attempts += 1
                    kind = e.error_kind or ErrorKind.GENERATOR_ERROR
                    failure = ValidationFailure(kind, e.message)
                    last_error = self._record_failure(failure, attempts, rationale, span)
                    if attempts >= settings.max_validation_attempts:
                        return self._finish_failed(
                            failure, history, user, prior, today,
                            attempts, iterations, tool_calls, rationale, span,
                        )
                    transcript.append(Utterance.user(build_retry_prompt(failure), synthetic=True))
                    await self._sleep(self.backoff_seconds(attempts))
                    continue

                if reply.is_tool_request:
                    self._dispatch_tools(reply, transcript, tool_calls, rationale)
                    continue

                result = validate(reply.body, today)
                if result.ok:
                    attempts += 1
                    span.attempts = attempts
                    span.outcome = "success"
                    return self._finish_success(
                        result.envelope, history, user, prior, today,
                        attempts, iterations, tool_calls, rationale,
                    )

                attempts += 1
                last_error = self._record_failure(result, attempts, rationale, span)
                if attempts >= settings.max_validation_attempts:
                    return self._finish_failed(
                        result, history, user, prior, today,
                        attempts, iterations, tool_calls, rationale, span,
                    )

                transcript.append(Utterance.assistant(reply.body, synthetic=True))
                transcript.append(Utterance.user(build_retry_prompt(result), synthetic=True))
                await self._sleep(self.backoff_seconds(attempts))

            span.outcome = "iteration_limit"
            self._metrics.turns.inc(labels={"outcome": "iteration_limit"})
            logger.warning(f"Turn exceeded {settings.max_iterations} generator invocations")
            raise IterationLimitExceededError(settings.max_iterations, last_error)

    # ==================== Generator ====================

    async def _invoke(
        self,
        system_contract: str,
        context_summary: str,
        transcript: list[Utterance],
        tool_defs: list,
        iteration: int,
    ) -> GeneratorReply:
        timeout = self._settings.generator_timeout_seconds
        self._metrics.generator_requests.inc()
        with self._tracer.generation(iteration), self._metrics.generator_latency.time():
            try:
                return await asyncio.wait_for(
                    self._generator.generate(
                        system_contract, context_summary, list(transcript), tool_defs
                    ),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                raise GeneratorTimeoutError(timeout) from None
            except GeneratorError:
                raise
            except Exception as e:
                raise GeneratorError(f"Generator failed: {e}") from e

    def _dispatch_tools(
        self,
        reply: GeneratorReply,
        transcript: list[Utterance],
        tool_calls: list[ToolCall],
        rationale: list[str],
    ) -> None:
        """Run each requested tool in order and append request/result to the transcript."""
        requests = [f"{call.name}({json.dumps(call.args, default=str)})" for call in reply.calls]
        request_text = "Calling tools: " + ", ".join(requests)
        if reply.body:
            request_text = f"{reply.body}\n\n{request_text}"
        transcript.append(Utterance.assistant(request_text, synthetic=True))

        results = []
        for call in reply.calls:
            with self._tracer.tool(call.name) as span:
                outcome = self._dispatcher.execute_call(call.name, call.args)
                if outcome.failed:
                    span.fail(outcome.error_kind, outcome.text)
            tool_calls.append(call)
            if outcome.failed:
                rationale.append(f"{outcome.error_kind.value}: {outcome.text}")
            results.append(f"Result of {call.name}:\n{outcome.text}")
        transcript.append(Utterance.user("\n\n".join(results), synthetic=True))

    def _record_failure(
        self, failure: ValidationFailure, attempt: int, rationale: list[str], span: TurnSpan
    ) -> str:
        self._metrics.validation_failures.inc(labels={"kind": failure.error_kind.value})
        span.record_failure(attempt, failure.error_kind, failure.field)
        logger.warning(
            f"Attempt {attempt} failed ({failure.error_kind.value}): {failure.human_message}"
        )
        rationale.append(f"{failure.error_kind.value}: {failure.human_message}")
        return failure.human_message

    # ==================== Turn Results ====================

    def _finish_success(
        self,
        envelope: ExtractionEnvelope,
        history: Sequence[Utterance],
        user: Utterance,
        prior: PriorTurn,
        today: date,
        attempts: int,
        iterations: int,
        tool_calls: list[ToolCall],
        rationale: list[str],
    ) -> TurnResult:
        record = envelope.metadata
        insights = envelope.additional_insights
        trigger = evaluate(record, today)
        rationale.extend(f"trigger: {reason}" for reason in trigger.reasons)

        snapshot = TurnSnapshot.from_envelope(envelope, record, insights)
        step = transition(prior.phase, snapshot, trigger)
        self._metrics.turns.inc(labels={"outcome": "success"})

        return TurnResult(
            record=record,
            insights=insights,
            assistant_reply=envelope.ai_message,
            phase=step.phase,
            trigger=trigger,
            history=[*history, user, Utterance.assistant(envelope.ai_message)],
            suggested_linkage=envelope.suggested_issue,
            issue_selection=envelope.issue_selection,
            complete=step.phase == ConversationPhase.COMPLETE,
            queued_subjects=list(envelope.queued_symptoms),
            attempts=attempts,
            iterations=iterations,
            tool_calls=tool_calls,
            rationale=rationale,
            intents=step.intents,
        )

    def _finish_failed(
        self,
        failure: ValidationFailure,
        history: Sequence[Utterance],
        user: Utterance,
        prior: PriorTurn,
        today: date,
        attempts: int,
        iterations: int,
        tool_calls: list[ToolCall],
        rationale: list[str],
        span: TurnSpan,
    ) -> TurnResult:
        """Best-effort result after the final failed attempt."""
        if not self._settings.accept_partial_on_final_attempt:
            span.outcome = "failed"
            self._metrics.turns.inc(labels={"outcome": "failed"})
            raise ValidationAttemptsExhaustedError(
                attempts, failure.error_kind, failure.human_message
            )

        payload = failure.payload or {}
        record = salvage_metadata(payload, prior.record, today)
        insights = self._salvage_insights(payload, prior.insights)

        reply = payload.get("aiMessage")
        if not isinstance(reply, str) or not reply.strip():
            reply = FALLBACK_REPLY

        trigger = evaluate(record, today)
        rationale.append(f"partial: accepted best-effort result after {attempts} attempts")
        rationale.extend(f"trigger: {reason}" for reason in trigger.reasons)

        snapshot = TurnSnapshot(kind=TurnOutcomeKind.SUCCESS, record=record, insights=insights)
        step = transition(prior.phase, snapshot, trigger)
        span.outcome = "partial"
        self._metrics.turns.inc(labels={"outcome": "partial"})
        logger.info(f"Accepted partial result after {attempts} failed attempts")

        return TurnResult(
            record=record,
            insights=insights,
            assistant_reply=reply,
            phase=step.phase,
            trigger=trigger,
            history=[*history, user, Utterance.assistant(reply)],
            complete=False,
            attempts=attempts,
            iterations=iterations,
            tool_calls=tool_calls,
            partial=True,
            rationale=rationale,
            intents=step.intents,
        )

    @staticmethod
    def _salvage_insights(payload: dict, prior: AdditionalInsights) -> AdditionalInsights:
        raw = payload.get("additionalInsights")
        if not isinstance(raw, dict):
            return prior
        updates = {
            name: value.strip()
            for name, value in raw.items()
            if name in AdditionalInsights.model_fields and isinstance(value, str) and value.strip()
        }
        return prior.model_copy(update=updates)
