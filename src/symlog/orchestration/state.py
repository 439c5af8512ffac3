"""
Conversation Phase State Machine

Pure transition function from (prior phase, turn outcome, trigger decision)
to the next phase plus the side effects the host should perform.
"""

from dataclasses import dataclass, field
from enum import Enum

from symlog.core.enums import ConversationPhase, IssueSelectionType, TransitionIntent
from symlog.core.schemas import (
    AdditionalInsights,
    ExtractionEnvelope,
    IssueSelection,
    SymptomMetadata,
)
from symlog.extraction.triggers import TriggerDecision


class TurnOutcomeKind(str, Enum):
    TOOL_REQUEST = "tool_request"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class TurnSnapshot:
    """What the state machine needs to know about an accepted turn."""

    kind: TurnOutcomeKind
    record: SymptomMetadata | None = None
    insights: AdditionalInsights | None = None
    declared_complete: bool = False
    has_issue_selection: bool = False

    @classmethod
    def from_envelope(
        cls, envelope: ExtractionEnvelope, record: SymptomMetadata, insights: AdditionalInsights
    ) -> "TurnSnapshot":
        return cls(
            kind=TurnOutcomeKind.SUCCESS,
            record=record,
            insights=insights,
            declared_complete=envelope.conversation_complete,
            has_issue_selection=selection_ready(envelope.issue_selection),
        )


def selection_ready(selection: IssueSelection | None) -> bool:
    """A selection can be committed: present, and a new issue has name and start date."""
    if selection is None:
        return False
    if selection.type == IssueSelectionType.NEW:
        return bool((selection.new_issue_name or "").strip()) and (
            selection.new_issue_start_date is not None
        )
    return True


@dataclass(frozen=True)
class Transition:
    phase: ConversationPhase
    intents: list[TransitionIntent] = field(default_factory=list)

    @property
    def commits(self) -> bool:
        return TransitionIntent.COMMIT_RECORD in self.intents


def transition(
    prior: ConversationPhase, outcome: TurnSnapshot, trigger: TriggerDecision | None
) -> Transition:
    """
    Next phase for a turn.

    Completion requires every required field, the insights when the trigger
    fires, the generator's completion flag and a confirmed issue selection.
    """
    if outcome.kind == TurnOutcomeKind.TOOL_REQUEST:
        return Transition(prior, [TransitionIntent.DISPATCH_TOOL])

    if outcome.kind == TurnOutcomeKind.FAILURE:
        return Transition(prior)

    if outcome.record is None or not outcome.record.is_known():
        return Transition(ConversationPhase.ELICITING, [TransitionIntent.PERSIST_DRAFT])

    insights = outcome.insights or AdditionalInsights()
    if trigger is not None and trigger.fires and not insights.is_complete():
        return Transition(ConversationPhase.AWAITING_INSIGHTS, [TransitionIntent.PERSIST_DRAFT])

    if not outcome.declared_complete or not outcome.has_issue_selection:
        return Transition(ConversationPhase.AWAITING_LINKAGE, [TransitionIntent.PERSIST_DRAFT])

    return Transition(
        ConversationPhase.COMPLETE,
        [TransitionIntent.COMMIT_RECORD, TransitionIntent.CLEAR_DRAFT],
    )
