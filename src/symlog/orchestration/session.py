"""
Conversation Session

Stateful shell around the orchestrator for one host conversation. Owns the
visible history and the in-progress record between turns, applies the
transition intents (persist draft, commit, clear draft), feeds queued subjects
to the todo queue and rolls back turns that fail.
"""

import logging
from dataclasses import dataclass, field

from symlog.core.clock import Clock, utc_now
from symlog.core.enums import ConversationPhase, ErrorKind, IssueStatus, TransitionIntent
from symlog.core.exceptions import ConversationError, UnresolvedEntityReferenceError
from symlog.core.schemas import (
    AdditionalInsights,
    DraftSnapshot,
    IssueSelection,
    SuggestedIssue,
    SymptomEntry,
    SymptomMetadata,
    TodoItem,
    Utterance,
)
from symlog.linking.linker import EntityLinker
from symlog.observability.metrics import get_symlog_metrics
from symlog.orchestration.orchestrator import ConversationOrchestrator, PriorTurn, TurnResult
from symlog.storage.draft_store import DraftSnapshotStore
from symlog.storage.repository import SymptomRepository, generate_id
from symlog.todos.queue import TodoQueue

logger = logging.getLogger(__name__)


@dataclass
class TurnOutcome:
    """What the host sees after sending one utterance."""

    ok: bool
    reply: str | None = None
    result: TurnResult | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    committed: SymptomEntry | None = None
    next_todo: TodoItem | None = None
    queued: list[TodoItem] = field(default_factory=list)
    strong_hint: bool = False


class ConversationSession:
    """
    Host-facing conversation.

    Usage:
        session = ConversationSession(orchestrator, repo, todos, drafts, EntityLinker())
        draft = session.pending_draft()
        if draft:
            session.resume(draft)
        outcome = await session.send("I've had chest pain for a week")
    """

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        repository: SymptomRepository,
        todo_queue: TodoQueue,
        draft_store: DraftSnapshotStore,
        linker: EntityLinker,
        clock: Clock = utc_now,
    ) -> None:
        self._orchestrator = orchestrator
        self._repository = repository
        self._todos = todo_queue
        self._drafts = draft_store
        self._linker = linker
        self._clock = clock
        self._metrics = get_symlog_metrics()

        self.history: list[Utterance] = []
        self._reset_record()

    def _reset_record(self) -> None:
        self.record: SymptomMetadata | None = None
        self.insights = AdditionalInsights()
        self.phase = ConversationPhase.ELICITING
        self.suggested_linkage: SuggestedIssue | None = None
        self.issue_selection: IssueSelection | None = None
        self.active_todo_id: str | None = None

    # ==================== Drafts ====================

    def pending_draft(self) -> DraftSnapshot | None:
        """A resumable draft, if one exists and has not expired."""
        return self._drafts.load()

    def resume(self, draft: DraftSnapshot) -> None:
        self.history = list(draft.history)
        self.record = draft.in_progress_record
        self.insights = draft.insights
        self.phase = draft.phase
        self.suggested_linkage = draft.suggested_linkage
        self.issue_selection = draft.issue_selection
        self.active_todo_id = draft.active_todo_id
        logger.info(
            f"Resumed draft with {len(self.history)} utterances in phase {self.phase.value}"
        )

    def discard(self) -> None:
        """Drop the draft and start over."""
        self._drafts.clear()
        self.history = []
        self._reset_record()

    def snapshot(self) -> DraftSnapshot:
        return DraftSnapshot(
            history=self.history,
            in_progress_record=self.record,
            insights=self.insights,
            todo_queue_ref=[item.id for item in self._todos.list()],
            suggested_linkage=self.suggested_linkage,
            issue_selection=self.issue_selection,
            phase=self.phase,
            active_todo_id=self.active_todo_id,
            complete=self.phase == ConversationPhase.COMPLETE,
        )

    # ==================== Turns ====================

    async def send(self, text: str) -> TurnOutcome:
        """
        Advance the conversation by one user utterance.

        Turn-level failures come back as ``TurnOutcome(ok=False)``; the
        utterance is not kept in the visible history.
        """
        active_issues = self._repository.get_enriched_issues(IssueStatus.ACTIVE)
        recent = self._repository.recent_records(
            self._orchestrator.settings.recent_records_limit
        )
        prior = PriorTurn(record=self.record, insights=self.insights, phase=self.phase)

        try:
            result = await self._orchestrator.advance(
                self.history, text, active_issues, recent, prior=prior
            )
        except ConversationError as e:
            logger.warning(f"Turn failed: {e.message}")
            return TurnOutcome(ok=False, error=e.message, error_kind=e.error_kind)

        previous_history = self.history
        self.history = result.history
        self.record = result.record
        self.insights = result.insights
        self.phase = result.phase
        self.suggested_linkage = result.suggested_linkage
        self.issue_selection = result.issue_selection

        queued = self._todos.add(result.queued_subjects) if result.queued_subjects else []
        outcome = TurnOutcome(
            ok=True,
            reply=result.assistant_reply,
            result=result,
            queued=queued,
            strong_hint=self._linker.is_strong_hint(result.suggested_linkage),
        )

        if TransitionIntent.COMMIT_RECORD in result.intents:
            try:
                outcome.committed = self._commit(result)
            except UnresolvedEntityReferenceError as e:
                # The record stays in progress; the user has to clarify the issue
                self.history = previous_history
                self.phase = ConversationPhase.AWAITING_LINKAGE
                self.issue_selection = None
                self._drafts.save(self.snapshot())
                return TurnOutcome(
                    ok=False,
                    result=result,
                    error=e.message,
                    error_kind=e.error_kind,
                    queued=queued,
                )
            outcome.next_todo = self._todos.next_pending()
        elif TransitionIntent.PERSIST_DRAFT in result.intents:
            self._drafts.save(self.snapshot())

        return outcome

    def _commit(self, result: TurnResult) -> SymptomEntry:
        resolution = self._linker.resolve(
            result.issue_selection, self._repository.list_issues()
        )

        issue_id = None
        if resolution.creates_issue:
            issue = self._repository.create_issue(
                resolution.new_issue_name, resolution.new_issue_start_date
            )
            issue_id = issue.id
        elif resolution.links:
            issue_id = resolution.issue_id

        entry = SymptomEntry(
            id=generate_id(),
            created_at=self._clock(),
            metadata=result.record,
            insights=result.insights,
            issue_id=issue_id,
            conversation_history=[f"{u.role.value}: {u.text}" for u in self.history],
        )
        self._repository.save_record(entry)
        self._drafts.clear()

        if self.active_todo_id:
            self._todos.complete(self.active_todo_id)

        self._metrics.records_committed.inc()
        logger.info(f"Committed record {entry.id} (issue: {issue_id or 'none'})")

        self._reset_record()
        return entry

    # ==================== Todos ====================

    async def start_next_todo(self) -> TurnOutcome | None:
        """Open the next queued subject as a user utterance, or None when the queue is empty."""
        item = self._todos.next_pending()
        if item is None:
            return None
        previous_todo_id = self.active_todo_id
        self.active_todo_id = item.id
        outcome = await self.send(item.subject_text)
        if not outcome.ok and outcome.result is None:
            # Nothing from the turn was kept, so the item is still just queued
            self.active_todo_id = previous_todo_id
        return outcome

    def decline_todo(self, todo_id: str) -> bool:
        if todo_id == self.active_todo_id:
            self.active_todo_id = None
        return self._todos.remove(todo_id)
