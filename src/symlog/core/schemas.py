"""
Symlog Core Schemas

This module defines all Pydantic models (schemas) used throughout the symlog system.
These schemas represent the domain model and enforce invariants via validators.

Key Design Principles:
1. All schemas are immutable (frozen=True); updates go through model_copy
2. Critical invariants are enforced via model_validator and field_validator
3. Null on an extracted field means "still being elicited", never "invalid"
4. Durable entities (issues, records, todos) are referenced by id from
   conversation state, never embedded
5. Generator-facing payloads use camelCase aliases; Python code uses snake_case
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from symlog.core.clock import utc_now
from symlog.core.enums import (
    ConversationPhase,
    IssueSelectionType,
    IssueStatus,
    Location,
    UtteranceRole,
)

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SEVERITY_MIN = 0
SEVERITY_MAX = 10

INSIGHT_FIELDS = ("provocation", "quality", "radiation", "timing")


# Models exchanged with the generator use camelCase on the wire
PAYLOAD_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)


# =============================================================================
# UTTERANCE - Conversation History Entry
# =============================================================================


class Utterance(BaseModel):
    """
    One entry of the conversation history.

    Synthetic utterances (tool requests/results, correction messages) live only
    inside a single turn's working transcript and never reach visible history.
    """

    model_config = ConfigDict(frozen=True)

    role: UtteranceRole
    text: str
    synthetic: bool = False

    @classmethod
    def user(cls, text: str, synthetic: bool = False) -> Utterance:
        return cls(role=UtteranceRole.USER, text=text, synthetic=synthetic)

    @classmethod
    def assistant(cls, text: str, synthetic: bool = False) -> Utterance:
        return cls(role=UtteranceRole.ASSISTANT, text=text, synthetic=synthetic)


# =============================================================================
# SYMPTOM METADATA - The Extracted Record
# =============================================================================


class SymptomMetadata(BaseModel):
    """
    The in-progress extracted record.

    Invariants:
    - location, if known, is in the controlled vocabulary
    - onset, if known, is a real calendar date and not after "today"
      (checked only when a ``today`` validation context is supplied, so that
      persisted records stay loadable on later days)
    - severity, if known, is an integer in [0, 10]
    """

    model_config = PAYLOAD_CONFIG

    location: Location | None = None
    onset: date | None = None
    severity: int | None = None
    description: str | None = None

    @field_validator("location", mode="before")
    @classmethod
    def check_location(cls, v: Any) -> Any:
        if v is None or isinstance(v, Location):
            return v
        allowed = [loc.value for loc in Location]
        if not isinstance(v, str) or v not in allowed:
            raise ValueError(f"location must be one of: {', '.join(allowed)}. Received: {v!r}")
        return Location(v)

    @field_validator("onset", mode="before")
    @classmethod
    def check_onset_format(cls, v: Any) -> Any:
        if v is None or isinstance(v, date):
            return v
        if not isinstance(v, str) or not ISO_DATE_PATTERN.match(v):
            raise ValueError(f"onset must be an ISO date in YYYY-MM-DD format. Received: {v!r}")
        try:
            return date.fromisoformat(v)
        except ValueError:
            raise ValueError(f"onset is not a real calendar date. Received: {v!r}") from None

    @field_validator("onset")
    @classmethod
    def check_onset_not_future(cls, v: date | None, info: ValidationInfo) -> date | None:
        today = (info.context or {}).get("today")
        if v is not None and today is not None and v > today:
            raise ValueError(f"onset cannot be in the future (today is {today.isoformat()})")
        return v

    @field_validator("severity", mode="before")
    @classmethod
    def check_severity(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"severity must be an integer between 0 and 10. Received: {v!r}")
        if isinstance(v, float):
            if not v.is_integer():
                raise ValueError(f"severity must be an integer between 0 and 10. Received: {v!r}")
            v = int(v)
        if not SEVERITY_MIN <= v <= SEVERITY_MAX:
            raise ValueError(f"severity must be an integer between 0 and 10. Received: {v!r}")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v: Any) -> Any:
        # Free text is never a reason to reject a turn
        if isinstance(v, str):
            return v.strip() or None
        return None

    @property
    def missing_required(self) -> list[str]:
        """Required fields still being elicited."""
        return [f for f in ("location", "onset", "severity") if getattr(self, f) is None]

    def is_known(self) -> bool:
        return not self.missing_required


class AdditionalInsights(BaseModel):
    """Deep-detail fields, collected only when the trigger evaluator fires."""

    model_config = PAYLOAD_CONFIG

    provocation: str | None = None
    quality: str | None = None
    radiation: str | None = None
    timing: str | None = None

    @field_validator(*INSIGHT_FIELDS, mode="before")
    @classmethod
    def check_text(cls, v: Any) -> Any:
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError(f"insight fields must be strings or null. Received: {v!r}")
        return v.strip() or None

    @property
    def outstanding(self) -> list[str]:
        return [f for f in INSIGHT_FIELDS if getattr(self, f) is None]

    def is_complete(self) -> bool:
        return not self.outstanding

    def format(self) -> str:
        """Human-readable multi-line rendering of the filled fields."""
        labels = {
            "provocation": "Provocation/Palliation",
            "quality": "Quality",
            "radiation": "Radiation",
            "timing": "Timing",
        }
        return "\n".join(
            f"{labels[f]}: {getattr(self, f)}" for f in INSIGHT_FIELDS if getattr(self, f)
        )


# =============================================================================
# ISSUE LINKAGE - Selection and Suggestion
# =============================================================================


class IssueSelection(BaseModel):
    """
    Resolved outcome of linking a completed record to zero or one issue.

    ``existing_issue_ref`` may hold a true issue id or a free-text issue name;
    the Entity Linker resolves it.
    """

    model_config = PAYLOAD_CONFIG

    type: IssueSelectionType
    existing_issue_ref: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "existingIssueRef", "existingIssueId", "existing_issue_ref"
        ),
        serialization_alias="existingIssueRef",
    )
    new_issue_name: str | None = None
    new_issue_start_date: date | None = None


class SuggestedIssue(BaseModel):
    """Advisory linkage hint produced by the generator. Never authoritative."""

    model_config = PAYLOAD_CONFIG

    is_related: bool = Field(..., strict=True)
    existing_issue_ref: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "existingIssueRef", "existingIssueId", "existing_issue_ref"
        ),
        serialization_alias="existingIssueRef",
    )
    new_issue_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("newIssueName", "newIssueNameGuess", "new_issue_name"),
        serialization_alias="newIssueName",
    )
    confidence: float = Field(..., ge=0.0, le=1.0)


# =============================================================================
# GENERATOR ENVELOPE - Accepted Output Contract
# =============================================================================


class ExtractionEnvelope(BaseModel):
    """
    A generator text reply that passed validation.

    ``to_json()`` produces the contract form; feeding it back through the
    validator yields an identical envelope.
    """

    model_config = PAYLOAD_CONFIG

    metadata: SymptomMetadata
    additional_insights: AdditionalInsights = Field(default_factory=AdditionalInsights)
    issue_selection: IssueSelection | None = None
    suggested_issue: SuggestedIssue | None = None
    ai_message: str = ""
    conversation_complete: bool = Field(default=False, strict=True)
    queued_symptoms: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# =============================================================================
# DURABLE ENTITIES - Issues, Records, Todos
# =============================================================================


class Issue(BaseModel):
    """
    Long-running grouping of related records.

    Invariants:
    - end_date, if present, is on or after start_date
    - deleting an issue unlinks (never deletes) its member records
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(..., min_length=1)
    status: IssueStatus = IssueStatus.ACTIVE
    start_date: date
    end_date: date | None = None
    created_at: datetime = Field(default_factory=utc_now)
    member_record_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_date_range(self) -> Issue:
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class EnrichedIssue(Issue):
    """Issue plus a digest of its most recent member record."""

    last_entry_date: date | None = None
    last_entry_days_ago: int | None = None
    last_entry_severity: int | None = None


class SymptomEntry(BaseModel):
    """A committed record. All required metadata fields are known."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime = Field(default_factory=utc_now)
    metadata: SymptomMetadata
    insights: AdditionalInsights = Field(default_factory=AdditionalInsights)
    issue_id: str | None = None
    conversation_history: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_metadata_known(self) -> SymptomEntry:
        if not self.metadata.is_known():
            raise ValueError(
                f"committed record is missing: {', '.join(self.metadata.missing_required)}"
            )
        return self


class TodoItem(BaseModel):
    """A secondary subject queued for its own conversation."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject_text: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def dedup_key(self) -> str:
        return normalize_subject(self.subject_text)


def normalize_subject(text: str) -> str:
    """Dedup key for todo subjects: trimmed, case-insensitive."""
    return text.strip().casefold()


# =============================================================================
# DRAFT SNAPSHOT - Resumable Conversation State
# =============================================================================


class DraftSnapshot(BaseModel):
    """
    Serialized copy of in-flight conversation state (single slot).

    Holds no live references: todos are referenced by id only.
    """

    model_config = ConfigDict(frozen=True)

    history: list[Utterance] = Field(default_factory=list)
    in_progress_record: SymptomMetadata | None = None
    insights: AdditionalInsights = Field(default_factory=AdditionalInsights)
    todo_queue_ref: list[str] = Field(default_factory=list)
    suggested_linkage: SuggestedIssue | None = None
    issue_selection: IssueSelection | None = None
    phase: ConversationPhase = ConversationPhase.ELICITING
    active_todo_id: str | None = None
    complete: bool = False
    saved_at: datetime = Field(default_factory=utc_now)
