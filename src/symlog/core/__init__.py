"""
Symlog Core

Enumerations, schemas and exceptions shared by every layer.
"""

from symlog.core.enums import (
    CRITICAL_REGIONS,
    Collection,
    ConversationPhase,
    ErrorKind,
    GeneratorReplyKind,
    HistoryQueryType,
    IssueSelectionType,
    IssueStatus,
    Location,
    TodoOperation,
    TransitionIntent,
    UtteranceRole,
)
from symlog.core.schemas import (
    AdditionalInsights,
    DraftSnapshot,
    EnrichedIssue,
    ExtractionEnvelope,
    Issue,
    IssueSelection,
    SuggestedIssue,
    SymptomEntry,
    SymptomMetadata,
    TodoItem,
    Utterance,
)

__all__ = [
    # Enums
    "CRITICAL_REGIONS",
    "Collection",
    "ConversationPhase",
    "ErrorKind",
    "GeneratorReplyKind",
    "HistoryQueryType",
    "IssueSelectionType",
    "IssueStatus",
    "Location",
    "TodoOperation",
    "TransitionIntent",
    "UtteranceRole",
    # Schemas
    "AdditionalInsights",
    "DraftSnapshot",
    "EnrichedIssue",
    "ExtractionEnvelope",
    "Issue",
    "IssueSelection",
    "SuggestedIssue",
    "SymptomEntry",
    "SymptomMetadata",
    "TodoItem",
    "Utterance",
]
