"""
Symlog Core Enumerations

This module defines all enumerations used throughout the symlog system.
These are critical for maintaining type safety and consistent vocabulary.
"""

from enum import Enum


class Location(str, Enum):
    """Controlled body-location vocabulary.

    The first six members are the base regions. The remaining members are the
    extended vocabulary; each maps to one base region via ``region``.
    """

    HEAD = "head"
    CHEST = "chest"
    ABDOMEN = "abdomen"
    BACK = "back"
    LIMBS = "limbs"
    OTHER = "other"

    # Extended vocabulary (sub-locations)
    FOREHEAD = "forehead"
    TEMPLES = "temples"
    BACK_OF_HEAD = "back_of_head"
    JAW = "jaw"
    UPPER_CHEST = "upper_chest"
    LEFT_CHEST = "left_chest"
    RIGHT_CHEST = "right_chest"
    UPPER_ABDOMEN = "upper_abdomen"
    LOWER_ABDOMEN = "lower_abdomen"
    UPPER_BACK = "upper_back"
    LOWER_BACK = "lower_back"
    ARMS = "arms"
    HANDS = "hands"
    LEGS = "legs"
    FEET = "feet"

    @property
    def region(self) -> "Location":
        """Base region this location belongs to."""
        return _SUB_LOCATION_REGIONS.get(self, self)

    @property
    def is_base_region(self) -> bool:
        return self not in _SUB_LOCATION_REGIONS

    @classmethod
    def base_regions(cls) -> list["Location"]:
        return [loc for loc in cls if loc.is_base_region]


_SUB_LOCATION_REGIONS: dict[Location, Location] = {
    Location.FOREHEAD: Location.HEAD,
    Location.TEMPLES: Location.HEAD,
    Location.BACK_OF_HEAD: Location.HEAD,
    Location.JAW: Location.HEAD,
    Location.UPPER_CHEST: Location.CHEST,
    Location.LEFT_CHEST: Location.CHEST,
    Location.RIGHT_CHEST: Location.CHEST,
    Location.UPPER_ABDOMEN: Location.ABDOMEN,
    Location.LOWER_ABDOMEN: Location.ABDOMEN,
    Location.UPPER_BACK: Location.BACK,
    Location.LOWER_BACK: Location.BACK,
    Location.ARMS: Location.LIMBS,
    Location.HANDS: Location.LIMBS,
    Location.LEGS: Location.LIMBS,
    Location.FEET: Location.LIMBS,
}

# Regions that warrant insight collection regardless of severity/duration
CRITICAL_REGIONS = frozenset({Location.CHEST, Location.ABDOMEN, Location.HEAD})


class UtteranceRole(str, Enum):
    """Speaker of an utterance."""

    USER = "user"
    ASSISTANT = "assistant"


class IssueStatus(str, Enum):
    """Lifecycle status of a long-running issue."""

    ACTIVE = "active"
    RESOLVED = "resolved"


class IssueSelectionType(str, Enum):
    """How a completed record is linked to an issue."""

    EXISTING = "existing"
    NEW = "new"
    NONE = "none"


class ErrorKind(str, Enum):
    """Error taxonomy surfaced in validation results and the rationale trail."""

    MALFORMED_JSON = "malformed-json"
    SCHEMA_VIOLATION = "schema-violation"
    GENERATOR_TIMEOUT = "generator-timeout"
    GENERATOR_ERROR = "generator-error"
    TOOL_EXECUTION_ERROR = "tool-execution-error"
    ITERATION_LIMIT_EXCEEDED = "iteration-limit-exceeded"
    UNRESOLVED_ENTITY_REFERENCE = "unresolved-entity-reference"
    MISSING_ISSUE_FIELDS = "missing-issue-fields"


class ConversationPhase(str, Enum):
    """Phases of a single record's conversation."""

    ELICITING = "eliciting"
    AWAITING_INSIGHTS = "awaiting_insights"
    AWAITING_LINKAGE = "awaiting_linkage"
    COMPLETE = "complete"


class TransitionIntent(str, Enum):
    """Side effects requested by a phase transition."""

    PERSIST_DRAFT = "persist_draft"
    COMMIT_RECORD = "commit_record"
    CLEAR_DRAFT = "clear_draft"
    DISPATCH_TOOL = "dispatch_tool"


class GeneratorReplyKind(str, Enum):
    """Kind of reply returned by the generator."""

    TEXT = "text"
    TOOL_USE = "tool_use"


class HistoryQueryType(str, Enum):
    """Query types accepted by the get_history tool."""

    RECENT = "recent"
    BY_LOCATION = "by_location"
    BY_ISSUE = "by_issue"
    BY_DATE_RANGE = "by_date_range"


class TodoOperation(str, Enum):
    """Operations accepted by the manage_todos tool."""

    ADD = "add"
    LIST = "list"
    COMPLETE = "complete"
    REMOVE = "remove"


class Collection(str, Enum):
    """Durable collections held by the persistence store."""

    RECORDS = "records"
    ISSUES = "issues"
    TODOS = "todos"
