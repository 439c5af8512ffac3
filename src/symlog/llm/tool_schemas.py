"""
Tool and Output Schemas for Generator Requests

This module defines the JSON schemas published to the generator: the two side
operations it may request (history lookup, todo-queue mutation) and the
extraction envelope its text replies must conform to.
"""

from typing import Any

from symlog.core.enums import HistoryQueryType, IssueSelectionType, Location, TodoOperation
from symlog.llm.base import ToolDefinition

GET_HISTORY = "get_history"
MANAGE_TODOS = "manage_todos"

# Clamping bounds for get_history
DAYS_BACK_DEFAULT = 30
DAYS_BACK_MIN = 1
DAYS_BACK_MAX = 365
LIMIT_DEFAULT = 10
LIMIT_MIN = 1
LIMIT_MAX = 50


# =============================================================================
# TOOL SCHEMAS
# =============================================================================

# CRITICAL: enum values MUST match enums.py exactly (source of truth)

GET_HISTORY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "query_type": {
            "type": "string",
            "enum": [q.value for q in HistoryQueryType],
            "description": (
                "recent: latest entries; by_location: entries at a body location; "
                "by_issue: entries linked to an issue; by_date_range: entries in the "
                "last days_back days"
            ),
        },
        "location": {
            "type": "string",
            "enum": [loc.value for loc in Location],
            "description": "Body location (required for by_location)",
        },
        "issue_id": {
            "type": "string",
            "description": "Issue id (required for by_issue)",
        },
        "days_back": {
            "type": "integer",
            "minimum": DAYS_BACK_MIN,
            "maximum": DAYS_BACK_MAX,
            "description": f"How many days to look back (default {DAYS_BACK_DEFAULT})",
        },
        "limit": {
            "type": "integer",
            "minimum": LIMIT_MIN,
            "maximum": LIMIT_MAX,
            "description": f"Maximum entries to return (default {LIMIT_DEFAULT})",
        },
    },
    "required": ["query_type"],
}

MANAGE_TODOS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "operation": {
            "type": "string",
            "enum": [op.value for op in TodoOperation],
            "description": "Queue operation to perform",
        },
        "subjects": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Symptom subjects to queue (required for add)",
        },
        "todo_id": {
            "type": "string",
            "description": "Todo id (required for complete and remove)",
        },
    },
    "required": ["operation"],
}


def get_tool_definitions() -> list[ToolDefinition]:
    """Tool specs published with every generator request."""
    return [
        ToolDefinition(
            name=GET_HISTORY,
            description=(
                "Look up the user's previously logged symptom entries. Use this when the "
                "user refers to past symptoms or when history would help decide whether "
                "the current symptom belongs to an existing issue."
            ),
            parameters=GET_HISTORY_SCHEMA,
        ),
        ToolDefinition(
            name=MANAGE_TODOS,
            description=(
                "Manage the queue of additional symptoms the user mentioned that will be "
                "logged in their own conversations after the current one."
            ),
            parameters=MANAGE_TODOS_SCHEMA,
        ),
    ]


# =============================================================================
# EXTRACTION ENVELOPE SCHEMA
# =============================================================================

_NULLABLE_STRING = {"type": ["string", "null"]}

EXTRACTION_ENVELOPE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "metadata": {
            "type": "object",
            "properties": {
                "location": {
                    "type": ["string", "null"],
                    "enum": [loc.value for loc in Location] + [None],
                },
                "onset": {"type": ["string", "null"], "format": "date"},
                "severity": {"type": ["integer", "null"], "minimum": 0, "maximum": 10},
                "description": _NULLABLE_STRING,
            },
            "required": ["location", "onset", "severity"],
        },
        "additionalInsights": {
            "type": "object",
            "properties": {
                "provocation": _NULLABLE_STRING,
                "quality": _NULLABLE_STRING,
                "radiation": _NULLABLE_STRING,
                "timing": _NULLABLE_STRING,
            },
        },
        "issueSelection": {
            "type": ["object", "null"],
            "properties": {
                "type": {"type": "string", "enum": [t.value for t in IssueSelectionType]},
                "existingIssueRef": _NULLABLE_STRING,
                "newIssueName": _NULLABLE_STRING,
                "newIssueStartDate": {"type": ["string", "null"], "format": "date"},
            },
            "required": ["type"],
        },
        "suggestedIssue": {
            "type": ["object", "null"],
            "properties": {
                "isRelated": {"type": "boolean"},
                "existingIssueRef": _NULLABLE_STRING,
                "newIssueName": _NULLABLE_STRING,
                "confidence": {"type": "number", "minimum": 0, "maximum": 1},
            },
            "required": ["isRelated", "confidence"],
        },
        "aiMessage": {"type": "string"},
        "conversationComplete": {"type": "boolean"},
        "queuedSymptoms": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["metadata", "aiMessage", "conversationComplete"],
}
