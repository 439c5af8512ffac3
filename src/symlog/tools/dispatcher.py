"""
Tool Dispatcher

Executes generator-requested tools. Every outcome, including bad arguments,
unknown tools and internal failures, is a descriptive string handed back to
the generator; nothing is raised to the caller.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from symlog.core.clock import Clock, utc_now
from symlog.core.enums import ErrorKind, HistoryQueryType, Location, TodoOperation
from symlog.core.schemas import SymptomEntry
from symlog.llm.tool_schemas import (
    DAYS_BACK_DEFAULT,
    DAYS_BACK_MAX,
    DAYS_BACK_MIN,
    GET_HISTORY,
    LIMIT_DEFAULT,
    LIMIT_MAX,
    LIMIT_MIN,
    MANAGE_TODOS,
)
from symlog.observability.metrics import get_symlog_metrics
from symlog.storage.repository import SymptomRepository
from symlog.todos.queue import TodoQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolOutcome:
    text: str
    error_kind: ErrorKind | None = None

    @property
    def failed(self) -> bool:
        return self.error_kind is not None


class ToolArgumentError(Exception):
    """Bad or missing tool argument; the message is returned to the generator."""


def _clamp_int(value: Any, default: int, low: int, high: int, name: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ToolArgumentError(f"{name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ToolArgumentError(f"{name} must be an integer") from None
    return min(max(low, number), high)


def format_entry(entry: SymptomEntry, today: date) -> str:
    """Multi-line digest of one record."""
    meta = entry.metadata
    days_ago = (today - entry.created_at.date()).days
    lines = [
        f"Date: {meta.onset.isoformat()} ({days_ago} days ago)",
        f"Location: {meta.location.value}",
        f"Severity: {meta.severity}/10",
    ]
    if meta.description:
        lines.append(f"Description: {meta.description}")

    insights = [
        f"{label}: {value}"
        for label, value in (
            ("Quality", entry.insights.quality),
            ("Provocation", entry.insights.provocation),
            ("Radiation", entry.insights.radiation),
            ("Timing", entry.insights.timing),
        )
        if value
    ]
    if insights:
        lines.append(f"Additional Info: {', '.join(insights)}")
    if entry.issue_id:
        lines.append(f"Linked to Issue ID: {entry.issue_id}")
    return "\n".join(lines)


class ToolDispatcher:
    """Routes tool calls to history lookups and todo-queue mutations."""

    def __init__(
        self,
        repository: SymptomRepository,
        todo_queue: TodoQueue,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._todos = todo_queue
        self._clock = clock
        self._metrics = get_symlog_metrics()

    def execute(self, name: str, args: dict[str, Any] | None = None) -> str:
        return self.execute_call(name, args).text

    def execute_call(self, name: str, args: dict[str, Any] | None = None) -> ToolOutcome:
        args = args if isinstance(args, dict) else {}
        handlers = {
            GET_HISTORY: self._get_history,
            MANAGE_TODOS: self._manage_todos,
        }
        handler = handlers.get(name)
        if handler is None:
            self._metrics.tool_calls.inc(labels={"tool": "unknown", "status": "error"})
            return ToolOutcome(f'Error: Unknown tool "{name}"', ErrorKind.TOOL_EXECUTION_ERROR)

        try:
            text = handler(args)
        except ToolArgumentError as e:
            self._metrics.tool_calls.inc(labels={"tool": name, "status": "error"})
            return ToolOutcome(f"Error: {e}", ErrorKind.TOOL_EXECUTION_ERROR)
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            self._metrics.tool_calls.inc(labels={"tool": name, "status": "error"})
            return ToolOutcome(f"Error executing {name}: {e}", ErrorKind.TOOL_EXECUTION_ERROR)

        self._metrics.tool_calls.inc(labels={"tool": name, "status": "ok"})
        return ToolOutcome(text)

    # ==================== get_history ====================

    def _get_history(self, args: dict[str, Any]) -> str:
        raw_type = args.get("query_type")
        try:
            query_type = HistoryQueryType(raw_type)
        except ValueError:
            allowed = ", ".join(q.value for q in HistoryQueryType)
            raise ToolArgumentError(
                f'Invalid query_type "{raw_type}". Must be one of: {allowed}'
            ) from None

        days_back = _clamp_int(
            args.get("days_back"), DAYS_BACK_DEFAULT, DAYS_BACK_MIN, DAYS_BACK_MAX, "days_back"
        )
        limit = _clamp_int(args.get("limit"), LIMIT_DEFAULT, LIMIT_MIN, LIMIT_MAX, "limit")
        location = args.get("location")
        issue_id = args.get("issue_id")

        today = self._clock().date()
        since = today - timedelta(days=days_back)

        if query_type == HistoryQueryType.RECENT:
            page = self._repository.filter_records(limit=limit)

        elif query_type == HistoryQueryType.BY_LOCATION:
            if not location:
                raise ToolArgumentError(
                    "location parameter is required for by_location query type"
                )
            try:
                wanted = Location(location)
            except ValueError:
                allowed = ", ".join(loc.value for loc in Location)
                raise ToolArgumentError(
                    f'Invalid location "{location}". Must be one of: {allowed}'
                ) from None
            page = self._repository.filter_records(location=wanted, start_date=since, limit=limit)

        elif query_type == HistoryQueryType.BY_ISSUE:
            if not issue_id:
                raise ToolArgumentError("issue_id parameter is required for by_issue query type")
            page = self._repository.filter_records(issue_id=issue_id, limit=limit)

        else:
            page = self._repository.filter_records(start_date=since, end_date=today, limit=limit)

        records = page.records
        if not records:
            message = f'No symptom entries found for query type "{query_type.value}"'
            if location:
                message += f' with location "{location}"'
            if issue_id:
                message += f' with issue ID "{issue_id}"'
            return message + f" in the last {days_back} days."

        noun = "entry" if len(records) == 1 else "entries"
        blocks = [f"Found {len(records)} symptom {noun}:"]
        for index, record in enumerate(records, start=1):
            blocks.append(f"Entry {index}:\n{format_entry(record, today)}")
        return "\n\n".join(blocks)

    # ==================== manage_todos ====================

    def _manage_todos(self, args: dict[str, Any]) -> str:
        raw_op = args.get("operation")
        try:
            operation = TodoOperation(raw_op)
        except ValueError:
            allowed = ", ".join(op.value for op in TodoOperation)
            raise ToolArgumentError(
                f'Invalid operation "{raw_op}". Must be one of: {allowed}'
            ) from None

        if operation == TodoOperation.ADD:
            subjects = args.get("subjects")
            if isinstance(subjects, str):
                subjects = [subjects]
            if not subjects or not isinstance(subjects, list):
                raise ToolArgumentError("subjects parameter is required for add operation")
            added = self._todos.add(subjects)
            if not added:
                return "No new todos added (all subjects already queued)."
            listing = ", ".join(f'"{item.subject_text}" [{item.id}]' for item in added)
            return f"Added {len(added)} todo(s): {listing}"

        if operation == TodoOperation.LIST:
            items = self._todos.list()
            if not items:
                return "No pending todos."
            lines = [f"Pending todos ({len(items)}):"]
            lines.extend(
                f"{i}. {item.subject_text} [{item.id}]" for i, item in enumerate(items, start=1)
            )
            return "\n".join(lines)

        todo_id = args.get("todo_id")
        if not todo_id:
            raise ToolArgumentError(f"todo_id parameter is required for {operation.value} operation")

        item = self._todos.get(todo_id)
        if operation == TodoOperation.COMPLETE:
            done = self._todos.complete(todo_id)
            verb = "Completed"
        else:
            done = self._todos.remove(todo_id)
            verb = "Removed"

        if not done:
            raise ToolArgumentError(f'No todo found with id "{todo_id}"')
        return f'{verb} todo "{item.subject_text if item else todo_id}"'
