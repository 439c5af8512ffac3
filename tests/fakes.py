"""
Test doubles shared by the test modules.

ScriptedGenerator replays a fixed list of replies; FixedClock pins "now";
RecordingSleep captures backoff delays without sleeping.
"""

import asyncio
import json
from datetime import date, datetime, timedelta, timezone
from typing import Any

from symlog.core.schemas import SymptomEntry, SymptomMetadata, Utterance
from symlog.llm.base import GeneratorReply, ToolCall

# Thursday 2025-12-11, midday UTC
NOW = datetime(2025, 12, 11, 12, 0, tzinfo=timezone.utc)


def run_async(coro):
    """Run async coroutine from a synchronous test."""
    return asyncio.run(coro)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedGenerator:
    """
    Generator that returns scripted replies in order.

    Each script item is a reply string (text), a GeneratorReply, or an
    exception instance to raise.
    """

    def __init__(self, script: list[Any]) -> None:
        self._script = list(script)
        self.calls: list[dict[str, Any]] = []

    async def generate(self, system_contract, context_summary, history, tool_defs):
        self.calls.append(
            {
                "system_contract": system_contract,
                "context_summary": context_summary,
                "history": list(history),
                "tool_names": [t.name for t in tool_defs],
            }
        )
        if not self._script:
            raise AssertionError("ScriptedGenerator ran out of replies")
        item = self._script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, GeneratorReply):
            return item
        return GeneratorReply.text(item)

    @property
    def remaining(self) -> int:
        return len(self._script)


class SlowGenerator:
    """Never answers within any sane timeout."""

    async def generate(self, system_contract, context_summary, history, tool_defs):
        await asyncio.sleep(3600)


def envelope(
    location: str | None = None,
    onset: str | None = None,
    severity: Any = None,
    description: str | None = None,
    *,
    insights: dict[str, Any] | None = None,
    issue_selection: dict[str, Any] | None = None,
    suggested_issue: dict[str, Any] | None = None,
    message: str = "Tell me more.",
    complete: bool = False,
    queued: list[str] | None = None,
    fenced: bool = False,
) -> str:
    """Serialized generator reply in the output contract format."""
    payload: dict[str, Any] = {
        "metadata": {
            "location": location,
            "onset": onset,
            "severity": severity,
            "description": description,
        },
        "additionalInsights": insights or {},
        "issueSelection": issue_selection,
        "suggestedIssue": suggested_issue,
        "aiMessage": message,
        "conversationComplete": complete,
    }
    if queued is not None:
        payload["queuedSymptoms"] = queued
    text = json.dumps(payload)
    if fenced:
        return f"```json\n{text}\n```"
    return text


def tool_reply(*calls: tuple[str, dict[str, Any]]) -> GeneratorReply:
    return GeneratorReply.tool_use(
        [ToolCall(name=name, args=args, call_id=f"call_{i}") for i, (name, args) in enumerate(calls)]
    )


def make_entry(
    entry_id: str,
    created_at: datetime,
    location: str = "head",
    onset: date = date(2025, 12, 1),
    severity: int = 5,
    description: str | None = None,
    issue_id: str | None = None,
) -> SymptomEntry:
    return SymptomEntry(
        id=entry_id,
        created_at=created_at,
        metadata=SymptomMetadata(
            location=location, onset=onset, severity=severity, description=description
        ),
        issue_id=issue_id,
    )


def visible_texts(history: list[Utterance]) -> list[str]:
    return [u.text for u in history]
