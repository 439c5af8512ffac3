#!/usr/bin/env python3
"""
Example: Log symptoms from the terminal

Runs a ConversationSession against the configured generator and a local
SQLite store. Offers to resume an unexpired draft and walks through queued
symptoms after each committed record.

Requirements:
    pip install -e .
    export ANTHROPIC_API_KEY=...   # or OPENAI_API_KEY

Usage:
    python examples/chat.py
"""

import asyncio
import sys

from symlog.config import get_settings
from symlog.core.exceptions import ConfigurationError
from symlog.linking import EntityLinker
from symlog.llm import create_generator_with_fallback
from symlog.observability import configure_logging
from symlog.orchestration import ConversationOrchestrator, ConversationSession
from symlog.storage import DraftSnapshotStore, SQLiteStore, SymptomRepository
from symlog.todos import TodoQueue
from symlog.tools import ToolDispatcher


def build_session() -> ConversationSession:
    store = SQLiteStore()
    repository = SymptomRepository(store)
    todos = TodoQueue(store)
    dispatcher = ToolDispatcher(repository, todos)
    orchestrator = ConversationOrchestrator(create_generator_with_fallback(), dispatcher)
    return ConversationSession(
        orchestrator, repository, todos, DraftSnapshotStore(store), EntityLinker()
    )


async def main():
    configure_logging()

    try:
        session = build_session()
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}")
        sys.exit(1)

    print(f"Symptom log at {get_settings().storage.db_path}")

    draft = session.pending_draft()
    if draft is not None:
        answer = input(f"Resume your unfinished entry from {draft.saved_at:%Y-%m-%d %H:%M}? [y/N] ")
        if answer.strip().lower().startswith("y"):
            session.resume(draft)
            for utterance in session.history:
                print(f"{utterance.role.value}> {utterance.text}")
        else:
            session.discard()

    print("Describe what you're feeling (empty line to quit).")
    while True:
        text = input("you> ").strip()
        if not text:
            break

        outcome = await session.send(text)
        if not outcome.ok:
            print(f"[error] {outcome.error}")
            continue

        print(f"assistant> {outcome.reply}")
        for item in outcome.queued:
            print(f"[queued] {item.subject_text}")
        if outcome.result and outcome.result.partial:
            print("[note] partial result, some details may need repeating")

        if outcome.committed is not None:
            meta = outcome.committed.metadata
            print(f"[saved] {meta.location.value}, severity {meta.severity}/10, since {meta.onset}")
            if outcome.next_todo is not None:
                answer = input(f"Log '{outcome.next_todo.subject_text}' next? [Y/n] ")
                if answer.strip().lower().startswith("n"):
                    session.decline_todo(outcome.next_todo.id)
                    continue
                follow_up = await session.start_next_todo()
                if follow_up is not None and follow_up.ok:
                    print(f"assistant> {follow_up.reply}")


if __name__ == "__main__":
    asyncio.run(main())
