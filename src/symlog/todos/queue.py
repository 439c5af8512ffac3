"""
Todo Queue Manager

Pending secondary subjects, one conversation each. Subjects are deduplicated
case-insensitively after trimming, against pending items and within a batch.
Items are immutable; completing or removing one deletes it.
"""

import logging
from typing import Iterable

from symlog.core.clock import Clock, utc_now
from symlog.core.enums import Collection
from symlog.core.schemas import TodoItem, normalize_subject
from symlog.storage.base import PersistenceStore
from symlog.storage.repository import generate_id

logger = logging.getLogger(__name__)


class TodoQueue:
    def __init__(self, store: PersistenceStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    def add(self, subjects: Iterable[str]) -> list[TodoItem]:
        """Queue new subjects. Returns only the items actually added."""
        seen = {item.dedup_key for item in self.list()}
        added: list[TodoItem] = []

        for subject in subjects:
            if not isinstance(subject, str):
                continue
            text = subject.strip()
            key = normalize_subject(text)
            if not key or key in seen:
                continue
            seen.add(key)
            item = TodoItem(id=generate_id(), subject_text=text, created_at=self._clock())
            self._store.put(Collection.TODOS, item)
            added.append(item)

        if added:
            logger.debug(f"Queued {len(added)} todo(s)")
        return added

    def list(self) -> list[TodoItem]:
        """Pending items, oldest first."""
        items = self._store.query_all(Collection.TODOS)
        # sorted() is stable, so equal timestamps keep insertion order
        return sorted(items, key=lambda item: item.created_at)

    def get(self, todo_id: str) -> TodoItem | None:
        return self._store.get(Collection.TODOS, todo_id)

    def complete(self, todo_id: str) -> bool:
        return self._store.delete(Collection.TODOS, todo_id)

    def remove(self, todo_id: str) -> bool:
        return self._store.delete(Collection.TODOS, todo_id)

    def next_pending(self) -> TodoItem | None:
        items = self.list()
        return items[0] if items else None

    def clear(self) -> None:
        for item in self.list():
            self._store.delete(Collection.TODOS, item.id)

    def __len__(self) -> int:
        return len(self.list())
