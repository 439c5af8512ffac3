"""
Symlog Storage Layer

Persistence store adapters, the record/issue repository and the draft slot.
"""

from symlog.storage.base import PersistenceStore
from symlog.storage.draft_store import DraftSnapshotStore
from symlog.storage.memory_store import InMemoryStore
from symlog.storage.repository import (
    ANY_ISSUE,
    IssueStats,
    RecordPage,
    SymptomRepository,
    generate_id,
)
from symlog.storage.sqlite_store import SQLiteStore

__all__ = [
    "PersistenceStore",
    "DraftSnapshotStore",
    "InMemoryStore",
    "SQLiteStore",
    "ANY_ISSUE",
    "IssueStats",
    "RecordPage",
    "SymptomRepository",
    "generate_id",
]
