"""
SQLite Store

SQLite-based PersistenceStore. Entities are stored as JSON documents keyed by
(collection, id); the draft lives in a single-row table.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from symlog.config import get_settings
from symlog.core.enums import Collection
from symlog.core.exceptions import StorageError
from symlog.storage.base import Predicate, model_for

logger = logging.getLogger(__name__)


class SQLiteStore:
    """
    SQLite-based entity persistence.

    Tables:
        - entities: JSON documents per (collection, id), insertion-ordered
        - draft: at most one serialized draft snapshot
    """

    def __init__(self, db_path: Path | None = None) -> None:
        """
        Initialize store.

        Args:
            db_path: Path to SQLite database. Defaults to config.
        """
        self._db_path = db_path or get_settings().storage.db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connection."""
        conn = sqlite3.connect(self._db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA busy_timeout = 30000")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Database error: {e}") from e
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS entities (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    collection TEXT NOT NULL,
                    entity_id TEXT NOT NULL,
                    payload_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (collection, entity_id)
                );

                CREATE TABLE IF NOT EXISTS draft (
                    slot INTEGER PRIMARY KEY CHECK (slot = 1),
                    payload_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_entities_collection ON entities(collection);
            """)

    def _decode(self, collection: Collection, payload: str) -> BaseModel:
        try:
            return model_for(collection).model_validate_json(payload)
        except PydanticValidationError as e:
            raise StorageError(
                f"Corrupt {Collection(collection).value} entry", {"error": str(e)}
            ) from e

    # ==================== Entities ====================

    def get(self, collection: Collection, entity_id: str) -> BaseModel | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT payload_json FROM entities WHERE collection = ? AND entity_id = ?",
                (Collection(collection).value, entity_id),
            ).fetchone()
        if row is None:
            return None
        return self._decode(collection, row["payload_json"])

    def put(self, collection: Collection, entity: BaseModel) -> None:
        expected = model_for(collection)
        if not isinstance(entity, expected):
            raise TypeError(f"{collection} holds {expected.__name__}, got {type(entity).__name__}")
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            # Upsert keeps the original seq, so insertion order survives updates
            conn.execute(
                """
                INSERT INTO entities (collection, entity_id, payload_json, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (collection, entity_id) DO UPDATE SET
                    payload_json = excluded.payload_json,
                    updated_at = excluded.updated_at
                """,
                (Collection(collection).value, entity.id, entity.model_dump_json(), now),
            )

    def delete(self, collection: Collection, entity_id: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute(
                "DELETE FROM entities WHERE collection = ? AND entity_id = ?",
                (Collection(collection).value, entity_id),
            )
            return cursor.rowcount > 0

    def query_all(
        self, collection: Collection, predicate: Predicate | None = None
    ) -> list[BaseModel]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT payload_json FROM entities WHERE collection = ? ORDER BY seq",
                (Collection(collection).value,),
            ).fetchall()
        items = [self._decode(collection, row["payload_json"]) for row in rows]
        if predicate is None:
            return items
        return [item for item in items if predicate(item)]

    # ==================== Draft Slot ====================

    def get_draft(self) -> str | None:
        with self._connection() as conn:
            row = conn.execute("SELECT payload_json FROM draft WHERE slot = 1").fetchone()
        return row["payload_json"] if row else None

    def put_draft(self, payload: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO draft (slot, payload_json, updated_at) VALUES (1, ?, ?)
                ON CONFLICT (slot) DO UPDATE SET
                    payload_json = excluded.payload_json,
                    updated_at = excluded.updated_at
                """,
                (payload, now),
            )

    def clear_draft(self) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM draft")
