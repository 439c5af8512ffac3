"""
Draft Snapshot Store

Single-slot persistence of in-flight conversation state. A snapshot expires
once more than ``draft_ttl_hours`` have passed since it was saved; expired or
undecodable snapshots are cleared on load.
"""

import logging
from datetime import timedelta

from pydantic import ValidationError as PydanticValidationError

from symlog.config import get_settings
from symlog.core.clock import Clock, utc_now
from symlog.core.schemas import DraftSnapshot
from symlog.storage.base import PersistenceStore

logger = logging.getLogger(__name__)


class DraftSnapshotStore:
    def __init__(
        self,
        store: PersistenceStore,
        ttl_hours: float | None = None,
        clock: Clock = utc_now,
    ) -> None:
        if ttl_hours is None:
            ttl_hours = get_settings().conversation.draft_ttl_hours
        self._store = store
        self._ttl = timedelta(hours=ttl_hours)
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def save(self, snapshot: DraftSnapshot) -> DraftSnapshot:
        """Overwrite the slot, stamping the snapshot with the current time."""
        stamped = snapshot.model_copy(update={"saved_at": self._clock()})
        self._store.put_draft(stamped.model_dump_json())
        return stamped

    def load(self) -> DraftSnapshot | None:
        raw = self._store.get_draft()
        if raw is None:
            return None

        try:
            snapshot = DraftSnapshot.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.warning(f"Discarding undecodable draft: {e.errors()[0]['msg']}")
            self._store.clear_draft()
            return None

        if self.is_expired(snapshot):
            logger.info(f"Discarding draft saved at {snapshot.saved_at.isoformat()} (expired)")
            self._store.clear_draft()
            return None

        return snapshot

    def clear(self) -> None:
        self._store.clear_draft()

    def is_expired(self, snapshot: DraftSnapshot) -> bool:
        return self._clock() - snapshot.saved_at > self._ttl
