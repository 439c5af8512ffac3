"""
Symptom Repository

Domain operations over a PersistenceStore: committed records, issues and the
links between them. Keeps both sides of a link consistent (record.issue_id and
issue.member_record_ids).
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from symlog.core.clock import Clock, utc_now
from symlog.core.enums import Collection, IssueStatus, Location
from symlog.core.exceptions import InvalidDateRangeError, IssueNotFoundError, RecordNotFoundError
from symlog.core.schemas import EnrichedIssue, Issue, SymptomEntry
from symlog.storage.base import PersistenceStore

logger = logging.getLogger(__name__)


def generate_id() -> str:
    return str(uuid.uuid4())


class _AnyIssue:
    def __repr__(self) -> str:
        return "ANY_ISSUE"


# Default for filter_records(issue_id=...): None already means "unlinked"
ANY_ISSUE: Any = _AnyIssue()

_IMMUTABLE_ISSUE_FIELDS = {"id", "created_at"}


@dataclass(frozen=True)
class RecordPage:
    records: list[SymptomEntry]
    total: int


@dataclass(frozen=True)
class IssueStats:
    total_entries: int
    avg_severity: int
    last_entry: datetime | None


class SymptomRepository:
    """
    Records and issues.

    Usage:
        repo = SymptomRepository(SQLiteStore())
        issue = repo.create_issue("Migraines", date(2025, 12, 1))
        repo.link_record(entry.id, issue.id)
    """

    def __init__(self, store: PersistenceStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    @property
    def store(self) -> PersistenceStore:
        return self._store

    # ==================== Records ====================

    def save_record(self, entry: SymptomEntry) -> SymptomEntry:
        """Insert or replace a record. A set issue_id is mirrored on the issue."""
        previous = self.get_record(entry.id)
        if previous is not None and previous.issue_id and previous.issue_id != entry.issue_id:
            self._remove_member(previous.issue_id, entry.id)

        if entry.issue_id is not None:
            self._add_member(self.require_issue(entry.issue_id), entry.id)

        self._store.put(Collection.RECORDS, entry)
        return entry

    def get_record(self, record_id: str) -> SymptomEntry | None:
        return self._store.get(Collection.RECORDS, record_id)

    def require_record(self, record_id: str) -> SymptomEntry:
        record = self.get_record(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def list_records(self, issue_id: str | None = None) -> list[SymptomEntry]:
        if issue_id is None:
            return self._store.query_all(Collection.RECORDS)
        return self._store.query_all(Collection.RECORDS, lambda r: r.issue_id == issue_id)

    def recent_records(self, limit: int = 5) -> list[SymptomEntry]:
        """Most recently created records first."""
        records = sorted(self.list_records(), key=lambda r: r.created_at, reverse=True)
        return records[:limit]

    def delete_record(self, record_id: str) -> bool:
        """Delete a record, removing it from its issue's member list."""
        record = self.get_record(record_id)
        if record is None:
            return False
        if record.issue_id:
            self._remove_member(record.issue_id, record_id)
        return self._store.delete(Collection.RECORDS, record_id)

    # ==================== Issues ====================

    def create_issue(
        self, name: str, start_date: date, status: IssueStatus = IssueStatus.ACTIVE
    ) -> Issue:
        issue = Issue(
            id=generate_id(),
            name=name.strip(),
            status=status,
            start_date=start_date,
            created_at=self._clock(),
        )
        return self.save_issue(issue)

    def save_issue(self, issue: Issue) -> Issue:
        self._check_date_range(issue.start_date, issue.end_date)
        self._store.put(Collection.ISSUES, issue)
        return issue

    def get_issue(self, issue_id: str) -> Issue | None:
        return self._store.get(Collection.ISSUES, issue_id)

    def require_issue(self, issue_id: str) -> Issue:
        issue = self.get_issue(issue_id)
        if issue is None:
            raise IssueNotFoundError(issue_id)
        return issue

    def list_issues(self, status: IssueStatus | None = None) -> list[Issue]:
        if status is None:
            return self._store.query_all(Collection.ISSUES)
        return self._store.query_all(Collection.ISSUES, lambda i: i.status == status)

    def update_issue(self, issue_id: str, **updates: Any) -> Issue:
        """
        Partially update an issue.

        Raises:
            IssueNotFoundError: If the issue does not exist.
            InvalidDateRangeError: If the result would end before it starts.
            ValueError: If an immutable field is targeted.
        """
        forbidden = _IMMUTABLE_ISSUE_FIELDS & updates.keys()
        if forbidden:
            raise ValueError(f"Cannot update issue fields: {', '.join(sorted(forbidden))}")

        issue = self.require_issue(issue_id)
        start = updates.get("start_date", issue.start_date)
        end = updates.get("end_date", issue.end_date)
        self._check_date_range(start, end)

        updated = Issue.model_validate({**issue.model_dump(), **updates})
        self._store.put(Collection.ISSUES, updated)
        return updated

    def resolve_issue(self, issue_id: str, end_date: date) -> Issue:
        return self.update_issue(issue_id, status=IssueStatus.RESOLVED, end_date=end_date)

    def delete_issue(self, issue_id: str) -> bool:
        """Delete an issue. Member records are unlinked, never deleted."""
        if self.get_issue(issue_id) is None:
            return False
        for record in self.list_records(issue_id):
            self._store.put(Collection.RECORDS, record.model_copy(update={"issue_id": None}))
        return self._store.delete(Collection.ISSUES, issue_id)

    # ==================== Links ====================

    def link_record(self, record_id: str, issue_id: str) -> SymptomEntry:
        record = self.require_record(record_id)
        issue = self.require_issue(issue_id)

        if record.issue_id and record.issue_id != issue_id:
            self._remove_member(record.issue_id, record_id)

        self._add_member(issue, record_id)
        linked = record.model_copy(update={"issue_id": issue_id})
        self._store.put(Collection.RECORDS, linked)
        return linked

    def unlink_record(self, record_id: str) -> None:
        record = self.get_record(record_id)
        if record is None or not record.issue_id:
            return
        self._remove_member(record.issue_id, record_id)
        self._store.put(Collection.RECORDS, record.model_copy(update={"issue_id": None}))

    def _add_member(self, issue: Issue, record_id: str) -> None:
        if record_id in issue.member_record_ids:
            return
        self._store.put(
            Collection.ISSUES,
            issue.model_copy(update={"member_record_ids": [*issue.member_record_ids, record_id]}),
        )

    def _remove_member(self, issue_id: str, record_id: str) -> None:
        issue = self.get_issue(issue_id)
        if issue is None:
            return
        members = [rid for rid in issue.member_record_ids if rid != record_id]
        self._store.put(Collection.ISSUES, issue.model_copy(update={"member_record_ids": members}))

    # ==================== Queries ====================

    def get_enriched_issues(self, status: IssueStatus | None = None) -> list[EnrichedIssue]:
        """Issues plus the date, age and severity of their most recent record."""
        today = self._clock().date()
        enriched = []
        for issue in self.list_issues(status):
            records = self.list_records(issue.id)
            data = issue.model_dump()
            if records:
                latest = max(records, key=lambda r: r.created_at)
                entry_date = latest.created_at.date()
                data.update(
                    last_entry_date=entry_date,
                    last_entry_days_ago=(today - entry_date).days,
                    last_entry_severity=latest.metadata.severity,
                )
            enriched.append(EnrichedIssue.model_validate(data))
        return enriched

    def filter_records(
        self,
        *,
        location: Location | str | None = None,
        severity_min: int | None = None,
        severity_max: int | None = None,
        issue_id: str | None = ANY_ISSUE,
        search: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> RecordPage:
        """
        Filtered, paginated records, newest first.

        A base-region location also matches its sub-locations. ``issue_id=None``
        selects unlinked records; leaving it unset matches any.
        """
        records = self.list_records()

        if location:
            wanted = Location(location)
            records = [
                r for r in records
                if r.metadata.location == wanted or r.metadata.location.region == wanted
            ]
        if severity_min is not None:
            records = [r for r in records if r.metadata.severity >= severity_min]
        if severity_max is not None:
            records = [r for r in records if r.metadata.severity <= severity_max]
        if issue_id is not ANY_ISSUE:
            records = [r for r in records if r.issue_id == issue_id]
        if search:
            query = search.casefold()
            records = [
                r for r in records
                if query in (r.metadata.description or "").casefold()
                or query in r.metadata.location.value
            ]
        if start_date is not None:
            records = [r for r in records if r.metadata.onset >= start_date]
        if end_date is not None:
            records = [r for r in records if r.metadata.onset <= end_date]

        records.sort(key=lambda r: r.created_at, reverse=True)
        start = (max(page, 1) - 1) * limit
        return RecordPage(records=records[start:start + limit], total=len(records))

    def issue_stats(self, issue_id: str) -> IssueStats:
        records = self.list_records(issue_id)
        if not records:
            return IssueStats(total_entries=0, avg_severity=0, last_entry=None)

        mean = sum(r.metadata.severity for r in records) / len(records)
        return IssueStats(
            total_entries=len(records),
            avg_severity=math.floor(mean + 0.5),
            last_entry=max(r.created_at for r in records),
        )

    @staticmethod
    def _check_date_range(start: date, end: date | None) -> None:
        if end is not None and end < start:
            raise InvalidDateRangeError(start, end)
