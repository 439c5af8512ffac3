"""
Tests for the Symptom Repository.

Tests:
1. Record and issue CRUD
2. Link consistency in both directions
3. Enriched issues and statistics
4. Filtering and pagination
"""

from datetime import date, timedelta

import pytest

from fakes import NOW, make_entry
from symlog.core.enums import IssueStatus, Location
from symlog.core.exceptions import InvalidDateRangeError, IssueNotFoundError, RecordNotFoundError


class TestRecords:
    def test_save_and_get(self, repository):
        entry = make_entry("r1", NOW)
        repository.save_record(entry)
        assert repository.get_record("r1") == entry

    def test_require_missing_record(self, repository):
        with pytest.raises(RecordNotFoundError):
            repository.require_record("nope")

    def test_recent_records_newest_first(self, repository):
        for i in range(4):
            repository.save_record(make_entry(f"r{i}", NOW - timedelta(days=i)))
        assert [r.id for r in repository.recent_records(limit=2)] == ["r0", "r1"]

    def test_save_with_unknown_issue_fails(self, repository):
        with pytest.raises(IssueNotFoundError):
            repository.save_record(make_entry("r1", NOW, issue_id="ghost"))

    def test_delete_record_updates_issue(self, repository):
        issue = repository.create_issue("Migraine", date(2025, 12, 1))
        repository.save_record(make_entry("r1", NOW, issue_id=issue.id))
        assert repository.delete_record("r1") is True
        assert repository.require_issue(issue.id).member_record_ids == []
        assert repository.delete_record("r1") is False


class TestIssues:
    def test_create_trims_name(self, repository, clock):
        issue = repository.create_issue("  Migraine ", date(2025, 12, 1))
        assert issue.name == "Migraine"
        assert issue.status == IssueStatus.ACTIVE
        assert issue.created_at == clock()

    def test_list_by_status(self, repository):
        a = repository.create_issue("A", date(2025, 12, 1))
        repository.create_issue("B", date(2025, 12, 1))
        repository.resolve_issue(a.id, date(2025, 12, 10))
        assert [i.name for i in repository.list_issues(IssueStatus.ACTIVE)] == ["B"]
        assert [i.name for i in repository.list_issues(IssueStatus.RESOLVED)] == ["A"]

    def test_end_before_start_rejected(self, repository):
        issue = repository.create_issue("A", date(2025, 12, 5))
        with pytest.raises(InvalidDateRangeError):
            repository.update_issue(issue.id, end_date=date(2025, 12, 1))

    def test_end_equal_to_start_allowed(self, repository):
        issue = repository.create_issue("A", date(2025, 12, 5))
        assert repository.resolve_issue(issue.id, date(2025, 12, 5)).end_date == date(2025, 12, 5)

    def test_immutable_fields(self, repository):
        issue = repository.create_issue("A", date(2025, 12, 5))
        with pytest.raises(ValueError):
            repository.update_issue(issue.id, id="other")

    def test_update_missing_issue(self, repository):
        with pytest.raises(IssueNotFoundError):
            repository.update_issue("ghost", name="x")

    def test_delete_issue_unlinks_members(self, repository):
        issue = repository.create_issue("A", date(2025, 12, 1))
        repository.save_record(make_entry("r1", NOW, issue_id=issue.id))
        assert repository.delete_issue(issue.id) is True
        record = repository.require_record("r1")
        assert record.issue_id is None
        assert repository.delete_issue(issue.id) is False


class TestLinks:
    def test_save_record_mirrors_membership(self, repository):
        issue = repository.create_issue("A", date(2025, 12, 1))
        repository.save_record(make_entry("r1", NOW, issue_id=issue.id))
        assert repository.require_issue(issue.id).member_record_ids == ["r1"]

    def test_relink_moves_membership(self, repository):
        a = repository.create_issue("A", date(2025, 12, 1))
        b = repository.create_issue("B", date(2025, 12, 1))
        repository.save_record(make_entry("r1", NOW, issue_id=a.id))

        linked = repository.link_record("r1", b.id)

        assert linked.issue_id == b.id
        assert repository.require_issue(a.id).member_record_ids == []
        assert repository.require_issue(b.id).member_record_ids == ["r1"]

    def test_link_is_idempotent(self, repository):
        a = repository.create_issue("A", date(2025, 12, 1))
        repository.save_record(make_entry("r1", NOW))
        repository.link_record("r1", a.id)
        repository.link_record("r1", a.id)
        assert repository.require_issue(a.id).member_record_ids == ["r1"]

    def test_unlink(self, repository):
        a = repository.create_issue("A", date(2025, 12, 1))
        repository.save_record(make_entry("r1", NOW, issue_id=a.id))
        repository.unlink_record("r1")
        assert repository.require_record("r1").issue_id is None
        assert repository.require_issue(a.id).member_record_ids == []


class TestQueries:
    def test_enriched_issue_uses_latest_record(self, repository):
        issue = repository.create_issue("A", date(2025, 11, 1))
        repository.save_record(make_entry("old", NOW - timedelta(days=9), severity=3, issue_id=issue.id))
        repository.save_record(make_entry("new", NOW - timedelta(days=2), severity=8, issue_id=issue.id))

        (enriched,) = repository.get_enriched_issues()

        assert enriched.last_entry_date == (NOW - timedelta(days=2)).date()
        assert enriched.last_entry_days_ago == 2
        assert enriched.last_entry_severity == 8

    def test_enriched_issue_without_records(self, repository):
        repository.create_issue("A", date(2025, 11, 1))
        (enriched,) = repository.get_enriched_issues()
        assert enriched.last_entry_date is None

    def test_issue_stats_rounds_half_up(self, repository):
        issue = repository.create_issue("A", date(2025, 11, 1))
        repository.save_record(make_entry("r1", NOW, severity=4, issue_id=issue.id))
        repository.save_record(make_entry("r2", NOW + timedelta(hours=1), severity=5, issue_id=issue.id))
        stats = repository.issue_stats(issue.id)
        assert stats.total_entries == 2
        assert stats.avg_severity == 5
        assert stats.last_entry == NOW + timedelta(hours=1)

    def test_issue_stats_empty(self, repository):
        issue = repository.create_issue("A", date(2025, 11, 1))
        assert repository.issue_stats(issue.id).total_entries == 0

    def test_filter_base_region_matches_sub_locations(self, repository):
        repository.save_record(make_entry("r1", NOW, location="left_chest"))
        repository.save_record(make_entry("r2", NOW, location="chest"))
        repository.save_record(make_entry("r3", NOW, location="head"))

        page = repository.filter_records(location=Location.CHEST)

        assert {r.id for r in page.records} == {"r1", "r2"}
        assert {r.id for r in repository.filter_records(location="left_chest").records} == {"r1"}

    def test_filter_severity_and_search(self, repository):
        repository.save_record(make_entry("r1", NOW, severity=2, description="dull ache"))
        repository.save_record(make_entry("r2", NOW, severity=8, description="Sharp stabbing"))
        assert [r.id for r in repository.filter_records(severity_min=5).records] == ["r2"]
        assert [r.id for r in repository.filter_records(severity_max=5).records] == ["r1"]
        assert [r.id for r in repository.filter_records(search="sharp").records] == ["r2"]

    def test_filter_unlinked_only(self, repository):
        issue = repository.create_issue("A", date(2025, 11, 1))
        repository.save_record(make_entry("r1", NOW, issue_id=issue.id))
        repository.save_record(make_entry("r2", NOW))
        assert [r.id for r in repository.filter_records(issue_id=None).records] == ["r2"]
        assert repository.filter_records().total == 2

    def test_filter_by_onset_range(self, repository):
        repository.save_record(make_entry("r1", NOW, onset=date(2025, 11, 1)))
        repository.save_record(make_entry("r2", NOW, onset=date(2025, 12, 5)))
        page = repository.filter_records(start_date=date(2025, 12, 1), end_date=date(2025, 12, 11))
        assert [r.id for r in page.records] == ["r2"]

    def test_pagination(self, repository):
        for i in range(5):
            repository.save_record(make_entry(f"r{i}", NOW - timedelta(hours=i)))
        page = repository.filter_records(page=2, limit=2)
        assert [r.id for r in page.records] == ["r2", "r3"]
        assert page.total == 5
