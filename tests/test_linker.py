"""
Tests for the Entity Linker.
"""

from datetime import date

import pytest

from symlog.core.enums import IssueSelectionType
from symlog.core.exceptions import (
    MissingIssueFieldsError,
    SchemaValidationError,
    UnresolvedEntityReferenceError,
)
from symlog.core.schemas import Issue, IssueSelection, SuggestedIssue
from symlog.linking.linker import validate_suggestion


@pytest.fixture
def issues():
    return [
        Issue(id="iss-1", name="Migraine", start_date=date(2025, 10, 1)),
        Issue(id="iss-2", name="Lower back strain", start_date=date(2025, 11, 15)),
    ]


class TestResolveExisting:
    def test_by_id(self, linker, issues):
        selection = IssueSelection(type="existing", existing_issue_ref="iss-2")
        resolution = linker.resolve(selection, issues)
        assert resolution.issue_id == "iss-2"
        assert resolution.links
        assert not resolution.creates_issue

    def test_by_name_case_insensitive(self, linker, issues):
        selection = IssueSelection(type="existing", existing_issue_ref="  migraine ")
        assert linker.resolve(selection, issues).issue_id == "iss-1"

    def test_unknown_reference(self, linker, issues):
        selection = IssueSelection(type="existing", existing_issue_ref="Asthma")
        with pytest.raises(UnresolvedEntityReferenceError) as exc_info:
            linker.resolve(selection, issues)
        assert exc_info.value.reference == "Asthma"

    def test_ambiguous_name(self, linker, issues):
        issues.append(Issue(id="iss-3", name="MIGRAINE", start_date=date(2025, 12, 1)))
        selection = IssueSelection(type="existing", existing_issue_ref="Migraine")
        with pytest.raises(UnresolvedEntityReferenceError) as exc_info:
            linker.resolve(selection, issues)
        assert "matches 2 issues" in str(exc_info.value)

    def test_empty_reference(self, linker, issues):
        selection = IssueSelection(type="existing")
        with pytest.raises(UnresolvedEntityReferenceError):
            linker.resolve(selection, issues)


class TestResolveNewAndNone:
    def test_new_issue(self, linker):
        selection = IssueSelection(
            type="new", new_issue_name=" Knee injury ", new_issue_start_date=date(2025, 12, 1)
        )
        resolution = linker.resolve(selection, [])
        assert resolution.creates_issue
        assert resolution.new_issue_name == "Knee injury"
        assert resolution.new_issue_start_date == date(2025, 12, 1)

    def test_new_issue_missing_fields(self, linker):
        with pytest.raises(MissingIssueFieldsError) as exc_info:
            linker.resolve(IssueSelection(type="new", new_issue_name="  "), [])
        assert exc_info.value.missing_fields == ["new_issue_name", "new_issue_start_date"]

    def test_none(self, linker, issues):
        resolution = linker.resolve(IssueSelection(type=IssueSelectionType.NONE), issues)
        assert not resolution.links
        assert resolution.issue_id is None


class TestSuggestions:
    def test_strong_hint_is_strictly_above_threshold(self, linker):
        assert linker.is_strong_hint(SuggestedIssue(is_related=True, confidence=0.71))
        assert not linker.is_strong_hint(SuggestedIssue(is_related=True, confidence=0.7))
        assert not linker.is_strong_hint(None)

    def test_threshold_from_settings(self, monkeypatch):
        from symlog.config import reset_settings
        from symlog.linking.linker import EntityLinker

        monkeypatch.setenv("SYMLOG_LINK_CONFIDENCE_THRESHOLD", "0.9")
        reset_settings()
        assert EntityLinker().confidence_threshold == 0.9

    def test_validate_suggestion_accepts_guess_alias(self):
        suggestion = validate_suggestion(
            {"isRelated": False, "newIssueNameGuess": "Knee", "confidence": 0.3}
        )
        assert suggestion.new_issue_name == "Knee"

    def test_validate_suggestion_rejects_missing_flag(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_suggestion({"confidence": 0.3})
        assert exc_info.value.field == "suggestedIssue.isRelated"

    def test_validate_suggestion_rejects_non_object(self):
        with pytest.raises(SchemaValidationError):
            validate_suggestion(["iss-1"])
