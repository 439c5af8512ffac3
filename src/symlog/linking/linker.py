"""
Entity Linker

Validates the generator's advisory issue suggestion and resolves a confirmed
issue selection to a concrete issue. An "existing" reference may be an issue
id or a free-text issue name; names match case-insensitively and must pick
out exactly one issue.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Sequence

from pydantic import ValidationError as PydanticValidationError

from symlog.config import get_settings
from symlog.core.enums import IssueSelectionType
from symlog.core.exceptions import (
    MissingIssueFieldsError,
    SchemaValidationError,
    UnresolvedEntityReferenceError,
)
from symlog.core.schemas import Issue, IssueSelection, SuggestedIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkResolution:
    """Outcome of resolving an issue selection.

    Exactly one of ``issue_id`` (link to existing) or ``new_issue_name`` plus
    ``new_issue_start_date`` (create, then link) is set, unless the selection
    was "none".
    """

    type: IssueSelectionType
    issue_id: str | None = None
    new_issue_name: str | None = None
    new_issue_start_date: date | None = None

    @property
    def creates_issue(self) -> bool:
        return self.type == IssueSelectionType.NEW

    @property
    def links(self) -> bool:
        return self.type != IssueSelectionType.NONE


def validate_suggestion(payload: Any) -> SuggestedIssue:
    """
    Check the shape of a suggested-linkage payload.

    Raises:
        SchemaValidationError: If the payload is not a valid suggestion.
    """
    if isinstance(payload, SuggestedIssue):
        return payload
    if not isinstance(payload, dict):
        raise SchemaValidationError(
            "suggestedIssue must be an object or null", field="suggestedIssue"
        )
    try:
        return SuggestedIssue.model_validate(payload)
    except PydanticValidationError as e:
        error = e.errors()[0]
        path = ".".join(["suggestedIssue", *(str(p) for p in error["loc"])])
        raise SchemaValidationError(f"{path}: {error['msg']}", field=path) from None


class EntityLinker:
    """Resolves issue references for completed records."""

    def __init__(self, confidence_threshold: float | None = None) -> None:
        if confidence_threshold is None:
            confidence_threshold = get_settings().conversation.link_confidence_threshold
        self._threshold = confidence_threshold

    @property
    def confidence_threshold(self) -> float:
        return self._threshold

    def validate_suggestion(self, payload: Any) -> SuggestedIssue:
        return validate_suggestion(payload)

    def is_strong_hint(self, suggestion: SuggestedIssue | None) -> bool:
        """A suggestion above the threshold may be pre-selected by the host."""
        return suggestion is not None and suggestion.confidence > self._threshold

    def resolve(self, selection: IssueSelection, issues: Sequence[Issue]) -> LinkResolution:
        """
        Resolve a confirmed selection against the known issues.

        Raises:
            UnresolvedEntityReferenceError: If an existing reference matches
                no issue, or more than one issue by name.
            MissingIssueFieldsError: If a new selection lacks name or start date.
        """
        if selection.type == IssueSelectionType.NONE:
            return LinkResolution(type=IssueSelectionType.NONE)

        if selection.type == IssueSelectionType.NEW:
            missing = []
            name = (selection.new_issue_name or "").strip()
            if not name:
                missing.append("new_issue_name")
            if selection.new_issue_start_date is None:
                missing.append("new_issue_start_date")
            if missing:
                raise MissingIssueFieldsError(missing)
            return LinkResolution(
                type=IssueSelectionType.NEW,
                new_issue_name=name,
                new_issue_start_date=selection.new_issue_start_date,
            )

        reference = (selection.existing_issue_ref or "").strip()
        if not reference:
            raise UnresolvedEntityReferenceError(reference)

        for issue in issues:
            if issue.id == reference:
                return LinkResolution(type=IssueSelectionType.EXISTING, issue_id=issue.id)

        wanted = reference.casefold()
        matches = [issue for issue in issues if issue.name.strip().casefold() == wanted]
        if len(matches) != 1:
            logger.info(f"Issue reference {reference!r} matched {len(matches)} issues by name")
            raise UnresolvedEntityReferenceError(reference, candidates=len(matches))

        return LinkResolution(type=IssueSelectionType.EXISTING, issue_id=matches[0].id)
