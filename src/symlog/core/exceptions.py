"""
Symlog Custom Exceptions

This module defines all custom exceptions used throughout the symlog system.
Exceptions are organized by layer/responsibility.

Validation of generator output is NOT reported through exceptions: the
Output Validator returns a ValidationFailure value instead. The exceptions
below cover configuration, generator transport, turn-level failures and
storage.
"""

from typing import Any

from symlog.core.enums import ErrorKind


class SymlogError(Exception):
    """Base exception for all symlog errors."""

    error_kind: ErrorKind | None = None

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(SymlogError):
    """Error in system configuration."""

    pass


class MissingAPIKeyError(ConfigurationError):
    """Required API key is missing."""

    def __init__(self, key_name: str):
        super().__init__(f"Missing required API key: {key_name}", {"key_name": key_name})


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(SymlogError):
    """Error in data validation."""

    pass


class SchemaValidationError(ValidationError):
    """A generator payload section has the wrong shape."""

    error_kind = ErrorKind.SCHEMA_VIOLATION

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class MissingIssueFieldsError(ValidationError):
    """A 'new' issue selection lacks its name or start date.

    Reaching this is a programming-contract violation: the session only
    commits once the selection carries both fields.
    """

    error_kind = ErrorKind.MISSING_ISSUE_FIELDS

    def __init__(self, missing_fields: list[str]):
        super().__init__(
            f"New issue selection is missing: {', '.join(missing_fields)}",
            {"missing_fields": missing_fields},
        )
        self.missing_fields = missing_fields


# =============================================================================
# GENERATOR ERRORS
# =============================================================================


class GeneratorError(SymlogError):
    """Base error for generator (LLM) operations."""

    error_kind = ErrorKind.GENERATOR_ERROR


class GeneratorProviderError(GeneratorError):
    """Error reported by the generator provider."""

    def __init__(
        self, message: str, provider: str, status_code: int | None = None, retryable: bool = False
    ):
        super().__init__(
            message, {"provider": provider, "status_code": status_code, "retryable": retryable}
        )
        self.retryable = retryable


class GeneratorRateLimitError(GeneratorProviderError):
    """Rate limit exceeded."""

    def __init__(self, provider: str, retry_after: float | None = None):
        super().__init__(f"Rate limit exceeded for {provider}", provider=provider, retryable=True)
        self.retry_after = retry_after


class GeneratorTimeoutError(GeneratorError):
    """Generator call exceeded its hard timeout."""

    error_kind = ErrorKind.GENERATOR_TIMEOUT

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"Generator did not respond within {timeout_seconds:g}s",
            {"timeout_seconds": timeout_seconds},
        )


# =============================================================================
# CONVERSATION ERRORS
# =============================================================================


class ConversationError(SymlogError):
    """Base error for turn-level conversation failures."""

    pass


class IterationLimitExceededError(ConversationError):
    """Generator invocations for one turn exceeded the shared budget."""

    error_kind = ErrorKind.ITERATION_LIMIT_EXCEEDED

    def __init__(self, max_iterations: int, last_error: str | None = None):
        super().__init__(
            f"Maximum iterations ({max_iterations}) exceeded for this turn",
            {"max_iterations": max_iterations, "last_error": last_error},
        )
        self.last_error = last_error


class ValidationAttemptsExhaustedError(ConversationError):
    """Every validation attempt failed and partial acceptance is disabled."""

    def __init__(self, attempts: int, error_kind: ErrorKind, last_error: str):
        super().__init__(
            f"No valid response after {attempts} attempts. Last error: {last_error}",
            {"attempts": attempts, "error_kind": error_kind.value, "last_error": last_error},
        )
        self.error_kind = error_kind
        self.last_error = last_error


class UnresolvedEntityReferenceError(ConversationError):
    """An 'existing' issue selection matches no issue."""

    error_kind = ErrorKind.UNRESOLVED_ENTITY_REFERENCE

    def __init__(self, reference: str, candidates: int = 0):
        message = f'Could not find issue "{reference}"'
        if candidates > 1:
            message = f'Issue reference "{reference}" matches {candidates} issues'
        super().__init__(message, {"reference": reference, "candidates": candidates})
        self.reference = reference


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StorageError(SymlogError):
    """Base error for storage operations."""

    pass


class RecordNotFoundError(StorageError):
    """Requested record not found."""

    def __init__(self, record_id: str):
        super().__init__(f"Record not found: {record_id}", {"record_id": record_id})


class IssueNotFoundError(StorageError):
    """Requested issue not found."""

    def __init__(self, issue_id: str):
        super().__init__(f"Issue not found: {issue_id}", {"issue_id": issue_id})


class InvalidDateRangeError(StorageError):
    """Issue end date precedes its start date."""

    def __init__(self, start_date: Any, end_date: Any):
        super().__init__(
            "Invalid date range: end date must be on or after start date",
            {"start_date": str(start_date), "end_date": str(end_date)},
        )
