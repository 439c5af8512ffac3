"""
Output Validator

Parses a generator text reply and checks it against the extraction envelope
contract. Validation never raises: every outcome is a ValidationResult value.
"""

import dataclasses
import json
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from symlog.core.enums import ErrorKind
from symlog.core.exceptions import SchemaValidationError
from symlog.core.schemas import ExtractionEnvelope, SymptomMetadata
from symlog.linking.linker import validate_suggestion

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?[ \t]*```$")

_VALUE_ERROR_PREFIX = "Value error, "


@dataclass(frozen=True)
class ValidationSuccess:
    envelope: ExtractionEnvelope

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ValidationFailure:
    """
    A reply that did not meet the contract.

    ``payload`` holds the decoded JSON object when parsing got that far, so a
    best-effort result can still salvage fields from it.
    """

    error_kind: ErrorKind
    human_message: str
    field: str | None = None
    payload: dict[str, Any] | None = dataclasses.field(
        default=None, compare=False, repr=False
    )

    @property
    def ok(self) -> bool:
        return False


ValidationResult = Union[ValidationSuccess, ValidationFailure]


def strip_code_fences(raw_text: str) -> str:
    """
    Remove a markdown code fence around the reply.

    The opening and closing fences are stripped independently, so a reply cut
    off before its closing fence still parses.
    """
    text = raw_text.strip()
    if not text.startswith("```"):
        return text
    text = _OPENING_FENCE.sub("", text, count=1)
    return _CLOSING_FENCE.sub("", text, count=1).strip()


def _describe_error(exc: PydanticValidationError, prefix: str = "") -> tuple[str, str]:
    """Turn the first pydantic error into (field path, human message)."""
    error = exc.errors()[0]
    path = ".".join(str(part) for part in error["loc"])
    if prefix:
        path = f"{prefix}.{path}" if path else prefix

    message = error["msg"]
    if message.startswith(_VALUE_ERROR_PREFIX):
        # Our own validators already name the field
        return path, message[len(_VALUE_ERROR_PREFIX):]
    return path, f"{path}: {message}"


def validate(raw_text: str, today: date | None = None) -> ValidationResult:
    """
    Validate a raw generator reply.

    Args:
        raw_text: Generator text reply, possibly wrapped in a code fence.
        today: Reference date for the "onset not in the future" rule.
               When omitted the rule is not applied.

    Returns:
        ValidationSuccess with the parsed envelope, or ValidationFailure.
    """
    text = strip_code_fences(raw_text)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return ValidationFailure(
            ErrorKind.MALFORMED_JSON,
            f"Response is not valid JSON ({e.msg} at line {e.lineno} column {e.colno})",
        )

    if not isinstance(data, dict):
        return ValidationFailure(
            ErrorKind.MALFORMED_JSON, "Response must be a JSON object, not " + type(data).__name__
        )

    if not isinstance(data.get("metadata"), dict):
        return ValidationFailure(
            ErrorKind.SCHEMA_VIOLATION,
            'Response must include a "metadata" object',
            field="metadata",
            payload=data,
        )

    suggestion_payload = data.get("suggestedIssue")
    envelope_data = {k: v for k, v in data.items() if k != "suggestedIssue"}
    context = {"today": today} if today is not None else None

    try:
        envelope = ExtractionEnvelope.model_validate(envelope_data, context=context)
    except PydanticValidationError as e:
        path, message = _describe_error(e)
        return ValidationFailure(ErrorKind.SCHEMA_VIOLATION, message, field=path, payload=data)

    if suggestion_payload is not None:
        try:
            suggestion = validate_suggestion(suggestion_payload)
        except SchemaValidationError as e:
            return ValidationFailure(
                ErrorKind.SCHEMA_VIOLATION, e.message, field=e.field, payload=data
            )
        envelope = envelope.model_copy(update={"suggested_issue": suggestion})

    return ValidationSuccess(envelope)


def salvage_metadata(
    payload: dict[str, Any] | None,
    prior: SymptomMetadata | None,
    today: date | None = None,
) -> SymptomMetadata:
    """
    Best-effort record from a payload that failed validation.

    Each metadata field that validates on its own is taken from the payload;
    every other field falls back to the prior record.
    """
    base = prior or SymptomMetadata()
    if not payload or not isinstance(payload.get("metadata"), dict):
        return base

    raw = payload["metadata"]
    context = {"today": today} if today is not None else None
    salvaged: dict[str, Any] = {}

    for name in SymptomMetadata.model_fields:
        if name not in raw or raw[name] is None:
            continue
        try:
            candidate = SymptomMetadata.model_validate({name: raw[name]}, context=context)
        except PydanticValidationError:
            logger.debug(f"Discarding invalid {name} in best-effort salvage: {raw[name]!r}")
            continue
        value = getattr(candidate, name)
        if value is not None:
            salvaged[name] = value

    return base.model_copy(update=salvaged)
