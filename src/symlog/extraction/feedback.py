"""
Error-Feedback Synthesizer

Turns a validation failure into a corrective instruction for the generator.
The instruction restates the output contract so the next attempt can fix the
specific problem without re-reading the whole system contract.
"""

from symlog.core.enums import ErrorKind, Location
from symlog.extraction.validator import ValidationFailure
from symlog.llm.prompts import OUTPUT_CONTRACT

RETRY_TEMPLATE = """The previous response had an error: {feedback}

Please correct the response and make sure it follows the exact JSON format specified:
{contract}

Respond with ONLY valid JSON, no markdown formatting."""

_KIND_LABELS = {
    ErrorKind.MALFORMED_JSON: "Malformed JSON",
    ErrorKind.SCHEMA_VIOLATION: "Schema violation",
    ErrorKind.GENERATOR_TIMEOUT: "No response in time",
    ErrorKind.GENERATOR_ERROR: "Generator error",
}


def synthesize_feedback(failure: ValidationFailure) -> str:
    """Corrective instruction naming the failing field and the allowed values."""
    label = _KIND_LABELS.get(failure.error_kind, failure.error_kind.value)
    lines = [f"Error: {label}"]
    if failure.field:
        lines.append(f"Field: {failure.field}")
    lines.append(failure.human_message)
    lines.append("")
    lines.append("Please ensure your response:")
    lines.append("1. Is valid JSON")
    lines.append('2. Contains a "metadata" object')
    lines.append("3. Uses only allowed values from the controlled vocabularies")
    lines.append(f"   - Location: {', '.join(loc.value for loc in Location)}")
    lines.append("   - Onset: YYYY-MM-DD, not after today")
    lines.append("   - Severity: integer from 0 to 10")
    return "\n".join(lines)


def build_retry_prompt(failure: ValidationFailure) -> str:
    return RETRY_TEMPLATE.format(feedback=synthesize_feedback(failure), contract=OUTPUT_CONTRACT)
