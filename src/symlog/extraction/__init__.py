"""
Symlog Extraction

Output validation, corrective feedback and insight triggers.
"""

from symlog.extraction.feedback import build_retry_prompt, synthesize_feedback
from symlog.extraction.triggers import TriggerDecision, evaluate
from symlog.extraction.validator import (
    ValidationFailure,
    ValidationResult,
    ValidationSuccess,
    salvage_metadata,
    strip_code_fences,
    validate,
)

__all__ = [
    "build_retry_prompt",
    "synthesize_feedback",
    "TriggerDecision",
    "evaluate",
    "ValidationFailure",
    "ValidationResult",
    "ValidationSuccess",
    "salvage_metadata",
    "strip_code_fences",
    "validate",
]
