"""
Trigger Evaluator

Decides whether a record warrants additional insight questions:
severity of 7 or more, onset more than 5 days ago, or a critical body region.
Unknown fields never fire.
"""

from dataclasses import dataclass, field
from datetime import date

from symlog.core.enums import CRITICAL_REGIONS
from symlog.core.schemas import SymptomMetadata

SEVERITY_THRESHOLD = 7
DURATION_THRESHOLD_DAYS = 5

REASON_HIGH_SEVERITY = "high severity"
REASON_EXTENDED_DURATION = "extended duration"
REASON_CRITICAL_LOCATION = "critical location"

DEFAULT_RATIONALE = "To help provide better context for your symptom"


@dataclass(frozen=True)
class TriggerDecision:
    fires: bool
    reasons: list[str] = field(default_factory=list)
    rationale: str = DEFAULT_RATIONALE


def days_since_onset(onset: date, today: date) -> int:
    return (today - onset).days


def evaluate(record: SymptomMetadata | None, today: date) -> TriggerDecision:
    """Evaluate the insight trigger for a (possibly partial) record."""
    if record is None:
        return TriggerDecision(fires=False)

    reasons: list[str] = []

    if record.severity is not None and record.severity >= SEVERITY_THRESHOLD:
        reasons.append(REASON_HIGH_SEVERITY)

    if record.onset is not None and days_since_onset(record.onset, today) > DURATION_THRESHOLD_DAYS:
        reasons.append(REASON_EXTENDED_DURATION)

    if record.location is not None and record.location.region in CRITICAL_REGIONS:
        reasons.append(REASON_CRITICAL_LOCATION)

    if not reasons:
        return TriggerDecision(fires=False)

    rationale = (
        f"Because of the {' and '.join(reasons)}, I'd like to ask a few more detailed "
        "questions to better understand your symptom."
    )
    return TriggerDecision(fires=True, reasons=reasons, rationale=rationale)
