"""
Generator Prompts

System contract and context summary sent with every generator request. The
contract states today's date, the controlled vocabulary and the output
envelope; the context summary serializes active issues and recent records.
"""

from datetime import date
from typing import Sequence

from symlog.core.enums import CRITICAL_REGIONS, Location
from symlog.core.schemas import EnrichedIssue, SymptomEntry

SEVERITY_SCALE = "0-10 scale (0 = no pain, 10 = worst imaginable pain)"

INSIGHT_QUESTIONS = {
    "provocation": "What makes it better or worse?",
    "quality": "How would you describe the sensation? (sharp, dull, throbbing, burning, aching)",
    "radiation": "Does it stay in one place, or does it spread anywhere else?",
    "timing": "Is it constant, or does it come and go?",
}

OUTPUT_CONTRACT = """{
  "metadata": {
    "location": one of the locations above (or null if not yet known),
    "onset": "YYYY-MM-DD" (or null if not yet known),
    "severity": integer 0-10 (or null if not yet known),
    "description": "brief summary" (or null)
  },
  "additionalInsights": {
    "provocation": "string or null",
    "quality": "string or null",
    "radiation": "string or null",
    "timing": "string or null"
  },
  "issueSelection": null or {
    "type": "existing" | "new" | "none",
    "existingIssueRef": "issue id or exact issue name" (for existing),
    "newIssueName": "string" (for new),
    "newIssueStartDate": "YYYY-MM-DD" (for new)
  },
  "suggestedIssue": null or {
    "isRelated": boolean,
    "existingIssueRef": "issue id or null",
    "newIssueName": "suggested name or null",
    "confidence": number between 0 and 1
  },
  "aiMessage": "your conversational response to the user",
  "conversationComplete": boolean,
  "queuedSymptoms": ["other symptoms the user mentioned, to log separately"]
}"""

SYSTEM_CONTRACT_TEMPLATE = """You are a compassionate assistant helping someone log their symptoms through natural conversation. Gather the following through friendly, empathetic dialogue, one question at a time.

REQUIRED INFORMATION:
1. Location: where the symptom is. Allowed values: {locations}
2. Onset: when it started, as an ISO date YYYY-MM-DD. If the user is vague ("recently", "a while ago") ask for a specific day. Resolve relative phrases ("a week ago", "this morning") against today's date. Onset can never be after today.
3. Severity: {severity}
4. Description: brief summary of the symptom

ADDITIONAL INSIGHTS (ask only when severity >= 7, OR onset more than 5 days ago, OR location is in {critical}):
- provocation: {provocation}
- quality: {quality}
- radiation: {radiation}
- timing: {timing}

MULTIPLE SYMPTOMS:
If the user mentions more than one symptom, log the first one now and list the others in "queuedSymptoms" (or add them with the manage_todos tool). Each will get its own conversation.

ISSUES:
Active issues are listed in the context. When the record is otherwise complete, decide whether it belongs to an existing issue, a new issue, or none, and put your guess in "suggestedIssue" with a confidence. Only fill "issueSelection" once the user has confirmed the choice. A new issue needs both a name and a start date. Use get_history when past entries would help.

Set "conversationComplete" to true only when all required information (and the additional insights, if triggered) is captured and the issue selection is confirmed.

Today's date is {today}.

RESPONSE FORMAT (JSON only, no markdown):
{contract}"""


def build_system_contract(today: date) -> str:
    """Render the system contract for the given day."""
    return SYSTEM_CONTRACT_TEMPLATE.format(
        locations=", ".join(loc.value for loc in Location),
        severity=SEVERITY_SCALE,
        critical=", ".join(sorted(r.value for r in CRITICAL_REGIONS)),
        today=today.isoformat(),
        contract=OUTPUT_CONTRACT,
        **INSIGHT_QUESTIONS,
    )


def _format_issue(issue: EnrichedIssue) -> str:
    line = f"- [{issue.id}] {issue.name} (since {issue.start_date.isoformat()}"
    if issue.last_entry_date is not None:
        line += f"; last entry {issue.last_entry_date.isoformat()}"
        if issue.last_entry_days_ago is not None:
            line += f", {issue.last_entry_days_ago} days ago"
        if issue.last_entry_severity is not None:
            line += f", severity {issue.last_entry_severity}/10"
    return line + ")"


def _format_record(record: SymptomEntry, today: date) -> str:
    meta = record.metadata
    days_ago = (today - meta.onset).days
    line = (
        f"- {meta.onset.isoformat()} ({days_ago} days ago): {meta.location.value}, "
        f"severity {meta.severity}/10"
    )
    if meta.description:
        line += f", {meta.description}"
    if record.issue_id:
        line += f" [issue {record.issue_id}]"
    return line


def build_context_summary(
    active_issues: Sequence[EnrichedIssue],
    recent_records: Sequence[SymptomEntry],
    today: date,
) -> str:
    """Serialize durable context for the generator. Empty sections are stated as such."""
    sections: list[str] = []

    if active_issues:
        sections.append("ACTIVE ISSUES:\n" + "\n".join(_format_issue(i) for i in active_issues))
    else:
        sections.append("ACTIVE ISSUES: none")

    if recent_records:
        sections.append(
            "RECENT ENTRIES:\n" + "\n".join(_format_record(r, today) for r in recent_records)
        )
    else:
        sections.append("RECENT ENTRIES: none")

    return "\n\n".join(sections)
