"""Rule-based verification of newly filed complaints."""
from __future__ import annotations

from dataclasses import dataclass

SUSPICIOUS_KEYWORDS: tuple[str, ...] = ("test", "testing", "spam", "fake", "abuse")
MIN_DESCRIPTION_LENGTH = 10

LEGITIMATE_NOTE = "Complaint appears legitimate based on content analysis."
KEYWORD_NOTE = "Complaint flagged for review - contains suspicious keywords."
TOO_SHORT_NOTE = "Complaint description is too short. Requires manual review."


@dataclass(frozen=True)
class VerificationOutcome:
    status: str
    note: str

    def as_fields(self) -> dict:
        return {"verification_status": self.status, "verification_notes": self.note}


def has_suspicious_keyword(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in SUSPICIOUS_KEYWORDS)


def classify(text: str) -> VerificationOutcome:
    """Classify a complaint description as legitimate or suspicious.

    Keyword matches are case-insensitive substring checks. The length check
    counts characters of the raw text and wins over the keyword note.
    """
    outcome = VerificationOutcome("legitimate", LEGITIMATE_NOTE)
    if has_suspicious_keyword(text):
        outcome = VerificationOutcome("suspicious", KEYWORD_NOTE)
    if len(text) < MIN_DESCRIPTION_LENGTH:
        outcome = VerificationOutcome("suspicious", TOO_SHORT_NOTE)
    return outcome
