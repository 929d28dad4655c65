"""Weighted aggregation of component scores into a pass/fail decision."""

from dataclasses import dataclass
from enum import Enum

from checkins.domain.models import CheckinRecord
from checkins.domain.value_objects import ComponentScores

PASS_THRESHOLD = 60
SUCCESS_THRESHOLD = 70
GOLD_THRESHOLD = 80


class VerificationState(Enum):
    """NOT_STARTED -> VERIFYING -> PASSED | FAILED.

    FAILED can go back to VERIFYING on a retry; PASSED is terminal.
    """

    NOT_STARTED = "not_started"
    VERIFYING = "verifying"
    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True)
class Aggregate:
    total_score: int
    passed: bool


@dataclass(frozen=True)
class Summary:
    """Client-facing outcome labels."""

    badge: str
    tier: str


def aggregate(scores: ComponentScores) -> Aggregate:
    total = scores.gps + scores.qr + scores.receipt
    return Aggregate(total_score=total, passed=total >= PASS_THRESHOLD)


def verification_state(
    record: CheckinRecord | None, scores: ComponentScores | None = None
) -> VerificationState:
    """Derive the state from the committed record and any in-flight scores."""
    if record is not None and record.passed:
        return VerificationState.PASSED
    if scores is not None:
        return VerificationState.VERIFYING
    if record is not None:
        return VerificationState.FAILED
    return VerificationState.NOT_STARTED


def summarize(result: Aggregate) -> Summary:
    if not result.passed:
        return Summary(badge="fail", tier="none")

    badge = "success" if result.total_score >= SUCCESS_THRESHOLD else "partial"
    if result.total_score >= GOLD_THRESHOLD:
        tier = "gold"
    elif result.total_score >= SUCCESS_THRESHOLD:
        tier = "silver"
    else:
        tier = "bronze"
    return Summary(badge=badge, tier=tier)
