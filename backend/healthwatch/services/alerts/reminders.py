"""Missed-reading reminders and positive reinforcement."""

from collections.abc import Iterable
from datetime import datetime

from healthwatch.schemas.alerts import AlertCandidate, Severity
from healthwatch.schemas.readings import CORE_KINDS, READING_LABELS, ReadingKind

GENERAL_KIND = "general"


def detect_missed_readings(
    subject_id: int,
    logged_kinds: Iterable[ReadingKind],
    now: datetime,
) -> list[AlertCandidate]:
    """One info candidate per core kind with no reading in the trailing window."""
    present = set(logged_kinds)
    candidates = []
    for kind in CORE_KINDS:
        if kind in present:
            continue
        candidates.append(
            AlertCandidate(
                subject_id=subject_id,
                severity=Severity.INFO,
                title=f"Missed Reading Reminder: {READING_LABELS[kind]}",
                message=f"No {READING_LABELS[kind]} readings logged in the last 24 hours",
                related_kind=kind.value,
                observed_at=now,
            )
        )
    return candidates


def positive_reinforcement(
    subject_id: int,
    logged_kinds: Iterable[ReadingKind],
    weekly_reading_count: int,
    now: datetime,
    consistency_min_readings: int = 20,
) -> list[AlertCandidate]:
    """Encouragement for logging completeness and weekly consistency.

    The caller only invokes this when the pass produced no critical or
    warning candidates.
    """
    completed = len(set(logged_kinds) & set(CORE_KINDS))
    total = len(CORE_KINDS)
    candidates = []
    if completed == total:
        candidates.append(
            AlertCandidate(
                subject_id=subject_id,
                severity=Severity.INFO,
                title="Daily Health Tasks Completed",
                message=f"Excellent! You have logged all {total} vital signs today",
                related_kind=GENERAL_KIND,
                observed_at=now,
            )
        )
    elif completed >= 2:
        candidates.append(
            AlertCandidate(
                subject_id=subject_id,
                severity=Severity.INFO,
                title="Good Progress",
                message=f"You have logged {completed}/{total} vital signs today. Keep it up!",
                related_kind=GENERAL_KIND,
                observed_at=now,
            )
        )
    if weekly_reading_count >= consistency_min_readings:
        candidates.append(
            AlertCandidate(
                subject_id=subject_id,
                severity=Severity.INFO,
                title="Consistent Health Monitoring",
                message=f"Great job! You have {weekly_reading_count} health readings this week",
                related_kind=GENERAL_KIND,
                observed_at=now,
            )
        )
    return candidates
