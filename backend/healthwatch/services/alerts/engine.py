"""Evaluation pass orchestration.

Generators only read; all writes go through the submitter, one subject at a
time. Created alerts are checkpointed (committed) before they are handed to
the notification outbox, so an email never refers to an alert that a later
failure in the same pass could roll back.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from healthwatch.config import settings
from healthwatch.schemas.alerts import (
    AlertCandidate,
    EvaluationResponse,
    Severity,
    SubmitResult,
)
from healthwatch.schemas.readings import CORE_KINDS, Reading
from healthwatch.services.alerts.dedup import AlertSubmitter
from healthwatch.services.alerts.patterns import analyze_patterns
from healthwatch.services.alerts.reminders import detect_missed_readings, positive_reinforcement
from healthwatch.services.alerts.thresholds import (
    DEFAULT_THRESHOLDS,
    VitalThresholds,
    evaluate_reading,
    evaluate_readings,
)
from healthwatch.services.readings import ReadingRepository

logger = logging.getLogger("healthwatch.alerts")

Notify = Callable[[object], object]
Checkpoint = Callable[[], Awaitable[None]]


def by_severity(candidates: list[AlertCandidate]) -> list[AlertCandidate]:
    """Most severe first; stable within a tier."""
    return sorted(candidates, key=lambda c: -c.severity.rank)


class AlertEngine:
    """Runs threshold, pattern, missed-reading and reinforcement passes."""

    def __init__(
        self,
        readings: ReadingRepository,
        submitter: AlertSubmitter,
        *,
        notify: Notify | None = None,
        checkpoint: Checkpoint | None = None,
        thresholds: VitalThresholds = DEFAULT_THRESHOLDS,
    ) -> None:
        self.readings = readings
        self.submitter = submitter
        self.notify = notify
        self.checkpoint = checkpoint
        self.thresholds = thresholds

    def _now(self) -> datetime:
        return self.submitter.clock()

    async def _created(self, result: SubmitResult) -> None:
        if self.checkpoint is not None:
            await self.checkpoint()
        if self.notify is not None:
            self.notify(result.alert)

    async def _submit(
        self,
        candidates: list[AlertCandidate],
        title_window: timedelta | None = None,
    ) -> list[SubmitResult]:
        if not candidates:
            return []
        return await self.submitter.submit_many(
            by_severity(candidates),
            title_window=title_window,
            on_created=self._created,
        )

    async def on_reading_persisted(
        self, reading: Reading, full_pass: bool = False
    ) -> EvaluationResponse:
        """Entry point for ingestion: threshold check, then optionally a full pass."""
        if full_pass:
            return await self.evaluate_subject(reading.subject_id)
        candidates = evaluate_reading(reading, self.thresholds)
        results = await self._submit(candidates)
        return _summarize(reading.subject_id, len(candidates), results)

    async def collect_candidates(
        self, subject_id: int
    ) -> tuple[list[AlertCandidate], list[AlertCandidate]]:
        """Return (primary, reinforcement) candidates for one subject."""
        now = self._now()
        day_ago = now - timedelta(hours=settings.missed_reading_window_hours)
        recent = await self.readings.list_since(subject_id, day_ago)
        history = await self.readings.list_since(
            subject_id,
            now - timedelta(days=settings.pattern_window_days),
            kinds=set(CORE_KINDS),
        )
        logged_kinds = await self.readings.kinds_since(subject_id, day_ago)

        primary = evaluate_readings(recent, self.thresholds)
        primary.extend(analyze_patterns(subject_id, history, now))
        primary.extend(detect_missed_readings(subject_id, logged_kinds, now))

        if any(c.severity in (Severity.CRITICAL, Severity.WARNING) for c in primary):
            return primary, []

        weekly = await self.readings.count_since(
            subject_id, now - timedelta(days=settings.consistency_window_days)
        )
        reinforcement = positive_reinforcement(
            subject_id,
            logged_kinds,
            weekly,
            now,
            consistency_min_readings=settings.consistency_min_readings,
        )
        return primary, reinforcement

    async def evaluate_subject(self, subject_id: int) -> EvaluationResponse:
        """Full pass for one subject.

        Persistence errors propagate; alerts created before the failure stay.
        """
        primary, reinforcement = await self.collect_candidates(subject_id)
        results = await self._submit(primary)
        results += await self._submit(
            reinforcement,
            title_window=timedelta(hours=settings.positive_alert_window_hours),
        )
        summary = _summarize(subject_id, len(primary) + len(reinforcement), results)
        logger.info(
            "Evaluated subject=%s candidates=%d created=%d suppressed=%d",
            subject_id,
            summary.candidates,
            summary.created,
            summary.suppressed,
        )
        return summary


def _summarize(
    subject_id: int, candidate_count: int, results: list[SubmitResult]
) -> EvaluationResponse:
    created = [r.alert for r in results if r.alert is not None]
    return EvaluationResponse(
        subject_id=subject_id,
        candidates=candidate_count,
        created=len(created),
        suppressed=sum(1 for r in results if r.suppressed),
        alert_ids=[alert.id for alert in created],
    )
