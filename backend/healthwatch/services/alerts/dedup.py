"""Deduplication and persistence of alert candidates.

Two layered checks run before insert: an exact fingerprint match, then a
suppression window. Regular candidates use the per (subject, severity)
rate-limit window; candidates submitted with a ``title_window`` use a
same-title window instead. Races between concurrent submitters are settled
by the fingerprint unique constraint; the losing insert is reported as a
duplicate, not an error.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

from healthwatch.config import settings
from healthwatch.schemas.alerts import AlertCandidate, SubmitResult, SubmitStatus
from healthwatch.services.alerts.fingerprint import candidate_fingerprint
from healthwatch.services.alerts.repository import AlertRepository, DuplicateFingerprintError

logger = logging.getLogger("healthwatch.dedup")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SubjectLocks:
    """One asyncio.Lock per subject, serialising the submit step only.

    Locks are weakly held: an entry lives while some caller holds or waits
    on it and disappears afterwards.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def for_subject(self, subject_id: int) -> asyncio.Lock:
        lock = self._locks.get(subject_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[subject_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


subject_locks = SubjectLocks()


class AlertSubmitter:
    """Sole writer of alerts."""

    def __init__(
        self,
        repository: AlertRepository,
        *,
        rate_limit: timedelta | None = None,
        locks: SubjectLocks | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repository = repository
        self.rate_limit = rate_limit or timedelta(hours=settings.alert_rate_limit_hours)
        self.locks = locks or subject_locks
        self.clock = clock

    async def _submit_unlocked(
        self,
        candidate: AlertCandidate,
        title_window: timedelta | None,
    ) -> SubmitResult:
        fingerprint = candidate_fingerprint(candidate)
        if await self.repository.fingerprint_exists(fingerprint):
            logger.debug(
                "Suppressed duplicate alert subject=%s title=%r",
                candidate.subject_id,
                candidate.title,
            )
            return SubmitResult(SubmitStatus.DUPLICATE, candidate)

        now = self.clock()
        if title_window is None:
            if await self.repository.has_recent_severity(
                candidate.subject_id, candidate.severity.value, now - self.rate_limit
            ):
                logger.debug(
                    "Suppressed rate-limited alert subject=%s severity=%s title=%r",
                    candidate.subject_id,
                    candidate.severity.value,
                    candidate.title,
                )
                return SubmitResult(SubmitStatus.RATE_LIMITED, candidate)
        elif await self.repository.has_recent_title(
            candidate.subject_id, candidate.title, now - title_window
        ):
            logger.debug(
                "Suppressed repeated alert subject=%s title=%r",
                candidate.subject_id,
                candidate.title,
            )
            return SubmitResult(SubmitStatus.RATE_LIMITED, candidate)

        try:
            alert = await self.repository.insert(candidate, fingerprint, now)
        except DuplicateFingerprintError:
            logger.debug(
                "Suppressed concurrent duplicate alert subject=%s title=%r",
                candidate.subject_id,
                candidate.title,
            )
            return SubmitResult(SubmitStatus.DUPLICATE, candidate)

        logger.info(
            "Created %s alert id=%s subject=%s title=%r",
            candidate.severity.value,
            alert.id,
            candidate.subject_id,
            candidate.title,
        )
        return SubmitResult(SubmitStatus.CREATED, candidate, alert)

    async def submit(
        self,
        candidate: AlertCandidate,
        *,
        title_window: timedelta | None = None,
    ) -> SubmitResult:
        """Persist a candidate unless it duplicates or is rate limited.

        ``title_window`` replaces the severity window with a same-title
        window of that length.
        """
        async with self.locks.for_subject(candidate.subject_id):
            return await self._submit_unlocked(candidate, title_window)

    async def submit_many(
        self,
        candidates: list[AlertCandidate],
        *,
        title_window: timedelta | None = None,
        on_created: Callable[[SubmitResult], Awaitable[None]] | None = None,
    ) -> list[SubmitResult]:
        """Submit in order, holding each subject's lock for the whole batch.

        ``on_created`` is awaited after each successful insert, before the next
        candidate is checked.
        """
        results: list[SubmitResult] = []
        by_subject: dict[int, list[AlertCandidate]] = {}
        for candidate in candidates:
            by_subject.setdefault(candidate.subject_id, []).append(candidate)
        for subject_id, group in by_subject.items():
            async with self.locks.for_subject(subject_id):
                for candidate in group:
                    result = await self._submit_unlocked(candidate, title_window)
                    results.append(result)
                    if on_created is not None and result.alert is not None:
                        await on_created(result)
        return results
