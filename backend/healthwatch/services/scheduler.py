"""Background scheduler for periodic alert evaluation passes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from healthwatch.config import settings
from healthwatch.database import get_db_context
from healthwatch.services.alerts.engine import AlertEngine
from healthwatch.services.readings import SQLReadingRepository

logger = logging.getLogger("healthwatch.scheduler")


@dataclass
class EvaluationRunStats:
    """Telemetry emitted for one scheduler cycle."""

    scanned_subjects: int = 0
    evaluated_subjects: int = 0
    failed_subjects: int = 0
    created_alerts: int = 0


class AlertEvaluationScheduler:
    """Polling scheduler that runs a full pass for recently active subjects."""

    def __init__(self, engine_factory=None) -> None:
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self.engine_factory = engine_factory

    async def start(self) -> None:
        """Start background scheduler loop if enabled."""
        if not settings.evaluation_scheduler_enabled:
            logger.info("Alert evaluation scheduler disabled by configuration")
            return
        if self._task and not self._task.done():
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            self._run_loop(),
            name="alert-evaluation-scheduler",
        )
        logger.info(
            "Alert evaluation scheduler started (poll=%ss batch=%s)",
            settings.evaluation_poll_interval_seconds,
            settings.evaluation_batch_size,
        )

    async def stop(self) -> None:
        """Stop background scheduler loop."""
        self._stop_event.set()
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
        logger.info("Alert evaluation scheduler stopped")

    async def run_once(self) -> EvaluationRunStats:
        """Run one scheduler cycle (used by background loop and tests)."""
        from healthwatch.api.deps import build_engine

        factory = self.engine_factory or build_engine
        now = datetime.now(UTC)
        since = now - timedelta(hours=settings.missed_reading_window_hours)
        stats = EvaluationRunStats()

        batch_size = settings.evaluation_batch_size
        after: int | None = None
        while True:
            async with get_db_context() as db:
                subjects = await SQLReadingRepository(db).active_subjects(
                    since, batch_size, after=after
                )
            stats.scanned_subjects += len(subjects)

            for subject_id in subjects:
                try:
                    async with get_db_context() as db:
                        engine: AlertEngine = factory(db)
                        summary = await engine.evaluate_subject(subject_id)
                    stats.evaluated_subjects += 1
                    stats.created_alerts += summary.created
                except Exception:
                    stats.failed_subjects += 1
                    logger.exception("Alert evaluation failed for subject=%s", subject_id)

            if len(subjects) < batch_size:
                break
            after = subjects[-1]

        return stats

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            started_at = asyncio.get_running_loop().time()
            try:
                stats = await self.run_once()
                if stats.scanned_subjects:
                    logger.info(
                        "Alert evaluation cycle: scanned=%s evaluated=%s failed=%s created=%s",
                        stats.scanned_subjects,
                        stats.evaluated_subjects,
                        stats.failed_subjects,
                        stats.created_alerts,
                    )
            except Exception:
                logger.exception("Alert evaluation scheduler cycle failed")

            elapsed = asyncio.get_running_loop().time() - started_at
            sleep_seconds = max(
                1,
                settings.evaluation_poll_interval_seconds - int(elapsed),
            )
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=sleep_seconds)
            except TimeoutError:
                continue


_scheduler_instance: AlertEvaluationScheduler | None = None


def get_evaluation_scheduler() -> AlertEvaluationScheduler:
    """Get singleton evaluation scheduler instance."""
    global _scheduler_instance
    if _scheduler_instance is None:
        _scheduler_instance = AlertEvaluationScheduler()
    return _scheduler_instance
