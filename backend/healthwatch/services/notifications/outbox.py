"""Asynchronous outbox for alert emails.

Alerts are enqueued after they are persisted; a background worker loads the
subject's preferences, routes the alert and records the outcome. Failures
are counted, logged and optionally retried later, never raised to the writer.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime

from healthwatch.config import settings
from healthwatch.services.notifications.router import NotificationRouter, RouteResult, RouteStatus
from healthwatch.services.preferences import PreferenceStore

logger = logging.getLogger("healthwatch.notifications")

PreferenceStoreFactory = Callable[[], AbstractAsyncContextManager[PreferenceStore]]


@dataclass(frozen=True)
class AlertSnapshot:
    """Immutable copy of the persisted alert fields the router needs."""

    id: int
    subject_id: int
    severity: str
    title: str
    message: str
    source: str
    related_kind: str
    observed_at: datetime

    @classmethod
    def of(cls, alert) -> "AlertSnapshot":
        return cls(
            id=alert.id,
            subject_id=alert.subject_id,
            severity=alert.severity,
            title=alert.title,
            message=alert.message,
            source=alert.source,
            related_kind=alert.related_kind,
            observed_at=alert.observed_at,
        )


@dataclass
class NotificationJob:
    alert: AlertSnapshot
    attempt: int = 1


@dataclass
class NotificationStats:
    enqueued: int = 0
    dispatched: int = 0
    skipped: int = 0
    failed: int = 0
    retried: int = 0
    dropped: int = 0
    skipped_by_reason: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return asdict(self)


@asynccontextmanager
async def sql_preference_store() -> AsyncIterator[PreferenceStore]:
    from healthwatch.database import get_db_context
    from healthwatch.services.preferences import CachedPreferenceStore, SQLPreferenceStore

    async with get_db_context() as db:
        yield CachedPreferenceStore(SQLPreferenceStore(db))


class NotificationDispatcher:
    """Bounded queue plus a single worker task."""

    def __init__(
        self,
        router: NotificationRouter,
        preference_store_factory: PreferenceStoreFactory = sql_preference_store,
        *,
        max_queue_size: int | None = None,
        max_attempts: int | None = None,
        retry_delay_seconds: float | None = None,
    ) -> None:
        self.router = router
        self.preference_store_factory = preference_store_factory
        self.max_attempts = max_attempts or settings.notification_max_attempts
        self.retry_delay_seconds = (
            retry_delay_seconds
            if retry_delay_seconds is not None
            else settings.notification_retry_delay_seconds
        )
        self._queue: asyncio.Queue[NotificationJob] = asyncio.Queue(
            maxsize=max_queue_size or settings.notification_queue_size
        )
        self._task: asyncio.Task[None] | None = None
        self._retry_tasks: set[asyncio.Task[None]] = set()
        self.stats = NotificationStats()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def enqueue(self, alert) -> bool:
        """Queue a persisted alert for routing; returns False when the queue is full."""
        return self._put(NotificationJob(alert=AlertSnapshot.of(alert)))

    def _put(self, job: NotificationJob) -> bool:
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            self.stats.dropped += 1
            logger.warning(
                "Notification queue full; dropping alert id=%s", job.alert.id
            )
            return False
        if job.attempt == 1:
            self.stats.enqueued += 1
        return True

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="notification-dispatcher")
        logger.info("Notification dispatcher started (max_attempts=%s)", self.max_attempts)

    async def stop(self) -> None:
        for task in list(self._retry_tasks):
            task.cancel()
        self._retry_tasks.clear()
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
        logger.info("Notification dispatcher stopped (%s pending)", self.pending)

    async def drain(self) -> list[RouteResult]:
        """Process every queued job now (used when no worker is running and by tests)."""
        results = []
        while not self._queue.empty():
            job = self._queue.get_nowait()
            try:
                results.append(await self.process(job))
            finally:
                self._queue.task_done()
        return results

    async def _run_loop(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.process(job)
            finally:
                self._queue.task_done()

    async def process(self, job: NotificationJob) -> RouteResult:
        alert = job.alert
        try:
            async with self.preference_store_factory() as store:
                preferences = await store.get_preferences(alert.subject_id)
                recipient = await store.get_recipient(alert.subject_id)
            result = await self.router.route(alert, preferences, recipient)
        except Exception as exc:
            logger.exception("Notification routing failed for alert id=%s", alert.id)
            result = RouteResult(status=RouteStatus.FAILED, error=str(exc) or exc.__class__.__name__)
        self._record(job, result)
        return result

    def _record(self, job: NotificationJob, result: RouteResult) -> None:
        if result.status is RouteStatus.DISPATCHED:
            self.stats.dispatched += 1
        elif result.status is RouteStatus.SKIPPED:
            self.stats.skipped += 1
            reason = result.reason.value if result.reason else "unknown"
            self.stats.skipped_by_reason[reason] = self.stats.skipped_by_reason.get(reason, 0) + 1
        else:
            self.stats.failed += 1
            if job.attempt < self.max_attempts:
                self._schedule_retry(job)
            else:
                logger.error(
                    "Giving up on alert id=%s email after %d attempts",
                    job.alert.id,
                    job.attempt,
                )

    def _schedule_retry(self, job: NotificationJob) -> None:
        retry = NotificationJob(alert=job.alert, attempt=job.attempt + 1)
        self.stats.retried += 1
        logger.info(
            "Retrying alert id=%s email in %.0fs (attempt %d/%d)",
            job.alert.id,
            self.retry_delay_seconds,
            retry.attempt,
            self.max_attempts,
        )
        task = asyncio.create_task(self._requeue_later(retry))
        self._retry_tasks.add(task)
        task.add_done_callback(self._retry_tasks.discard)

    async def _requeue_later(self, job: NotificationJob) -> None:
        await asyncio.sleep(self.retry_delay_seconds)
        self._put(job)


_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """Process-wide dispatcher, created on first use."""
    global _dispatcher
    if _dispatcher is None:
        from healthwatch.services.email import build_email_transport

        _dispatcher = NotificationDispatcher(NotificationRouter(build_email_transport()))
    return _dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher | None) -> None:
    global _dispatcher
    _dispatcher = dispatcher
