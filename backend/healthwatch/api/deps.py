"""Shared API dependencies."""

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from healthwatch.database import get_db, get_db_context
from healthwatch.schemas.readings import Reading
from healthwatch.services.alerts.dedup import AlertSubmitter
from healthwatch.services.alerts.engine import AlertEngine
from healthwatch.services.alerts.repository import AlertRepository, SQLAlertRepository
from healthwatch.services.notifications.outbox import NotificationDispatcher, get_dispatcher
from healthwatch.services.readings import ReadingRepository, SQLReadingRepository

logger = logging.getLogger("healthwatch.alerts")


def build_engine(
    db: AsyncSession, dispatcher: NotificationDispatcher | None = None
) -> AlertEngine:
    """Engine wired to SQL stores; each created alert is committed before it is queued."""
    dispatcher = dispatcher or get_dispatcher()
    return AlertEngine(
        SQLReadingRepository(db),
        AlertSubmitter(SQLAlertRepository(db)),
        notify=dispatcher.enqueue,
        checkpoint=db.commit,
    )


def get_alert_repo(db: AsyncSession = Depends(get_db)) -> AlertRepository:
    return SQLAlertRepository(db)


def get_reading_repo(db: AsyncSession = Depends(get_db)) -> ReadingRepository:
    return SQLReadingRepository(db)


def get_alert_engine(db: AsyncSession = Depends(get_db)) -> AlertEngine:
    return build_engine(db)


async def evaluate_persisted_reading(reading: Reading, full_pass: bool = False) -> None:
    """Background task run after ingestion; owns its own session."""
    try:
        async with get_db_context() as db:
            await build_engine(db).on_reading_persisted(reading, full_pass=full_pass)
    except Exception:
        logger.exception(
            "Alert evaluation failed for subject=%s reading=%s",
            reading.subject_id,
            reading.id,
        )


def get_reading_evaluator():
    return evaluate_persisted_reading
