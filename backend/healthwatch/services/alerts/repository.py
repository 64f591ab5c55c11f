"""Alert store implementations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import and_, delete, desc, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from healthwatch.models import Alert
from healthwatch.models.alert import FINGERPRINT_CONSTRAINT
from healthwatch.schemas.alerts import AlertCandidate
from healthwatch.services.alerts.errors import AlertPersistenceError

logger = logging.getLogger("healthwatch.alerts")


class DuplicateFingerprintError(Exception):
    """Insert lost a race against an existing row with the same fingerprint."""


class AlertRepository(Protocol):
    async def fingerprint_exists(self, fingerprint: str) -> bool:
        ...

    async def has_recent_severity(
        self, subject_id: int, severity: str, since: datetime
    ) -> bool:
        ...

    async def has_recent_title(self, subject_id: int, title: str, since: datetime) -> bool:
        ...

    async def insert(
        self, candidate: AlertCandidate, fingerprint: str, created_at: datetime
    ):
        ...

    async def list_alerts(
        self,
        subject_id: int,
        unread_only: bool,
        severity: Optional[str],
        skip: int,
        limit: int,
    ) -> list:
        ...

    async def count_alerts(
        self, subject_id: int, unread_only: bool, severity: Optional[str]
    ) -> int:
        ...

    async def mark_read(self, subject_id: int, alert_id: int):
        ...

    async def mark_all_read(self, subject_id: int) -> int:
        ...

    async def delete_alert(self, subject_id: int, alert_id: int) -> bool:
        ...


def _is_fingerprint_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig) if exc.orig is not None else str(exc)
    return FINGERPRINT_CONSTRAINT in text or "alerts.fingerprint" in text


class SQLAlertRepository:
    """Alert store backed by SQLAlchemy."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def fingerprint_exists(self, fingerprint: str) -> bool:
        result = await self.db.execute(
            select(Alert.id).where(Alert.fingerprint == fingerprint).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def has_recent_severity(
        self, subject_id: int, severity: str, since: datetime
    ) -> bool:
        result = await self.db.execute(
            select(Alert.id)
            .where(
                and_(
                    Alert.subject_id == subject_id,
                    Alert.severity == severity,
                    Alert.created_at >= since,
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def has_recent_title(self, subject_id: int, title: str, since: datetime) -> bool:
        result = await self.db.execute(
            select(Alert.id)
            .where(
                and_(
                    Alert.subject_id == subject_id,
                    Alert.title == title,
                    Alert.created_at >= since,
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def insert(
        self, candidate: AlertCandidate, fingerprint: str, created_at: datetime
    ) -> Alert:
        alert = Alert(
            subject_id=candidate.subject_id,
            severity=candidate.severity.value,
            title=candidate.title,
            message=candidate.message,
            source=candidate.source,
            related_kind=candidate.related_kind,
            observed_at=candidate.observed_at,
            created_at=created_at,
            updated_at=created_at,
            is_read=False,
            fingerprint=fingerprint,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(alert)
                await self.db.flush()
        except IntegrityError as exc:
            if _is_fingerprint_violation(exc):
                raise DuplicateFingerprintError(fingerprint) from exc
            raise AlertPersistenceError(f"Alert insert rejected: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise AlertPersistenceError("Alert store unavailable") from exc
        await self.db.refresh(alert)
        return alert

    def _filters(self, subject_id: int, unread_only: bool, severity: Optional[str]):
        filters = [Alert.subject_id == subject_id]
        if unread_only:
            filters.append(Alert.is_read.is_(False))
        if severity:
            filters.append(Alert.severity == severity)
        return filters

    async def list_alerts(
        self,
        subject_id: int,
        unread_only: bool,
        severity: Optional[str],
        skip: int,
        limit: int,
    ) -> list[Alert]:
        result = await self.db.execute(
            select(Alert)
            .where(*self._filters(subject_id, unread_only, severity))
            .order_by(desc(Alert.observed_at), desc(Alert.id))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_alerts(
        self, subject_id: int, unread_only: bool, severity: Optional[str]
    ) -> int:
        total = await self.db.scalar(
            select(func.count())
            .select_from(Alert)
            .where(*self._filters(subject_id, unread_only, severity))
        )
        return int(total or 0)

    async def mark_read(self, subject_id: int, alert_id: int) -> Optional[Alert]:
        result = await self.db.execute(
            select(Alert).where(Alert.id == alert_id, Alert.subject_id == subject_id)
        )
        alert = result.scalar_one_or_none()
        if alert is None:
            return None
        if not alert.is_read:
            alert.is_read = True
            await self.db.flush()
            await self.db.refresh(alert)
        return alert

    async def mark_all_read(self, subject_id: int) -> int:
        result = await self.db.execute(
            update(Alert)
            .where(Alert.subject_id == subject_id, Alert.is_read.is_(False))
            .values(is_read=True)
        )
        return int(result.rowcount or 0)

    async def delete_alert(self, subject_id: int, alert_id: int) -> bool:
        result = await self.db.execute(
            delete(Alert).where(Alert.id == alert_id, Alert.subject_id == subject_id)
        )
        return bool(result.rowcount)


@dataclass
class InMemoryAlert:
    id: int
    subject_id: int
    severity: str
    title: str
    message: str
    source: str
    related_kind: str
    observed_at: datetime
    created_at: datetime
    is_read: bool
    fingerprint: Optional[str]


class InMemoryAlertRepository:
    """In-memory alert store for tests and local demos."""

    def __init__(self):
        self._alerts: list[InMemoryAlert] = []
        self._next_id = 1

    @property
    def alerts(self) -> list[InMemoryAlert]:
        return list(self._alerts)

    async def fingerprint_exists(self, fingerprint: str) -> bool:
        return any(a.fingerprint == fingerprint for a in self._alerts)

    async def has_recent_severity(
        self, subject_id: int, severity: str, since: datetime
    ) -> bool:
        return any(
            a.subject_id == subject_id and a.severity == severity and a.created_at >= since
            for a in self._alerts
        )

    async def has_recent_title(self, subject_id: int, title: str, since: datetime) -> bool:
        return any(
            a.subject_id == subject_id and a.title == title and a.created_at >= since
            for a in self._alerts
        )

    async def insert(
        self, candidate: AlertCandidate, fingerprint: str, created_at: datetime
    ) -> InMemoryAlert:
        if await self.fingerprint_exists(fingerprint):
            raise DuplicateFingerprintError(fingerprint)
        alert = InMemoryAlert(
            id=self._next_id,
            subject_id=candidate.subject_id,
            severity=candidate.severity.value,
            title=candidate.title,
            message=candidate.message,
            source=candidate.source,
            related_kind=candidate.related_kind,
            observed_at=candidate.observed_at,
            created_at=created_at,
            is_read=False,
            fingerprint=fingerprint,
        )
        self._next_id += 1
        self._alerts.append(alert)
        return alert

    def _matching(self, subject_id: int, unread_only: bool, severity: Optional[str]):
        alerts = [a for a in self._alerts if a.subject_id == subject_id]
        if unread_only:
            alerts = [a for a in alerts if not a.is_read]
        if severity:
            alerts = [a for a in alerts if a.severity == severity]
        return alerts

    async def list_alerts(
        self,
        subject_id: int,
        unread_only: bool,
        severity: Optional[str],
        skip: int,
        limit: int,
    ) -> list[InMemoryAlert]:
        alerts = sorted(
            self._matching(subject_id, unread_only, severity),
            key=lambda a: (a.observed_at, a.id),
            reverse=True,
        )
        return alerts[skip : skip + limit]

    async def count_alerts(
        self, subject_id: int, unread_only: bool, severity: Optional[str]
    ) -> int:
        return len(self._matching(subject_id, unread_only, severity))

    async def mark_read(self, subject_id: int, alert_id: int) -> Optional[InMemoryAlert]:
        for alert in self._alerts:
            if alert.id == alert_id and alert.subject_id == subject_id:
                alert.is_read = True
                return alert
        return None

    async def mark_all_read(self, subject_id: int) -> int:
        updated = 0
        for alert in self._matching(subject_id, True, None):
            alert.is_read = True
            updated += 1
        return updated

    async def delete_alert(self, subject_id: int, alert_id: int) -> bool:
        for index, alert in enumerate(self._alerts):
            if alert.id == alert_id and alert.subject_id == subject_id:
                del self._alerts[index]
                return True
        return False
