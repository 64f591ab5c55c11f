"""Reading store implementations."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from healthwatch.models import HealthReading
from healthwatch.schemas.readings import Reading, ReadingKind
from healthwatch.services.alerts.errors import InvalidReadingError

logger = logging.getLogger("healthwatch.alerts")


class ReadingRepository(Protocol):
    async def add(self, reading: Reading) -> Reading:
        ...

    async def list_since(
        self, subject_id: int, since: datetime, kinds: Optional[set[ReadingKind]] = None
    ) -> list[Reading]:
        ...

    async def kinds_since(self, subject_id: int, since: datetime) -> set[ReadingKind]:
        ...

    async def count_since(self, subject_id: int, since: datetime) -> int:
        ...

    async def active_subjects(
        self, since: datetime, limit: int, after: Optional[int] = None
    ) -> list[int]:
        """Subject ids with readings since ``since``, ascending, after ``after``."""
        ...


def _known_kinds(values) -> set[ReadingKind]:
    kinds = set()
    for value in values:
        try:
            kinds.add(ReadingKind(value))
        except ValueError:
            continue
    return kinds


class SQLReadingRepository:
    """Reading store backed by SQLAlchemy."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, reading: Reading) -> Reading:
        row = HealthReading.from_reading(reading)
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return row.to_reading()

    async def list_since(
        self, subject_id: int, since: datetime, kinds: Optional[set[ReadingKind]] = None
    ) -> list[Reading]:
        query = select(HealthReading).where(
            HealthReading.subject_id == subject_id,
            HealthReading.observed_at >= since,
        )
        if kinds:
            query = query.where(HealthReading.kind.in_([k.value for k in kinds]))
        query = query.order_by(HealthReading.observed_at.asc(), HealthReading.id.asc())
        result = await self.db.execute(query)
        readings = []
        for row in result.scalars().all():
            try:
                readings.append(row.to_reading())
            except InvalidReadingError as exc:
                logger.warning("Skipping unusable reading: %s", exc)
        return readings

    async def kinds_since(self, subject_id: int, since: datetime) -> set[ReadingKind]:
        result = await self.db.execute(
            select(distinct(HealthReading.kind)).where(
                HealthReading.subject_id == subject_id,
                HealthReading.observed_at >= since,
            )
        )
        return _known_kinds(result.scalars().all())

    async def count_since(self, subject_id: int, since: datetime) -> int:
        total = await self.db.scalar(
            select(func.count())
            .select_from(HealthReading)
            .where(
                HealthReading.subject_id == subject_id,
                HealthReading.observed_at >= since,
            )
        )
        return int(total or 0)

    async def active_subjects(
        self, since: datetime, limit: int, after: Optional[int] = None
    ) -> list[int]:
        query = select(distinct(HealthReading.subject_id)).where(
            HealthReading.observed_at >= since
        )
        if after is not None:
            query = query.where(HealthReading.subject_id > after)
        result = await self.db.execute(
            query.order_by(HealthReading.subject_id.asc()).limit(limit)
        )
        return list(result.scalars().all())


class InMemoryReadingRepository:
    """In-memory reading store for tests and local demos."""

    def __init__(self, readings: Optional[list[Reading]] = None):
        self._readings: list[Reading] = []
        self._next_id = 1
        for reading in readings or []:
            self._store(reading)

    def _store(self, reading: Reading) -> Reading:
        stored = replace(reading, id=self._next_id)
        self._next_id += 1
        self._readings.append(stored)
        return stored

    async def add(self, reading: Reading) -> Reading:
        return self._store(reading)

    async def list_since(
        self, subject_id: int, since: datetime, kinds: Optional[set[ReadingKind]] = None
    ) -> list[Reading]:
        readings = [
            r
            for r in self._readings
            if r.subject_id == subject_id and r.observed_at >= since
        ]
        if kinds:
            readings = [r for r in readings if r.kind in kinds]
        return sorted(readings, key=lambda r: (r.observed_at, r.id))

    async def kinds_since(self, subject_id: int, since: datetime) -> set[ReadingKind]:
        return {r.kind for r in await self.list_since(subject_id, since)}

    async def count_since(self, subject_id: int, since: datetime) -> int:
        return len(await self.list_since(subject_id, since))

    async def active_subjects(
        self, since: datetime, limit: int, after: Optional[int] = None
    ) -> list[int]:
        subjects = sorted(
            {
                r.subject_id
                for r in self._readings
                if r.observed_at >= since and (after is None or r.subject_id > after)
            }
        )
        return subjects[:limit]
