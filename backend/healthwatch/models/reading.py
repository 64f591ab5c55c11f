from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from healthwatch.models.base import Base, TimestampMixin
from healthwatch.schemas.readings import BloodPressure, Reading, ReadingKind, Scalar
from healthwatch.services.alerts.errors import InvalidReadingError


class HealthReading(Base, TimestampMixin):
    """One vital-sign observation.

    Blood pressure is stored in the systolic/diastolic columns; every other
    kind uses numeric_value.
    """

    __tablename__ = "health_readings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    subject_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind: Mapped[str] = mapped_column(String(40), nullable=False)
    numeric_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    systolic: Mapped[float | None] = mapped_column(Float, nullable=True)
    diastolic: Mapped[float | None] = mapped_column(Float, nullable=True)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[str | None] = mapped_column(String(100), nullable=True)
    observed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_health_readings_subject_kind_observed", "subject_id", "kind", "observed_at"),
        Index("ix_health_readings_subject_observed", "subject_id", "observed_at"),
    )

    @classmethod
    def from_reading(cls, reading: Reading) -> "HealthReading":
        row = cls(
            subject_id=reading.subject_id,
            kind=reading.kind.value,
            unit=reading.unit,
            source=reading.source,
            observed_at=reading.observed_at,
        )
        if isinstance(reading.value, BloodPressure):
            row.systolic = reading.value.systolic
            row.diastolic = reading.value.diastolic
        else:
            row.numeric_value = reading.value.value
        return row

    def to_reading(self) -> Reading:
        try:
            kind = ReadingKind(self.kind)
        except ValueError as exc:
            raise InvalidReadingError(f"Unknown reading kind '{self.kind}'") from exc
        if kind is ReadingKind.BLOOD_PRESSURE:
            if self.systolic is None or self.diastolic is None:
                raise InvalidReadingError(f"Reading {self.id} is missing systolic/diastolic")
            value = BloodPressure(systolic=self.systolic, diastolic=self.diastolic)
        else:
            if self.numeric_value is None:
                raise InvalidReadingError(f"Reading {self.id} has no numeric value")
            value = Scalar(value=self.numeric_value)
        return Reading(
            subject_id=self.subject_id,
            kind=kind,
            value=value,
            unit=self.unit,
            observed_at=self.observed_at,
            source=self.source,
            id=self.id,
        )

    def __repr__(self) -> str:
        return f"<HealthReading(id={self.id}, subject={self.subject_id}, kind='{self.kind}')>"
