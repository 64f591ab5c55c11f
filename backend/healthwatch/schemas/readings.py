"""Reading value types and the ingestion schema.

A reading's value is a tagged union resolved once at the ingestion boundary:
``BloodPressure`` for blood pressure, ``Scalar`` for every other kind.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReadingKind(str, Enum):
    HEART_RATE = "heart_rate"
    BLOOD_PRESSURE = "blood_pressure"
    GLUCOSE_LEVEL = "glucose_level"
    BODY_TEMPERATURE = "body_temperature"
    CALORIES_BURNED = "calories_burned"
    STEPS_TAKEN = "steps_taken"
    SLEEP_DURATION = "sleep_duration"
    WEIGHT = "weight"
    BODY_FAT = "body_fat"
    MUSCLE_MASS = "muscle_mass"


CORE_KINDS: tuple[ReadingKind, ...] = (
    ReadingKind.HEART_RATE,
    ReadingKind.BLOOD_PRESSURE,
    ReadingKind.GLUCOSE_LEVEL,
    ReadingKind.BODY_TEMPERATURE,
)

READING_LABELS: dict[ReadingKind, str] = {
    ReadingKind.HEART_RATE: "heart rate",
    ReadingKind.BLOOD_PRESSURE: "blood pressure",
    ReadingKind.GLUCOSE_LEVEL: "blood glucose",
    ReadingKind.BODY_TEMPERATURE: "body temperature",
}


@dataclass(frozen=True)
class Scalar:
    value: float


@dataclass(frozen=True)
class BloodPressure:
    systolic: float
    diastolic: float


ReadingValue = Union[Scalar, BloodPressure]


@dataclass(frozen=True)
class Reading:
    """Validated, immutable reading as seen by the alert engine."""

    subject_id: int
    kind: ReadingKind
    value: ReadingValue
    unit: str
    observed_at: datetime
    source: str | None = None
    id: int | None = None


class BloodPressureIn(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    systolic: float = Field(..., gt=0)
    diastolic: float = Field(..., gt=0)


class ReadingCreate(BaseModel):
    """Schema for ingesting a reading."""

    model_config = ConfigDict(allow_inf_nan=False)

    kind: ReadingKind
    value: float | BloodPressureIn
    unit: str = Field(..., min_length=1, max_length=20)
    observed_at: datetime | None = None
    source: str | None = Field(default=None, max_length=100)

    @field_validator("value", mode="before")
    @classmethod
    def reject_booleans(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("value must be a number or a blood pressure object")
        return value

    @model_validator(mode="after")
    def check_value_shape(self) -> "ReadingCreate":
        is_pressure = isinstance(self.value, BloodPressureIn)
        if self.kind is ReadingKind.BLOOD_PRESSURE and not is_pressure:
            raise ValueError(
                "For blood_pressure, value must be an object with systolic and diastolic."
            )
        if self.kind is not ReadingKind.BLOOD_PRESSURE and is_pressure:
            raise ValueError(f"For {self.kind.value}, value must be a number.")
        return self

    def to_reading(self, subject_id: int) -> Reading:
        if isinstance(self.value, BloodPressureIn):
            value: ReadingValue = BloodPressure(
                systolic=self.value.systolic,
                diastolic=self.value.diastolic,
            )
        else:
            value = Scalar(value=float(self.value))
        observed_at = self.observed_at or datetime.now(UTC)
        if observed_at.tzinfo is None:
            observed_at = observed_at.replace(tzinfo=UTC)
        return Reading(
            subject_id=subject_id,
            kind=self.kind,
            value=value,
            unit=self.unit,
            observed_at=observed_at,
            source=self.source,
        )


class ReadingResponse(BaseModel):
    id: int
    subject_id: int
    kind: ReadingKind
    value: float | BloodPressureIn
    unit: str
    observed_at: datetime
    source: str | None = None

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingResponse":
        if isinstance(reading.value, BloodPressure):
            value: float | BloodPressureIn = BloodPressureIn(
                systolic=reading.value.systolic,
                diastolic=reading.value.diastolic,
            )
        else:
            value = reading.value.value
        return cls(
            id=reading.id,
            subject_id=reading.subject_id,
            kind=reading.kind,
            value=value,
            unit=reading.unit,
            observed_at=reading.observed_at,
            source=reading.source,
        )
