"""Threshold evaluation for single vital-sign readings.

Critical conditions are checked first and short-circuit the warning checks,
so a reading yields at most one candidate.
"""

from dataclasses import dataclass

from healthwatch.schemas.alerts import AlertCandidate, Severity
from healthwatch.schemas.readings import BloodPressure, Reading, ReadingKind


@dataclass(frozen=True)
class VitalThresholds:
    heart_rate_low: float = 50
    heart_rate_high: float = 100
    heart_rate_critical: float = 120
    systolic_high: float = 140
    systolic_critical: float = 180
    diastolic_high: float = 90
    diastolic_critical: float = 110
    temperature_low: float = 97.0
    temperature_high: float = 100.4
    temperature_critical: float = 103.0
    glucose_low: float = 70
    glucose_high: float = 140
    glucose_critical: float = 200


DEFAULT_THRESHOLDS = VitalThresholds()

DEFAULT_SOURCES: dict[ReadingKind, str] = {
    ReadingKind.HEART_RATE: "Heart Rate Monitor",
    ReadingKind.BLOOD_PRESSURE: "Blood Pressure Monitor",
    ReadingKind.GLUCOSE_LEVEL: "Glucose Monitor",
    ReadingKind.BODY_TEMPERATURE: "Temperature Monitor",
}


def _fmt(value: float) -> str:
    return f"{value:g}"


def _candidate(
    reading: Reading,
    severity: Severity,
    title: str,
    message: str,
) -> AlertCandidate:
    return AlertCandidate(
        subject_id=reading.subject_id,
        severity=severity,
        title=title,
        message=message,
        related_kind=reading.kind.value,
        observed_at=reading.observed_at,
        source=reading.source or DEFAULT_SOURCES.get(reading.kind, "System"),
    )


def _heart_rate(reading: Reading, value: float, t: VitalThresholds) -> AlertCandidate | None:
    if value < t.heart_rate_low:
        return _candidate(
            reading,
            Severity.CRITICAL,
            "Low Heart Rate",
            f"Heart rate {_fmt(value)} bpm is below normal range ({_fmt(t.heart_rate_low)}+ bpm)",
        )
    if value > t.heart_rate_critical:
        return _candidate(
            reading,
            Severity.CRITICAL,
            "High Heart Rate",
            f"Heart rate {_fmt(value)} bpm is critically high (>{_fmt(t.heart_rate_critical)} bpm)",
        )
    if value > t.heart_rate_high:
        return _candidate(
            reading,
            Severity.WARNING,
            "Elevated Heart Rate",
            f"Heart rate {_fmt(value)} bpm is above normal range ({_fmt(t.heart_rate_high)}+ bpm)",
        )
    return None


def _blood_pressure(
    reading: Reading, value: BloodPressure, t: VitalThresholds
) -> AlertCandidate | None:
    systolic, diastolic = value.systolic, value.diastolic
    shown = f"{_fmt(systolic)}/{_fmt(diastolic)}"
    if systolic >= t.systolic_critical or diastolic >= t.diastolic_critical:
        return _candidate(
            reading,
            Severity.CRITICAL,
            "Critical Blood Pressure",
            f"Blood pressure {shown} mmHg is critically high",
        )
    if systolic >= t.systolic_high or diastolic >= t.diastolic_high:
        return _candidate(
            reading,
            Severity.WARNING,
            "High Blood Pressure",
            f"Blood pressure {shown} mmHg exceeds normal range",
        )
    return None


def _body_temperature(reading: Reading, value: float, t: VitalThresholds) -> AlertCandidate | None:
    if value >= t.temperature_critical:
        return _candidate(
            reading,
            Severity.CRITICAL,
            "High Fever",
            f"Body temperature {value:.1f}°F indicates high fever",
        )
    if value >= t.temperature_high:
        return _candidate(
            reading,
            Severity.WARNING,
            "Fever Detected",
            f"Body temperature {value:.1f}°F indicates fever",
        )
    if value < t.temperature_low:
        return _candidate(
            reading,
            Severity.WARNING,
            "Low Body Temperature",
            f"Body temperature {value:.1f}°F is below normal range",
        )
    return None


def _glucose(reading: Reading, value: float, t: VitalThresholds) -> AlertCandidate | None:
    if value >= t.glucose_critical:
        return _candidate(
            reading,
            Severity.CRITICAL,
            "Critical Blood Glucose",
            f"Blood glucose {_fmt(value)} mg/dL is critically high",
        )
    if value >= t.glucose_high:
        return _candidate(
            reading,
            Severity.WARNING,
            "High Blood Glucose",
            f"Blood glucose {_fmt(value)} mg/dL exceeds target range",
        )
    if value < t.glucose_low:
        return _candidate(
            reading,
            Severity.WARNING,
            "Low Blood Glucose",
            f"Blood glucose {_fmt(value)} mg/dL is below normal range",
        )
    return None


def evaluate_reading(
    reading: Reading,
    thresholds: VitalThresholds = DEFAULT_THRESHOLDS,
) -> list[AlertCandidate]:
    """Return the alert candidates for one reading (empty for normal or unknown kinds)."""
    value = reading.value
    candidate: AlertCandidate | None = None
    if reading.kind is ReadingKind.BLOOD_PRESSURE:
        if isinstance(value, BloodPressure):
            candidate = _blood_pressure(reading, value, thresholds)
    elif isinstance(value, BloodPressure):
        return []
    elif reading.kind is ReadingKind.HEART_RATE:
        candidate = _heart_rate(reading, value.value, thresholds)
    elif reading.kind is ReadingKind.BODY_TEMPERATURE:
        candidate = _body_temperature(reading, value.value, thresholds)
    elif reading.kind is ReadingKind.GLUCOSE_LEVEL:
        candidate = _glucose(reading, value.value, thresholds)
    return [candidate] if candidate is not None else []


def evaluate_readings(
    readings: list[Reading],
    thresholds: VitalThresholds = DEFAULT_THRESHOLDS,
) -> list[AlertCandidate]:
    candidates: list[AlertCandidate] = []
    for reading in readings:
        candidates.extend(evaluate_reading(reading, thresholds))
    return candidates
