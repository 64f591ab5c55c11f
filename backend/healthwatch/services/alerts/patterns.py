"""Trend and variability rules over a short reading history."""

import statistics
from datetime import datetime

from healthwatch.schemas.alerts import AlertCandidate, Severity
from healthwatch.schemas.readings import BloodPressure, Reading, ReadingKind

BP_TREND_MIN_READINGS = 3
BP_TREND_SYSTOLIC_FLOOR = 130
HR_VARIABILITY_MIN_READINGS = 5
HR_VARIABILITY_THRESHOLD = 200.0

PATTERN_SOURCE = "Pattern Analysis"


def _systolic_values(readings: list[Reading]) -> list[float]:
    return [
        r.value.systolic
        for r in readings
        if r.kind is ReadingKind.BLOOD_PRESSURE and isinstance(r.value, BloodPressure)
    ]


def _heart_rate_values(readings: list[Reading]) -> list[float]:
    return [
        r.value.value
        for r in readings
        if r.kind is ReadingKind.HEART_RATE and not isinstance(r.value, BloodPressure)
    ]


def blood_pressure_trend(
    subject_id: int, readings: list[Reading], now: datetime
) -> AlertCandidate | None:
    """Last three systolic values strictly increasing and the latest above 130."""
    systolic = _systolic_values(readings)
    if len(systolic) < BP_TREND_MIN_READINGS:
        return None
    last = systolic[-BP_TREND_MIN_READINGS:]
    increasing = all(b > a for a, b in zip(last, last[1:]))
    if not increasing or last[-1] <= BP_TREND_SYSTOLIC_FLOOR:
        return None
    return AlertCandidate(
        subject_id=subject_id,
        severity=Severity.WARNING,
        title="Blood Pressure Trending Up",
        message="Blood pressure has been increasing over the last 3 readings",
        related_kind=ReadingKind.BLOOD_PRESSURE.value,
        observed_at=now,
        source=PATTERN_SOURCE,
    )


def heart_rate_variability(
    subject_id: int, readings: list[Reading], now: datetime
) -> AlertCandidate | None:
    """Population variance of the last five heart-rate values above 200 bpm²."""
    values = _heart_rate_values(readings)
    if len(values) < HR_VARIABILITY_MIN_READINGS:
        return None
    variance = statistics.pvariance(values[-HR_VARIABILITY_MIN_READINGS:])
    if variance <= HR_VARIABILITY_THRESHOLD:
        return None
    return AlertCandidate(
        subject_id=subject_id,
        severity=Severity.INFO,
        title="Heart Rate Variability",
        message="Heart rate showing high variability in recent readings",
        related_kind=ReadingKind.HEART_RATE.value,
        observed_at=now,
        source=PATTERN_SOURCE,
    )


def analyze_patterns(
    subject_id: int, readings: list[Reading], now: datetime
) -> list[AlertCandidate]:
    """Run all pattern rules; readings must be ordered oldest first.

    Insufficient history is not an error, the rule simply yields nothing.
    """
    ordered = sorted(readings, key=lambda r: r.observed_at)
    candidates = [
        blood_pressure_trend(subject_id, ordered, now),
        heart_rate_variability(subject_id, ordered, now),
    ]
    return [c for c in candidates if c is not None]
