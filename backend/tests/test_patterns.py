from datetime import timedelta

from conftest import NOW, make_reading
from healthwatch.schemas.alerts import Severity
from healthwatch.schemas.readings import ReadingKind
from healthwatch.services.alerts.patterns import (
    analyze_patterns,
    blood_pressure_trend,
    heart_rate_variability,
)


def _series(kind, values):
    start = NOW - timedelta(hours=len(values))
    return [
        make_reading(kind, value, observed_at=start + timedelta(hours=i))
        for i, value in enumerate(values)
    ]


def test_high_heart_rate_variability_is_info():
    readings = _series(ReadingKind.HEART_RATE, [60, 90, 62, 95, 61])

    candidate = heart_rate_variability(1, readings, NOW)

    assert candidate is not None
    assert candidate.severity is Severity.INFO
    assert candidate.title == "Heart Rate Variability"
    assert candidate.source == "Pattern Analysis"


def test_low_heart_rate_variability_is_ignored():
    readings = _series(ReadingKind.HEART_RATE, [70, 71, 69, 72, 70])

    assert heart_rate_variability(1, readings, NOW) is None


def test_heart_rate_variability_needs_five_readings():
    readings = _series(ReadingKind.HEART_RATE, [60, 95, 60, 95])

    assert heart_rate_variability(1, readings, NOW) is None


def test_heart_rate_variability_uses_last_five():
    readings = _series(ReadingKind.HEART_RATE, [40, 140, 70, 71, 69, 72, 70])

    assert heart_rate_variability(1, readings, NOW) is None


def test_blood_pressure_trend_up():
    readings = _series(ReadingKind.BLOOD_PRESSURE, [(120, 80), (128, 82), (135, 85)])

    candidate = blood_pressure_trend(1, readings, NOW)

    assert candidate is not None
    assert candidate.severity is Severity.WARNING
    assert candidate.title == "Blood Pressure Trending Up"


def test_blood_pressure_trend_requires_latest_above_floor():
    readings = _series(ReadingKind.BLOOD_PRESSURE, [(110, 80), (120, 80), (130, 80)])

    assert blood_pressure_trend(1, readings, NOW) is None


def test_blood_pressure_trend_requires_strict_increase():
    readings = _series(ReadingKind.BLOOD_PRESSURE, [(132, 80), (132, 80), (140, 80)])

    assert blood_pressure_trend(1, readings, NOW) is None


def test_blood_pressure_trend_needs_three_readings():
    readings = _series(ReadingKind.BLOOD_PRESSURE, [(120, 80), (150, 80)])

    assert blood_pressure_trend(1, readings, NOW) is None


def test_analyze_patterns_orders_by_observation_time():
    readings = _series(ReadingKind.BLOOD_PRESSURE, [(120, 80), (128, 82), (135, 85)])

    candidates = analyze_patterns(1, list(reversed(readings)), NOW)

    assert [c.title for c in candidates] == ["Blood Pressure Trending Up"]


def test_analyze_patterns_without_history():
    assert analyze_patterns(1, [], NOW) == []
