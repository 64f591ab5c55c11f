from conftest import NOW, make_reading
from healthwatch.models import Alert, HealthReading, model_to_dict
from healthwatch.models.alert import FINGERPRINT_CONSTRAINT
from healthwatch.schemas.readings import BloodPressure, ReadingKind, Scalar


def test_blood_pressure_row_round_trip():
    reading = make_reading(ReadingKind.BLOOD_PRESSURE, (150, 85), source="Cuff")

    row = HealthReading.from_reading(reading)

    assert row.systolic == 150
    assert row.diastolic == 85
    assert row.numeric_value is None
    assert row.to_reading().value == BloodPressure(systolic=150, diastolic=85)


def test_scalar_row_round_trip():
    row = HealthReading.from_reading(make_reading(ReadingKind.GLUCOSE_LEVEL, 110))

    assert row.numeric_value == 110
    assert row.to_reading().value == Scalar(value=110)
    assert row.to_reading().observed_at == NOW


def test_alert_fingerprint_constraint_is_named():
    constraints = {c.name for c in Alert.__table__.constraints}

    assert FINGERPRINT_CONSTRAINT in constraints
    assert Alert.__table__.c.fingerprint.nullable is True


def test_model_to_dict():
    alert = Alert(id=1, subject_id=2, severity="info", title="t", message="m", is_read=False)

    data = model_to_dict(alert)

    assert data["subject_id"] == 2
    assert data["is_read"] is False
