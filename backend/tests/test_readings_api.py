def test_ingest_reading_persists_and_evaluates(client, reading_repository, alert_repository, evaluated_readings):
    response = client.post(
        "/api/v1/subjects/1/readings",
        json={
            "kind": "heart_rate",
            "value": 125,
            "unit": "bpm",
            "observed_at": "2026-10-19T08:30:00Z",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == 1
    assert body["subject_id"] == 1
    assert body["kind"] == "heart_rate"
    assert body["value"] == 125

    assert len(evaluated_readings) == 1
    reading, full_pass = evaluated_readings[0]
    assert reading.id == 1
    assert full_pass is False
    assert [a.title for a in alert_repository.alerts] == ["High Heart Rate"]


def test_ingest_blood_pressure(client, alert_repository):
    response = client.post(
        "/api/v1/subjects/1/readings",
        json={
            "kind": "blood_pressure",
            "value": {"systolic": 185, "diastolic": 95},
            "unit": "mmHg",
        },
    )

    assert response.status_code == 201
    assert response.json()["value"] == {"systolic": 185, "diastolic": 95}
    assert alert_repository.alerts[0].severity == "critical"


def test_ingest_with_full_pass_flag(client, evaluated_readings):
    response = client.post(
        "/api/v1/subjects/1/readings?full_pass=true",
        json={"kind": "glucose_level", "value": 100, "unit": "mg/dL"},
    )

    assert response.status_code == 201
    assert evaluated_readings[0][1] is True


def test_blood_pressure_requires_components(client, evaluated_readings):
    response = client.post(
        "/api/v1/subjects/1/readings",
        json={"kind": "blood_pressure", "value": 120, "unit": "mmHg"},
    )

    assert response.status_code == 422
    assert response.json()["detail"]
    assert evaluated_readings == []


def test_scalar_kind_rejects_object_value(client):
    response = client.post(
        "/api/v1/subjects/1/readings",
        json={
            "kind": "heart_rate",
            "value": {"systolic": 120, "diastolic": 80},
            "unit": "bpm",
        },
    )

    assert response.status_code == 422


def test_unknown_kind_rejected(client):
    response = client.post(
        "/api/v1/subjects/1/readings",
        json={"kind": "mood", "value": 3, "unit": ""},
    )

    assert response.status_code == 422


def test_non_finite_value_rejected(client, evaluated_readings):
    response = client.post(
        "/api/v1/subjects/1/readings",
        content='{"kind": "heart_rate", "value": NaN, "unit": "bpm"}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert evaluated_readings == []
