def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "service": "healthwatch-api",
    }


def test_root_endpoint(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {
        "message": "Welcome to HealthWatch Alerts API",
        "docs": "/docs",
        "health": "/health",
    }


def test_metrics_exposes_notification_counters(client, dispatcher):
    dispatcher.stats.dispatched = 3
    dispatcher.stats.skipped_by_reason["severity_opted_out"] = 2

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    body = response.text
    assert 'healthwatch_notifications_total{status="dispatched"} 3' in body
    assert 'healthwatch_notifications_total{status="dropped"} 0' in body
    assert 'healthwatch_notifications_skipped_total{reason="severity_opted_out"} 2' in body
    assert "healthwatch_notification_queue_depth 0" in body
