from types import SimpleNamespace

from conftest import NOW
from healthwatch.schemas.alerts import Severity
from healthwatch.services.notifications.templates import (
    DEFAULT_RECOMMENDATION,
    recommendation_for,
    render_alert_email,
)


def _alert(severity, title="High Blood Pressure", related_kind="blood_pressure", message="BP high"):
    return SimpleNamespace(
        id=1,
        severity=severity,
        title=title,
        message=message,
        source="Blood Pressure Monitor",
        related_kind=related_kind,
        observed_at=NOW,
    )


def test_subject_prefix_per_severity():
    assert render_alert_email(_alert("critical"), "Sam").subject.startswith("URGENT Health Alert:")
    assert render_alert_email(_alert("warning"), "Sam").subject.startswith(
        "Important Health Alert:"
    )
    assert render_alert_email(_alert("info"), "Sam").subject == (
        "Health Notification: High Blood Pressure"
    )


def test_text_body_contains_details_and_links():
    rendered = render_alert_email(_alert("warning"), "Sam")

    assert "Hello Sam," in rendered.text_body
    assert "- Source: Blood Pressure Monitor" in rendered.text_body
    assert "/alerts" in rendered.text_body
    assert "Recommendation: Monitor your blood pressure regularly" in rendered.text_body


def test_info_has_no_recommendation():
    rendered = render_alert_email(_alert("info"), "Sam")

    assert "Recommendation" not in rendered.text_body
    assert "Recommendation" not in rendered.html_body


def test_html_escapes_alert_text():
    rendered = render_alert_email(_alert("critical", message="<script>x</script>"), "Sam & Co")

    assert "<script>" not in rendered.html_body
    assert "&lt;script&gt;" in rendered.html_body
    assert "Sam &amp; Co" in rendered.html_body


def test_recommendation_fallback():
    assert recommendation_for(Severity.CRITICAL, "general") == DEFAULT_RECOMMENDATION
    assert recommendation_for(Severity.INFO, "heart_rate") is None
