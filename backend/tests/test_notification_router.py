from types import SimpleNamespace

import pytest

from conftest import NOW, FakeTransport
from healthwatch.schemas.preferences import NotificationPreferences, Recipient
from healthwatch.services.email import EmailSendResult
from healthwatch.services.notifications.router import (
    NotificationRouter,
    RouteStatus,
    SkipReason,
)

RECIPIENT = Recipient(email="sam@example.com", display_name="Sam")


def _alert(severity="critical", related_kind="heart_rate"):
    return SimpleNamespace(
        id=11,
        subject_id=1,
        severity=severity,
        title="High Heart Rate",
        message="Heart rate 125 bpm is critically high (>120 bpm)",
        source="Heart Rate Monitor",
        related_kind=related_kind,
        observed_at=NOW,
        is_read=False,
    )


@pytest.mark.anyio
@pytest.mark.parametrize("severity", ["critical", "warning", "info"])
async def test_email_notifications_off_skips_every_severity(severity):
    transport = FakeTransport()
    prefs = NotificationPreferences.from_settings({"emailNotifications": False})

    result = await NotificationRouter(transport).route(_alert(severity), prefs, RECIPIENT)

    assert result.status is RouteStatus.SKIPPED
    assert result.reason is SkipReason.NOTIFICATIONS_DISABLED
    assert transport.sent == []


@pytest.mark.anyio
async def test_health_alerts_off_skips():
    prefs = NotificationPreferences.from_settings({"healthAlerts": False})

    result = await NotificationRouter(FakeTransport()).route(_alert(), prefs, RECIPIENT)

    assert result.reason is SkipReason.NOTIFICATIONS_DISABLED


@pytest.mark.anyio
async def test_info_is_opted_out_by_default():
    transport = FakeTransport()

    result = await NotificationRouter(transport).route(
        _alert("info"), NotificationPreferences(), RECIPIENT
    )

    assert result.reason is SkipReason.SEVERITY_OPTED_OUT
    assert transport.sent == []


@pytest.mark.anyio
async def test_severity_opt_out_from_stored_settings():
    prefs = NotificationPreferences.from_settings(
        {"emailAlertTypes": {"critical": True, "warning": False}}
    )

    result = await NotificationRouter(FakeTransport()).route(_alert("warning"), prefs, RECIPIENT)

    assert result.reason is SkipReason.SEVERITY_OPTED_OUT


@pytest.mark.anyio
async def test_missing_recipient_is_skipped():
    result = await NotificationRouter(FakeTransport()).route(
        _alert(), NotificationPreferences(), None
    )

    assert result.reason is SkipReason.NO_RECIPIENT


@pytest.mark.anyio
async def test_critical_alert_is_dispatched():
    transport = FakeTransport(EmailSendResult(success=True, message_id="abc"))
    prefs = NotificationPreferences.from_settings(
        {
            "emailNotifications": True,
            "healthAlerts": True,
            "emailAlertTypes": {"critical": True},
        }
    )

    result = await NotificationRouter(transport).route(_alert(), prefs, RECIPIENT)

    assert result.status is RouteStatus.DISPATCHED
    assert result.message_id == "abc"
    assert transport.sent[0]["to"] == "sam@example.com"
    assert transport.sent[0]["subject"] == "URGENT Health Alert: High Heart Rate"


@pytest.mark.anyio
async def test_transport_failure_is_returned_not_raised():
    transport = FakeTransport(EmailSendResult(success=False, error="mailbox unavailable"))

    result = await NotificationRouter(transport).route(
        _alert(), NotificationPreferences(), RECIPIENT
    )

    assert result.status is RouteStatus.FAILED
    assert result.error == "mailbox unavailable"


@pytest.mark.anyio
async def test_transport_exception_is_caught():
    alert = _alert()
    transport = FakeTransport(error=ConnectionError("smtp down"))

    result = await NotificationRouter(transport).route(alert, NotificationPreferences(), RECIPIENT)

    assert result.status is RouteStatus.FAILED
    assert "smtp down" in result.error
    assert alert.is_read is False
