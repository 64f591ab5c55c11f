"""Decides whether a persisted alert is emailed and performs the delivery attempt."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from healthwatch.schemas.alerts import Severity
from healthwatch.schemas.preferences import NotificationPreferences, Recipient
from healthwatch.services.email import EmailTransport
from healthwatch.services.notifications.templates import render_alert_email

logger = logging.getLogger("healthwatch.notifications")


class RouteStatus(str, Enum):
    DISPATCHED = "dispatched"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    NOTIFICATIONS_DISABLED = "notifications_disabled"
    SEVERITY_OPTED_OUT = "severity_opted_out"
    NO_RECIPIENT = "no_recipient"


@dataclass(frozen=True)
class RouteResult:
    status: RouteStatus
    reason: SkipReason | None = None
    message_id: str | None = None
    error: str | None = None

    @classmethod
    def skipped(cls, reason: SkipReason) -> "RouteResult":
        return cls(status=RouteStatus.SKIPPED, reason=reason)


def skip_reason(alert, preferences: NotificationPreferences) -> SkipReason | None:
    if not preferences.email_notifications or not preferences.health_alerts:
        return SkipReason.NOTIFICATIONS_DISABLED
    if not preferences.email_alert_types.allows(Severity(alert.severity)):
        return SkipReason.SEVERITY_OPTED_OUT
    return None


class NotificationRouter:
    """Never raises on delivery problems and never mutates the alert."""

    def __init__(self, transport: EmailTransport):
        self.transport = transport

    async def route(
        self,
        alert,
        preferences: NotificationPreferences,
        recipient: Recipient | None,
    ) -> RouteResult:
        reason = skip_reason(alert, preferences)
        if reason is None and recipient is None:
            reason = SkipReason.NO_RECIPIENT
        if reason is not None:
            logger.info(
                "Skipping email for %s alert id=%s (%s)",
                alert.severity,
                alert.id,
                reason.value,
            )
            return RouteResult.skipped(reason)

        rendered = render_alert_email(alert, recipient.display_name)
        try:
            result = await self.transport.send(
                recipient.email,
                rendered.subject,
                rendered.html_body,
                rendered.text_body,
            )
        except Exception as exc:
            logger.exception("Email transport raised for alert id=%s", alert.id)
            return RouteResult(status=RouteStatus.FAILED, error=str(exc) or exc.__class__.__name__)

        if not result.success:
            logger.error(
                "Failed to send %s alert email id=%s: %s",
                alert.severity,
                alert.id,
                result.error,
            )
            return RouteResult(status=RouteStatus.FAILED, error=result.error)

        logger.info(
            "%s alert email sent id=%s message_id=%s",
            alert.severity.upper(),
            alert.id,
            result.message_id,
        )
        return RouteResult(status=RouteStatus.DISPATCHED, message_id=result.message_id)
