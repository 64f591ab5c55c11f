from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from healthwatch.schemas.alerts import Severity


class EmailAlertTypes(BaseModel):
    """Per-severity email opt-in. Defaults are the single source of truth."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    critical: bool = True
    warning: bool = True
    info: bool = False

    def allows(self, severity: Severity) -> bool:
        return bool(getattr(self, severity.value))


class NotificationPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email_notifications: bool = Field(default=True, alias="emailNotifications")
    health_alerts: bool = Field(default=True, alias="healthAlerts")
    email_alert_types: EmailAlertTypes = Field(
        default_factory=EmailAlertTypes,
        alias="emailAlertTypes",
    )

    @classmethod
    def from_settings(cls, raw: dict[str, Any] | None) -> "NotificationPreferences":
        """Build from the stored notification_settings document; missing keys take defaults."""
        return cls.model_validate(raw or {})


class Recipient(BaseModel):
    email: str
    display_name: str = "User"
