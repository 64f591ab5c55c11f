"""Severity-specific health alert emails."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from html import escape

from healthwatch.config import settings
from healthwatch.schemas.alerts import Severity

SEVERITY_COLORS = {
    Severity.CRITICAL: "#dc2626",
    Severity.WARNING: "#d97706",
    Severity.INFO: "#2563eb",
}

SUBJECT_PREFIXES = {
    Severity.CRITICAL: "URGENT Health Alert",
    Severity.WARNING: "Important Health Alert",
    Severity.INFO: "Health Notification",
}

RECOMMENDATIONS: dict[Severity, dict[str, str]] = {
    Severity.CRITICAL: {
        "heart_rate": "Seek immediate medical attention. Contact your doctor or emergency services.",
        "blood_pressure": "Monitor closely and contact your healthcare provider immediately.",
        "glucose_level": "Take appropriate action as advised by your doctor. Monitor frequently.",
        "body_temperature": "Seek medical attention if fever persists or worsens.",
    },
    Severity.WARNING: {
        "heart_rate": "Monitor your heart rate and consider contacting your healthcare provider.",
        "blood_pressure": "Monitor your blood pressure regularly and consult your doctor.",
        "glucose_level": "Check your diet and medication adherence. Contact your doctor if needed.",
        "body_temperature": "Rest and stay hydrated. Monitor temperature regularly.",
    },
}

DEFAULT_RECOMMENDATION = (
    "Monitor your health closely and consult your healthcare provider if needed."
)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html_body: str
    text_body: str


def recommendation_for(severity: Severity, related_kind: str) -> str | None:
    by_kind = RECOMMENDATIONS.get(severity)
    if by_kind is None:
        return None
    return by_kind.get(related_kind, DEFAULT_RECOMMENDATION)


def _format_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M %Z").strip()


def render_alert_email(alert, recipient_name: str) -> RenderedEmail:
    """Render subject, HTML and plain-text bodies for a persisted alert."""
    severity = Severity(alert.severity)
    base_url = settings.frontend_base_url.rstrip("/")
    brand = settings.brand_name
    subject = f"{SUBJECT_PREFIXES[severity]}: {alert.title}"
    recommendation = recommendation_for(severity, alert.related_kind)
    when = _format_time(alert.observed_at)

    text_lines = [
        f"{brand} Health Alert",
        "",
        f"Hello {recipient_name},",
        "",
        alert.title,
        "",
        alert.message,
        "",
        "Alert Details:",
        f"- Type: {severity.value}",
        f"- Time: {when}",
        f"- Source: {alert.source}",
    ]
    if recommendation:
        text_lines += ["", f"Recommendation: {recommendation}"]
    text_lines += [
        "",
        f"View your dashboard: {base_url}/dashboard",
        f"View all alerts: {base_url}/alerts",
        "",
        f"To manage your notification preferences, visit: {base_url}/settings",
        "",
        f"This is an automated health alert from {brand}.",
    ]

    color = SEVERITY_COLORS[severity]
    recommendation_html = (
        f'<div style="background-color:#fef3c7;border:1px solid #f59e0b;padding:16px;border-radius:8px;">'
        f'<h3 style="margin:0 0 8px 0;color:#92400e;">Recommendation:</h3>'
        f'<p style="margin:0;color:#92400e;">{escape(recommendation)}</p></div>'
        if recommendation
        else ""
    )
    html_body = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Health Alert - {escape(brand)}</title></head>
<body style="margin:0;padding:0;font-family:Arial,sans-serif;background-color:#f9fafb;">
  <div style="max-width:600px;margin:0 auto;background-color:white;border-radius:8px;">
    <div style="background:#059669;padding:24px;text-align:center;">
      <h1 style="color:white;margin:0;font-size:24px;">{escape(brand)}</h1>
    </div>
    <div style="padding:32px 24px;">
      <h2 style="color:{color};margin:0 0 24px 0;text-align:center;">{escape(alert.title)}</h2>
      <div style="border-left:4px solid {color};padding:16px;margin-bottom:24px;">
        <p style="margin:0;">Hello {escape(recipient_name)},</p>
        <p style="margin:16px 0 0 0;">{escape(alert.message)}</p>
      </div>
      <table style="width:100%;border-collapse:collapse;margin-bottom:24px;">
        <tr><td style="color:#6b7280;width:30%;">Type:</td><td style="text-transform:capitalize;">{severity.value}</td></tr>
        <tr><td style="color:#6b7280;">Time:</td><td>{escape(when)}</td></tr>
        <tr><td style="color:#6b7280;">Source:</td><td>{escape(alert.source)}</td></tr>
      </table>
      <p style="text-align:center;">
        <a href="{base_url}/dashboard">View Dashboard</a> &middot;
        <a href="{base_url}/alerts">View All Alerts</a>
      </p>
      {recommendation_html}
    </div>
    <div style="padding:24px;text-align:center;border-top:1px solid #e5e7eb;color:#6b7280;font-size:12px;">
      This is an automated health alert from {escape(brand)}.
      Manage your notification preferences in <a href="{base_url}/settings">Settings</a>.
    </div>
  </div>
</body>
</html>
"""
    return RenderedEmail(subject=subject, html_body=html_body, text_body="\n".join(text_lines))
