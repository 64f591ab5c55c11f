"""Business logic services for HealthWatch.

This package intentionally avoids eager imports to prevent circular import
chains between the ORM models and the alert services.
"""

from importlib import import_module

__all__ = [
    # Alerts
    "AlertEngine",
    "AlertSubmitter",
    "SQLAlertRepository",
    "InMemoryAlertRepository",
    # Readings
    "SQLReadingRepository",
    "InMemoryReadingRepository",
    # Preferences
    "SQLPreferenceStore",
    "CachedPreferenceStore",
    "InMemoryPreferenceStore",
    # Notifications
    "NotificationRouter",
    "NotificationDispatcher",
    # Scheduling
    "AlertEvaluationScheduler",
]

_LAZY_IMPORTS = {
    "AlertEngine": ("healthwatch.services.alerts.engine", "AlertEngine"),
    "AlertSubmitter": ("healthwatch.services.alerts.dedup", "AlertSubmitter"),
    "SQLAlertRepository": ("healthwatch.services.alerts.repository", "SQLAlertRepository"),
    "InMemoryAlertRepository": (
        "healthwatch.services.alerts.repository",
        "InMemoryAlertRepository",
    ),
    "SQLReadingRepository": ("healthwatch.services.readings", "SQLReadingRepository"),
    "InMemoryReadingRepository": (
        "healthwatch.services.readings",
        "InMemoryReadingRepository",
    ),
    "SQLPreferenceStore": ("healthwatch.services.preferences", "SQLPreferenceStore"),
    "CachedPreferenceStore": ("healthwatch.services.preferences", "CachedPreferenceStore"),
    "InMemoryPreferenceStore": (
        "healthwatch.services.preferences",
        "InMemoryPreferenceStore",
    ),
    "NotificationRouter": ("healthwatch.services.notifications.router", "NotificationRouter"),
    "NotificationDispatcher": (
        "healthwatch.services.notifications.outbox",
        "NotificationDispatcher",
    ),
    "AlertEvaluationScheduler": (
        "healthwatch.services.scheduler",
        "AlertEvaluationScheduler",
    ),
}


def __getattr__(name: str):
    target = _LAZY_IMPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    return getattr(import_module(module_name), attr_name)
