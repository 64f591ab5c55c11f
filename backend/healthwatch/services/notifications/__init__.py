from healthwatch.services.notifications.outbox import (
    AlertSnapshot,
    NotificationDispatcher,
    NotificationStats,
    get_dispatcher,
)
from healthwatch.services.notifications.router import (
    NotificationRouter,
    RouteResult,
    RouteStatus,
    SkipReason,
)
from healthwatch.services.notifications.templates import RenderedEmail, render_alert_email

__all__ = [
    "AlertSnapshot",
    "NotificationDispatcher",
    "NotificationStats",
    "get_dispatcher",
    "NotificationRouter",
    "RouteResult",
    "RouteStatus",
    "SkipReason",
    "RenderedEmail",
    "render_alert_email",
]
