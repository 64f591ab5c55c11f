from fastapi import APIRouter, Response

from healthwatch.services.notifications.outbox import get_dispatcher

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {"status": "healthy", "service": "healthwatch-api"}


@router.get("/")
async def root():
    """Root endpoint with API information."""
    return {"message": "Welcome to HealthWatch Alerts API", "docs": "/docs", "health": "/health"}


@router.get("/metrics")
async def metrics():
    """Prometheus-style metrics endpoint."""
    dispatcher = get_dispatcher()
    stats = dispatcher.stats
    lines = [
        "# HELP healthwatch_notifications_total Alert email outcomes by status.",
        "# TYPE healthwatch_notifications_total counter",
    ]
    for status in ("enqueued", "dispatched", "skipped", "failed", "retried", "dropped"):
        lines.append(
            f'healthwatch_notifications_total{{status="{status}"}} {getattr(stats, status)}'
        )
    lines += [
        "# HELP healthwatch_notifications_skipped_total Skipped alert emails by reason.",
        "# TYPE healthwatch_notifications_skipped_total counter",
    ]
    if stats.skipped_by_reason:
        for reason in sorted(stats.skipped_by_reason):
            value = stats.skipped_by_reason[reason]
            lines.append(f'healthwatch_notifications_skipped_total{{reason="{reason}"}} {value}')
    else:
        lines.append('healthwatch_notifications_skipped_total{reason="none"} 0')
    lines += [
        "# HELP healthwatch_notification_queue_depth Alert emails waiting in the outbox.",
        "# TYPE healthwatch_notification_queue_depth gauge",
        f"healthwatch_notification_queue_depth {dispatcher.pending}",
    ]
    body = "\n".join(lines) + "\n"
    return Response(body, media_type="text/plain; version=0.0.4")
