from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from healthwatch.api.deps import get_alert_engine, get_alert_repo
from healthwatch.schemas.alerts import (
    AlertListResponse,
    AlertResponse,
    EvaluationResponse,
    Severity,
)
from healthwatch.services.alerts.engine import AlertEngine
from healthwatch.services.alerts.repository import AlertRepository

router = APIRouter(prefix="/subjects/{subject_id}/alerts", tags=["Alerts"])


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    subject_id: int,
    unread: bool = Query(False, description="Only unread alerts"),
    severity: Optional[Severity] = Query(None, description="Filter by severity"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    repo: AlertRepository = Depends(get_alert_repo),
):
    """List a subject's alerts, newest observation first."""
    severity_value = severity.value if severity else None
    alerts = await repo.list_alerts(
        subject_id=subject_id,
        unread_only=unread,
        severity=severity_value,
        skip=skip,
        limit=limit,
    )
    total = await repo.count_alerts(subject_id, unread, severity_value)
    unread_count = await repo.count_alerts(subject_id, True, None)
    return AlertListResponse(
        data=[AlertResponse.model_validate(a) for a in alerts],
        total=total,
        unread=unread_count,
        skip=skip,
        limit=limit,
    )


@router.put("/read-all")
async def mark_all_alerts_read(
    subject_id: int,
    repo: AlertRepository = Depends(get_alert_repo),
):
    """Mark every unread alert for the subject as read."""
    updated = await repo.mark_all_read(subject_id)
    return {"updated": updated}


@router.put("/{alert_id}/read", response_model=AlertResponse)
async def mark_alert_read(
    subject_id: int,
    alert_id: int,
    repo: AlertRepository = Depends(get_alert_repo),
):
    """Mark one alert as read."""
    alert = await repo.mark_read(subject_id, alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return AlertResponse.model_validate(alert)


@router.delete("/{alert_id}", status_code=204)
async def delete_alert(
    subject_id: int,
    alert_id: int,
    repo: AlertRepository = Depends(get_alert_repo),
):
    """Delete an alert."""
    deleted = await repo.delete_alert(subject_id, alert_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Alert not found")


@router.post("/evaluate", response_model=EvaluationResponse)
async def evaluate_subject(
    subject_id: int,
    engine: AlertEngine = Depends(get_alert_engine),
):
    """Run a full evaluation pass for the subject now."""
    return await engine.evaluate_subject(subject_id)
