# app/routers/alerts.py
"""Alert list, detail, status change and solved-cases summary."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.alert import Alert
from app.schemas.alert import AlertOut, AlertStatusUpdate, SolvedSummaryOut
from app.services.alert_service import update_alert_status, solved_summary, AlertNotFound
from app.services.auth_service import require_user, AuthenticatedUser
from typing import Optional

router = APIRouter()


@router.get("/alerts", response_model=list[AlertOut], summary="All alerts — filterable")
def get_all_alerts(
    status: Optional[str] = None,
    alert_type: Optional[str] = None,
    location_id: Optional[str] = None,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """Newest first. Filter by status, alert_type or location_id."""
    q = db.query(Alert)
    if status:
        q = q.filter(Alert.status == status)
    if alert_type:
        q = q.filter(Alert.alert_type == alert_type)
    if location_id:
        q = q.filter(Alert.location_id == location_id)
    return q.order_by(Alert.timestamp.desc()).limit(limit).all()


@router.get("/alerts/solved/summary", response_model=SolvedSummaryOut, summary="Solved cases counters")
def get_solved_summary(db: Session = Depends(get_db)):
    return solved_summary(db)


@router.get("/alerts/{alert_id}", response_model=AlertOut)
def get_alert(alert_id: int, db: Session = Depends(get_db)):
    alert = db.query(Alert).filter(Alert.id == alert_id).first()
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.put("/alerts/{alert_id}/status", response_model=AlertOut, summary="Resolve / mark false alarm")
async def set_alert_status(alert_id: int, body: AlertStatusUpdate,
                           user: AuthenticatedUser = Depends(require_user),
                           db: Session = Depends(get_db)):
    """Requires a bearer token. resolved_at / resolved_by are stamped when the alert closes."""
    try:
        return await update_alert_status(db, alert_id, body.status, user.id)
    except AlertNotFound:
        raise HTTPException(status_code=404, detail="Alert not found")
