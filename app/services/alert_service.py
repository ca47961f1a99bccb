# app/services/alert_service.py
"""
Shared alert service.
Evaluate flow (location → telemetry → classification → lifecycle), human
status changes, and the read helpers used by the notification feed and the
solved-cases summary.
"""

from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.models.alert import Alert, ALERT_STATUSES, CLOSED_STATUSES, OPEN_STATUSES
from app.models.location import Location
from app.schemas.alert import AlertOut
from app.services import alert_lifecycle
from app.services.change_feed import alert_feed, AlertChangeFeed, EVENT_UPDATE
from app.services.telemetry_client import fetch_latest
from app.services.threshold_evaluator import SensorReading, evaluate
from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)


class LocationNotFound(LookupError):
    pass


class AlertNotFound(LookupError):
    pass


async def evaluate_location(db: Session, location_id: str, fetch=None,
                            feed: AlertChangeFeed = alert_feed) -> dict:
    """Fetch the latest reading for a location and run it through the lifecycle.

    Returns the alert-manager response body. Missing telemetry is not an error.
    """
    fetch = fetch or fetch_latest
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise LocationNotFound(f"Location {location_id} not found")

    async with alert_lifecycle.location_lock(location_id):
        data = None
        if location.has_telemetry:
            data = await fetch(location.thingspeak_channel_id, location.thingspeak_read_key)
        if not data:
            logger.info(f"No sensor data available for location {location.name}")
            return {"success": True, "message": "No sensor data available"}

        reading = SensorReading.from_telemetry(location_id, data)
        classification = evaluate(reading)
        if classification is None:
            logger.debug(f"{location.name}: sensors within normal range")
            return {"success": True, "message": "All sensors within normal range", "sensors": data}

        result = await alert_lifecycle.process(db, location_id, classification,
                                               sensor_values=data, feed=feed)

    body = {"success": True, "alert": AlertOut.model_validate(result.alert).model_dump(mode="json")}
    body[result.outcome] = True
    return body


async def update_alert_status(db: Session, alert_id: int, status: str, user_id: str,
                              feed: AlertChangeFeed = alert_feed,
                              now: Optional[datetime] = None) -> Alert:
    """Apply a human status change. Closing stamps resolved_at/resolved_by, reopening clears them."""
    if status not in ALERT_STATUSES:
        raise ValueError(f"Invalid status '{status}'")
    alert = db.query(Alert).filter(Alert.id == alert_id).first()
    if not alert:
        raise AlertNotFound(f"Alert {alert_id} not found")

    now = now or datetime.utcnow()
    alert.status = status
    if status in CLOSED_STATUSES:
        alert.resolved_at = now
        alert.resolved_by = user_id
    else:
        alert.resolved_at = None
        alert.resolved_by = None
    alert.updated_at = now
    try:
        db.commit()
        db.refresh(alert)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Status update failed for alert {alert_id}: {e}", exc_info=True)
        raise

    logger.info(f"Alert #{alert_id} → {status} by {user_id}")
    feed.publish(EVENT_UPDATE, alert)
    return alert


def load_open_alerts(db: Session) -> list[Alert]:
    """Every active / in-queue alert, newest first."""
    return (db.query(Alert)
            .filter(Alert.status.in_(OPEN_STATUSES))
            .order_by(Alert.created_at.desc())
            .all())


def lookup_location_name(db: Session, location_id: str) -> Optional[str]:
    location = db.query(Location).filter(Location.id == location_id).first()
    return location.name if location else None


def solved_summary(db: Session) -> dict:
    """Counters shown above the solved-cases list."""
    solved = db.query(Alert).filter(Alert.status == "resolved").all()
    quick = timedelta(minutes=settings.QUICK_RESPONSE_MINUTES)
    return {
        "total_solved": len(solved),
        "fire_incidents": sum(1 for a in solved if a.alert_type == "fire"),
        "critical_cases": sum(1 for a in solved if a.severity == "critical"),
        "quick_responses": sum(1 for a in solved
                               if a.resolved_at and a.timestamp and a.resolved_at - a.timestamp < quick),
        "quick_response_minutes": settings.QUICK_RESPONSE_MINUTES,
    }
