# app/services/alert_lifecycle.py
"""
Alert lifecycle: turns a classification into a create, an in-place update,
or nothing.

Within ALERT_WINDOW_MINUTES a location keeps a single alert row; repeat
detections refresh that row (type, severity, sensor snapshot, timestamp)
instead of inserting a new one. Status is never changed here; closing an
alert is a human action (see alert_service.update_alert_status).
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.models.alert import Alert, OPEN_STATUSES
from app.services.change_feed import alert_feed, AlertChangeFeed, EVENT_INSERT, EVENT_UPDATE
from app.services.threshold_evaluator import Classification
from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

CREATED = "created"
UPDATED = "updated"
NONE = "none"

# One entry per location ever evaluated, so bounded by the size of the location registry
_location_locks: dict[str, asyncio.Lock] = {}


def location_lock(location_id: str) -> asyncio.Lock:
    """One lock per location. Hold it around fetch → evaluate → process."""
    lock = _location_locks.get(location_id)
    if lock is None:
        lock = _location_locks[location_id] = asyncio.Lock()
    return lock


@dataclass
class LifecycleResult:
    outcome: str                    # created | updated | none
    alert: Optional[Alert] = None


def find_alert_in_window(db: Session, location_id: str, now: datetime) -> Optional[Alert]:
    window_start = now - timedelta(minutes=settings.ALERT_WINDOW_MINUTES)
    conditions = [Alert.location_id == location_id, Alert.timestamp >= window_start]
    if not settings.ALERT_REUSE_CLOSED_IN_WINDOW:
        conditions.append(Alert.status.in_(OPEN_STATUSES))
    return db.query(Alert).filter(*conditions).order_by(Alert.timestamp.desc()).first()


async def process(db: Session, location_id: str, classification: Optional[Classification],
                  sensor_values: Optional[dict] = None,
                  feed: AlertChangeFeed = alert_feed,
                  now: Optional[datetime] = None) -> LifecycleResult:
    """Create or update the location's alert for this classification.

    Store errors are rolled back, logged and re-raised.
    """
    if classification is None:
        return LifecycleResult(NONE)

    now = now or datetime.utcnow()
    existing = find_alert_in_window(db, location_id, now)

    try:
        if existing:
            existing.alert_type = classification.alert_type
            existing.severity = classification.severity
            existing.sensor_values = sensor_values
            existing.timestamp = now
            existing.updated_at = now
            db.commit()
            db.refresh(existing)
            alert, outcome, event_type = existing, UPDATED, EVENT_UPDATE
        else:
            alert = Alert(location_id=location_id, alert_type=classification.alert_type,
                          severity=classification.severity, status="active",
                          sensor_values=sensor_values, timestamp=now,
                          created_at=now, updated_at=now)
            db.add(alert)
            db.commit()
            db.refresh(alert)
            outcome, event_type = CREATED, EVENT_INSERT
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Alert write failed for location {location_id}: {e}", exc_info=True)
        raise

    if outcome == CREATED:
        logger.warning(f"[ALERT][{classification.alert_type.upper()}] created #{alert.id} "
                       f"at location {location_id} ({classification.severity})")
    else:
        logger.info(f"[ALERT][{classification.alert_type.upper()}] updated #{alert.id} "
                    f"at location {location_id}")

    feed.publish(event_type, alert)
    return LifecycleResult(outcome, alert)
