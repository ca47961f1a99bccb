# app/routers/locations.py
"""Monitored locations — registry + live sensor status."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.alert import Alert, OPEN_STATUSES
from app.models.location import Location
from app.schemas.location import LocationCreate, LocationOut, LocationStatusOut
from app.services.telemetry_client import fetch_latest
from app.services.threshold_evaluator import SensorReading, evaluate

router = APIRouter()


def _get_location(db: Session, location_id: str) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise HTTPException(status_code=404, detail=f"Location '{location_id}' not found")
    return location


@router.get("/locations", response_model=list[LocationOut])
def list_locations(region: str = None, db: Session = Depends(get_db)):
    q = db.query(Location)
    if region:
        q = q.filter(Location.region == region)
    return q.order_by(Location.name).all()


@router.post("/locations", response_model=LocationOut, status_code=201)
def create_location(body: LocationCreate, db: Session = Depends(get_db)):
    location = Location(**body.model_dump())
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


@router.get("/locations/{location_id}", response_model=LocationOut)
def get_location(location_id: str, db: Session = Depends(get_db)):
    return _get_location(db, location_id)


@router.get("/locations/{location_id}/status", response_model=LocationStatusOut,
            summary="Latest reading + classification (read-only, no alert is written)")
async def get_location_status(location_id: str, db: Session = Depends(get_db)):
    location = _get_location(db, location_id)
    open_alert = (db.query(Alert)
                  .filter(Alert.location_id == location_id, Alert.status.in_(OPEN_STATUSES))
                  .order_by(Alert.timestamp.desc())
                  .first())
    result = LocationStatusOut(location_id=location.id, name=location.name, status="no_data",
                               open_alert_id=open_alert.id if open_alert else None)
    if not location.has_telemetry:
        return result

    data = await fetch_latest(location.thingspeak_channel_id, location.thingspeak_read_key)
    if not data:
        return result

    reading = SensorReading.from_telemetry(location.id, data)
    classification = evaluate(reading)
    result.sensors = data
    result.motion_detected = reading.motion_detected
    if classification:
        result.status = "alert"
        result.alert_type = classification.alert_type
        result.severity = classification.severity
    else:
        result.status = "normal"
    return result
