# app/schemas/location.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Any


class LocationCreate(BaseModel):
    name: str
    region: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    thingspeak_channel_id: Optional[str] = None
    thingspeak_read_key: Optional[str] = None


class LocationOut(BaseModel):
    id: str
    name: str
    region: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    thingspeak_channel_id: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class LocationStatusOut(BaseModel):
    location_id: str
    name: str
    status: str                      # normal | alert | no_data
    sensors: Optional[dict[str, Any]] = None
    alert_type: Optional[str] = None
    severity: Optional[str] = None
    motion_detected: Optional[bool] = None
    open_alert_id: Optional[int] = None
