# app/schemas/alert.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, Any, Literal

AlertStatus = Literal["active", "in_queue", "resolved", "false_alarm"]


class AlertOut(BaseModel):
    id: int
    location_id: str
    alert_type: str
    severity: str
    status: str
    sensor_values: Optional[dict[str, Any]] = None
    timestamp: datetime
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AlertStatusUpdate(BaseModel):
    status: AlertStatus


class AlertManagerRequest(BaseModel):
    """Body of POST /alert-manager. Field names follow the dashboard's camelCase."""
    model_config = ConfigDict(populate_by_name=True)

    action: str
    location_id: Optional[str] = Field(None, alias="locationId")
    alert_id: Optional[int] = Field(None, alias="alertId")
    status: Optional[str] = None  # checked in update_alert_status


class SolvedSummaryOut(BaseModel):
    total_solved: int
    fire_incidents: int
    critical_cases: int
    quick_responses: int
    quick_response_minutes: int
