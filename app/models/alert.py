# app/models/alert.py
"""
Alerts table — one row per detected hazard window at a location.
Written by alert_lifecycle (create/update on threshold breach) and
alert_service (human status changes). Read by the notification feed.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey
from app.database import Base

ALERT_TYPES = ("fire", "gas_leak", "temperature", "motion")
SEVERITIES = ("low", "medium", "high", "critical")

OPEN_STATUSES = ("active", "in_queue")
CLOSED_STATUSES = ("resolved", "false_alarm")
ALERT_STATUSES = OPEN_STATUSES + CLOSED_STATUSES


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    location_id = Column(String(36), ForeignKey("locations.id"), nullable=False, index=True)
    alert_type = Column(String(50), nullable=False, index=True)
    severity = Column(String(20), nullable=False, default="critical")
    status = Column(String(20), nullable=False, default="active", index=True)
    sensor_values = Column(JSON)
    timestamp = Column(DateTime, nullable=False, index=True)   # last (re)detection
    resolved_at = Column(DateTime)
    resolved_by = Column(String(64))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f"<Alert {self.id} type={self.alert_type} loc={self.location_id} status={self.status}>"
