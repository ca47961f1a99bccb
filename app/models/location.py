# app/models/location.py
"""
Monitored locations. Each one may carry a ThingSpeak channel + read key;
the sensor poller only evaluates locations that have both.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float
from app.database import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    region = Column(String(100))
    latitude = Column(Float)
    longitude = Column(Float)
    thingspeak_channel_id = Column(String(50))
    thingspeak_read_key = Column(String(100))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def has_telemetry(self) -> bool:
        return bool(self.thingspeak_channel_id and self.thingspeak_read_key)

    def __repr__(self):
        return f"<Location {self.id} name={self.name}>"
