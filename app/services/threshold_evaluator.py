# app/services/threshold_evaluator.py
"""
Threshold evaluation for a single sensor reading.
Fixed priority, first match wins: flame → gas → temperature.
Motion is reported for display only and never opens an alert.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Any
from app.config import settings

FLAME_DETECTED = "FLAME"


@dataclass(frozen=True)
class Classification:
    alert_type: str     # fire | gas_leak | temperature
    severity: str       # critical for every current rule


@dataclass
class SensorReading:
    location_id: Optional[str]
    temperature: Optional[float]
    humidity: Optional[float]
    flame: Any                  # "FLAME" / True when detected
    gas: Optional[float]
    pir: Any                    # raw PIR value, see motion_detected
    captured_at: Optional[datetime] = None

    @property
    def flame_detected(self) -> bool:
        if isinstance(self.flame, bool):
            return self.flame
        return str(self.flame).strip().upper() == FLAME_DETECTED

    @property
    def motion_detected(self) -> Optional[bool]:
        if self.pir is None or self.pir == "":
            return None
        if isinstance(self.pir, bool):
            return self.pir
        active = "0" if settings.PIR_ACTIVE_LOW else "1"
        return str(self.pir).strip().split(".")[0] == active

    @classmethod
    def from_telemetry(cls, location_id: Optional[str], data: dict) -> "SensorReading":
        """Build a reading from a normalised telemetry payload (see telemetry_client)."""
        return cls(
            location_id=location_id,
            temperature=_to_float(data.get("temperature")),
            humidity=_to_float(data.get("humidity")),
            flame=data.get("flame"),
            gas=_to_float(data.get("gas")),
            pir=data.get("pir"),
            captured_at=_to_datetime(data.get("timestamp")),
        )


def _to_float(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_datetime(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def evaluate(reading: SensorReading,
             gas_threshold: Optional[float] = None,
             temperature_threshold: Optional[float] = None) -> Optional[Classification]:
    """Map a reading to a classification, or None when every sensor is nominal.

    Thresholds are strict: a value equal to the threshold does not trigger.
    """
    if gas_threshold is None:
        gas_threshold = settings.GAS_CRITICAL_THRESHOLD
    if temperature_threshold is None:
        temperature_threshold = settings.TEMPERATURE_CRITICAL_THRESHOLD

    if reading.flame_detected:
        return Classification("fire", "critical")
    if reading.gas is not None and reading.gas > gas_threshold:
        return Classification("gas_leak", "critical")
    if reading.temperature is not None and reading.temperature > temperature_threshold:
        return Classification("temperature", "critical")
    return None
