# app/schemas/telemetry.py
from pydantic import AliasChoices, BaseModel, Field
from typing import Optional, Any


class TelemetryLocation(BaseModel):
    """Accepts both the short keys and the thingspeak_* column names."""
    name: Optional[str] = None
    channel_id: str = Field(validation_alias=AliasChoices("channel_id", "thingspeak_channel_id"))
    read_key: str = Field(validation_alias=AliasChoices("read_key", "thingspeak_read_key"))


class TelemetryRequest(BaseModel):
    action: str = "latest"
    location: TelemetryLocation


class TelemetryResponse(BaseModel):
    success: bool
    data: Optional[dict[str, Any]] = None
    message: Optional[str] = None
