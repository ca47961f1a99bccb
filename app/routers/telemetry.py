# app/routers/telemetry.py
"""Pass-through to ThingSpeak: latest reading for a channel."""

from fastapi import APIRouter
from app.schemas.telemetry import TelemetryRequest, TelemetryResponse
from app.services.telemetry_client import fetch_latest

router = APIRouter()


@router.post("/telemetry", response_model=TelemetryResponse, summary="Latest sensor reading")
async def latest_reading(body: TelemetryRequest):
    """Always HTTP 200. An unavailable channel is reported as success=false."""
    if body.action != "latest":
        return TelemetryResponse(success=False, message=f"Unsupported action '{body.action}'")
    data = await fetch_latest(body.location.channel_id, body.location.read_key)
    if not data:
        return TelemetryResponse(success=False, message="No sensor data available")
    return TelemetryResponse(success=True, data=data)
