# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + telemetry upstream reachability.
"""

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.database import get_db
from app.config import settings
from app.services.change_feed import alert_feed
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
async def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - ThingSpeak reachability
    - Number of connected notification listeners
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "telemetry": "unknown",
        "listeners": alert_feed.subscriber_count,
    }

    # Check database
    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    # Ping ThingSpeak
    try:
        async with httpx.AsyncClient(timeout=3) as client:
            resp = await client.get(settings.THINGSPEAK_BASE_URL)
        result["telemetry"] = "ok" if resp.status_code < 500 else f"http_{resp.status_code}"
    except httpx.ConnectError:
        result["telemetry"] = "unreachable"
        result["status"] = "degraded"
    except httpx.HTTPError as e:
        result["telemetry"] = f"error: {str(e)}"

    return result
