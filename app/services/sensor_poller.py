# app/services/sensor_poller.py
"""
Sensor polling service — periodically evaluates every location that has
ThingSpeak credentials.

Each tick opens a fresh DB session, walks the locations, and runs the same
evaluate flow as POST /alert-manager. A failing location is logged and
skipped; there are no retries beyond the next tick.
"""

import asyncio
from app.database import SessionLocal
from app.models.location import Location
from app.services.alert_service import evaluate_location
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def poll_once(session_factory=SessionLocal) -> int:
    """Evaluate all telemetry-enabled locations once. Returns how many were evaluated."""
    db = session_factory()
    evaluated = 0
    try:
        locations = [loc for loc in db.query(Location).all() if loc.has_telemetry]
        for location in locations:
            try:
                result = await evaluate_location(db, location.id)
                evaluated += 1
                if result.get("created") or result.get("updated"):
                    logger.info(f"📥 {location.name}: alert {'created' if result.get('created') else 'updated'}")
            except Exception as e:
                logger.error(f"❌ Evaluation failed for {location.name}: {e}", exc_info=True)
    finally:
        db.close()
    return evaluated


async def start_sensor_polling(interval_seconds: int, session_factory=SessionLocal):
    """Loop forever, one poll every interval_seconds. Called once at backend startup."""
    if interval_seconds <= 0:
        logger.warning("Sensor polling interval is 0, polling disabled.")
        return

    logger.info(f"🚀 Sensor polling every {interval_seconds}s")
    while True:
        try:
            count = await poll_once(session_factory)
            logger.debug(f"Poll tick done — {count} locations evaluated")
        except Exception as e:
            logger.error(f"❌ Poll tick failed: {e}", exc_info=True)
        await asyncio.sleep(interval_seconds)
