# app/routers/notifications.py
"""
WS /ws/alerts — live alert notifications for one dashboard.

Each connection owns its own NotificationDeduplicator, so a reconnect starts
from an empty state and re-reads the open-alert snapshot.

Server → client:
  {"action": "show" | "update", "notification": {...}}
  {"action": "dismiss", "key": "<alert id>"}
  {"action": "sound", "src": "<url>"}
Client → server:
  {"action": "dismissed", "key": "<alert id>"}   user closed the toast
"""

import json
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from app.database import SessionLocal
from app.schemas.alert import AlertOut
from app.services.alert_service import load_open_alerts, lookup_location_name
from app.services.change_feed import alert_feed
from app.services.notification_deduplicator import Notification, NotificationDeduplicator
from app.config import settings
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


class WebSocketPresenter:
    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def show(self, notification: Notification):
        await self.websocket.send_json({"action": "show", "notification": notification.to_dict()})

    async def update(self, notification: Notification):
        await self.websocket.send_json({"action": "update", "notification": notification.to_dict()})

    async def dismiss(self, key: str):
        await self.websocket.send_json({"action": "dismiss", "key": key})

    async def play_sound(self):
        await self.websocket.send_json({"action": "sound", "src": settings.ALERT_SOUND_URL})


async def _load_open_alerts() -> list[AlertOut]:
    db = SessionLocal()
    try:
        return [AlertOut.model_validate(a) for a in load_open_alerts(db)]
    finally:
        db.close()


async def _location_name(location_id: str):
    db = SessionLocal()
    try:
        return lookup_location_name(db, location_id)
    finally:
        db.close()


@router.websocket("/ws/alerts")
async def alert_notifications(websocket: WebSocket):
    await websocket.accept()
    dedup = NotificationDeduplicator(WebSocketPresenter(websocket), _location_name)
    subscription = await dedup.attach(alert_feed, _load_open_alerts)
    logger.info(f"🔔 Dashboard connected ({alert_feed.subscriber_count} listening)")
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except ValueError:
                continue
            if isinstance(payload, dict) and payload.get("action") == "dismissed" and payload.get("key"):
                dedup.forget(str(payload["key"]))
    except WebSocketDisconnect:
        logger.info("🔕 Dashboard disconnected")
    finally:
        subscription.cancel()
        dedup.reset()
