# app/services/telemetry_client.py
"""
ThingSpeak telemetry client — fetches the latest feed entry of a channel.

Endpoint: GET {THINGSPEAK_BASE_URL}/channels/{channel_id}/feeds/last.json?api_key={read_key}
Field map: field1=temperature, field2=humidity, field3=flame, field4=gas, field5=pir

Upstream failures are soft: every error path logs and returns None, and the
caller treats None as "nothing to evaluate".
"""

from typing import Optional
import httpx
from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

FIELD_MAP = {
    "field1": "temperature",
    "field2": "humidity",
    "field3": "flame",
    "field4": "gas",
    "field5": "pir",
}
NUMERIC_FIELDS = {"temperature", "humidity", "gas"}


def normalise_feed(entry: dict) -> Optional[dict]:
    """Convert a raw ThingSpeak feed entry to {temperature, humidity, flame, gas, pir, timestamp}."""
    # An empty or private channel answers with the bare JSON value -1
    if not isinstance(entry, dict) or not entry:
        return None
    data = {}
    for field, name in FIELD_MAP.items():
        raw = entry.get(field)
        if isinstance(raw, str):
            raw = raw.strip()
        if name in NUMERIC_FIELDS:
            try:
                data[name] = float(raw) if raw not in (None, "") else None
            except (TypeError, ValueError):
                logger.debug(f"Non-numeric {name} value from ThingSpeak: {raw!r}")
                data[name] = None
        else:
            data[name] = raw
    data["timestamp"] = entry.get("created_at")
    if all(data[name] is None for name in FIELD_MAP.values()):
        return None
    return data


async def fetch_latest(channel_id: str, read_key: str,
                       client: Optional[httpx.AsyncClient] = None) -> Optional[dict]:
    """Return the normalised latest reading for a channel, or None if unavailable."""
    url = f"{settings.THINGSPEAK_BASE_URL}/channels/{channel_id}/feeds/last.json"
    params = {"api_key": read_key}
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.TELEMETRY_TIMEOUT_SECONDS) as own:
                response = await own.get(url, params=params)
        else:
            response = await client.get(url, params=params)
    except httpx.HTTPError as e:
        logger.warning(f"⚠️  ThingSpeak channel {channel_id} unreachable: {e}")
        return None

    if response.status_code != 200:
        logger.warning(f"⚠️  ThingSpeak channel {channel_id} returned HTTP {response.status_code}")
        return None

    try:
        entry = response.json()
    except ValueError:
        logger.warning(f"⚠️  ThingSpeak channel {channel_id} returned a non-JSON body")
        return None

    data = normalise_feed(entry)
    if data is None:
        logger.info(f"ThingSpeak channel {channel_id} has no readings yet")
    return data
