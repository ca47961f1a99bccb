# app/services/notification_deduplicator.py
"""
Live alert notifications, at most one per open alert.

Policy: the key is the alert id. A new open alert is shown once (with one
sound cue); a later delivery for the same key refreshes the text through
presenter.update() only if type or severity changed; a closed status always
dismisses. Records older than the last one seen for a key (by updated_at)
are ignored, so the startup snapshot and the live feed can interleave in any
order and still converge to the same visible set.

State lives in a NotificationState owned by exactly one deduplicator; a new
dashboard connection gets a fresh one.
"""

from collections import OrderedDict
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional, Protocol
from app.models.alert import OPEN_STATUSES
from app.schemas.alert import AlertOut
from app.services.change_feed import AlertChangeFeed, ChangeEvent, Subscription
from app.utils.logger import get_logger

logger = get_logger(__name__)

# "unsolved" is written by older dashboard builds
DISMISS_STATUSES = {"resolved", "false_alarm", "unsolved"}
UNKNOWN_LOCATION = "Unknown Location"

TITLES = {
    "fire": "🔥 FIRE DETECTED",
    "gas_leak": "💨 GAS LEAK DETECTED",
    "temperature": "🌡️ HIGH TEMPERATURE",
}
DEFAULT_TITLE = "⚠️ ALERT"


@dataclass
class Notification:
    key: str
    alert_id: int
    location_id: str
    location_name: str
    alert_type: str
    severity: str

    @property
    def title(self) -> str:
        return TITLES.get(self.alert_type, DEFAULT_TITLE)

    @property
    def description(self) -> str:
        return f"Location: {self.location_name} | Severity: {(self.severity or '').upper()}"

    @property
    def link(self) -> str:
        return f"/alert/{self.alert_id}"

    def to_dict(self) -> dict:
        data = asdict(self)
        data.update(title=self.title, description=self.description, link=self.link)
        return data


class AlertPresenter(Protocol):
    async def show(self, notification: Notification) -> None: ...
    async def update(self, notification: Notification) -> None: ...
    async def dismiss(self, key: str) -> None: ...
    async def play_sound(self) -> None: ...


LocationNameLookup = Callable[[str], Awaitable[Optional[str]]]


class NotificationState:
    """Keys with a visible (or about to be visible) notification."""

    # Upper bound on remembered record versions; oldest entries are evicted first
    MAX_VERSIONS = 4096

    def __init__(self):
        self._shown: dict[str, Optional[Notification]] = {}
        self._reservations: dict[str, int] = {}
        self._generation = 0
        self._versions: OrderedDict[str, datetime] = OrderedDict()

    def __contains__(self, key: str) -> bool:
        return key in self._shown

    def __len__(self) -> int:
        return len(self._shown)

    def get(self, key: str) -> Optional[Notification]:
        return self._shown.get(key)

    def reserve(self, key: str) -> int:
        """Mark key as about to be shown. Returns the token that owns the reservation."""
        self._generation += 1
        self._shown[key] = None
        self._reservations[key] = self._generation
        return self._generation

    def holds(self, key: str, token: int) -> bool:
        """True if token still owns an unfulfilled reservation for key."""
        return self._shown.get(key, False) is None and self._reservations.get(key) == token

    def put(self, notification: Notification):
        self._shown[notification.key] = notification
        self._reservations.pop(notification.key, None)

    def discard(self, key: str):
        self._shown.pop(key, None)
        self._reservations.pop(key, None)

    def keys(self) -> set[str]:
        return set(self._shown)

    def is_stale(self, key: str, version: Optional[datetime]) -> bool:
        """True if a newer record for key has already been applied. Records the version otherwise."""
        if version is None:
            return False
        seen = self._versions.get(key)
        if seen is not None and version < seen:
            return True
        self._versions[key] = version
        self._versions.move_to_end(key)
        while len(self._versions) > self.MAX_VERSIONS:
            self._versions.popitem(last=False)
        return False

    def forget_version(self, key: str):
        self._versions.pop(key, None)

    def prune_versions(self):
        """Drop versions of keys that are no longer visible."""
        for key in [k for k in self._versions if k not in self._shown]:
            del self._versions[key]

    def version_count(self) -> int:
        return len(self._versions)

    def reset(self):
        self._shown.clear()
        self._reservations.clear()
        self._versions.clear()


class NotificationDeduplicator:
    def __init__(self, presenter: AlertPresenter, lookup_location_name: LocationNameLookup,
                 state: Optional[NotificationState] = None):
        self.presenter = presenter
        self.lookup_location_name = lookup_location_name
        self.state = state if state is not None else NotificationState()
        # Latest record for keys whose first show is still waiting on the name lookup
        self._pending: dict[str, AlertOut] = {}
        self._snapshot_applied = False

    async def attach(self, feed: AlertChangeFeed,
                     load_snapshot: Callable[[], Awaitable[Iterable[AlertOut]]]) -> Subscription:
        """Subscribe to the live feed, then apply the open-alert snapshot.

        Subscribing first means nothing committed after the snapshot query is missed.
        """
        subscription = feed.subscribe(self.handle_event)
        try:
            records = await load_snapshot()
        except Exception as e:
            logger.error(f"Open-alert snapshot failed, continuing with live feed only: {e}",
                         exc_info=True)
            records = []
        await self.apply_snapshot(records)
        return subscription

    async def apply_snapshot(self, records: Iterable[AlertOut]):
        """Show the most recent open alert per location. Records must be newest first."""
        seen_locations = set()
        for record in records:
            if record.status not in OPEN_STATUSES or record.location_id in seen_locations:
                continue
            seen_locations.add(record.location_id)
            await self.handle_record(record)
        self._snapshot_applied = True
        self.state.prune_versions()

    async def handle_event(self, event: ChangeEvent):
        await self.handle_record(event.record)

    async def handle_record(self, record: AlertOut):
        key = str(record.id)
        if self.state.is_stale(key, record.updated_at):
            logger.debug(f"Ignoring stale delivery for alert {key}")
            return

        if record.status in DISMISS_STATUSES:
            self.state.discard(key)
            self._pending.pop(key, None)
            if self._snapshot_applied:
                # The live feed is ordered, nothing older can arrive for this key now
                self.state.forget_version(key)
            await self.presenter.dismiss(key)
            return

        if record.status not in OPEN_STATUSES:
            return

        if key in self.state:
            if key in self._pending:
                self._pending[key] = record
                return
            await self._refresh(self.state.get(key), record)
            return

        token = self.state.reserve(key)
        self._pending[key] = record
        name = await self._location_name(record.location_id)
        if not self.state.holds(key, token):
            # Dismissed, or dismissed and reopened, while the name lookup was in flight
            return
        record = self._pending.pop(key, record)

        notification = self._build(key, record, name)
        self.state.put(notification)
        await self.presenter.show(notification)
        await self._play_cue()

    def forget(self, key: str):
        """The user closed the notification on their side; allow it to be shown again."""
        self.state.discard(key)
        self._pending.pop(key, None)

    def reset(self):
        self.state.reset()
        self._pending.clear()
        self._snapshot_applied = False

    async def _refresh(self, current: Notification, record: AlertOut):
        if current.alert_type == record.alert_type and current.severity == record.severity:
            return
        notification = self._build(current.key, record, current.location_name)
        self.state.put(notification)
        await self.presenter.update(notification)

    def _build(self, key: str, record: AlertOut, name: str) -> Notification:
        return Notification(key=key, alert_id=record.id, location_id=record.location_id,
                            location_name=name, alert_type=record.alert_type,
                            severity=record.severity)

    async def _location_name(self, location_id: str) -> str:
        try:
            name = await self.lookup_location_name(location_id)
        except Exception as e:
            logger.warning(f"Location name lookup failed for {location_id}: {e}")
            return UNKNOWN_LOCATION
        return name or UNKNOWN_LOCATION

    async def _play_cue(self):
        try:
            await self.presenter.play_sound()
        except Exception as e:
            logger.debug(f"Alert sound failed: {e}")
