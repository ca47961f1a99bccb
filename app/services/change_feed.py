# app/services/change_feed.py
"""
In-process change feed for the alerts table.

Every committed alert write is published as a ChangeEvent. Each subscriber
gets its own queue and pump task, so handlers run one at a time in arrival
order. Delivery is at-least-once from the handler's point of view: the same
record may arrive again (snapshot + live, reconnects), so handlers must treat
every event as an idempotent upsert.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable
from app.schemas.alert import AlertOut
from app.utils.logger import get_logger

logger = get_logger(__name__)

EVENT_INSERT = "insert"
EVENT_UPDATE = "update"


@dataclass(frozen=True)
class ChangeEvent:
    event_type: str      # insert | update
    record: AlertOut


Handler = Callable[[ChangeEvent], Awaitable[None]]


class Subscription:
    """Cancellable handle returned by AlertChangeFeed.subscribe()."""

    def __init__(self, feed: "AlertChangeFeed", handler: Handler, name: str):
        self._feed = feed
        self._handler = handler
        self.name = name
        self.queue: asyncio.Queue = asyncio.Queue()
        self._task = asyncio.create_task(self._pump(), name=f"feed-{name}")

    @property
    def active(self) -> bool:
        return not self._task.done()

    async def _pump(self):
        while True:
            event = await self.queue.get()
            try:
                await self._handler(event)
            except Exception as e:
                logger.error(f"Feed handler {self.name} failed on alert {event.record.id}: {e}",
                             exc_info=True)
            finally:
                self.queue.task_done()

    def cancel(self):
        """Stop delivery. Events already queued are dropped. Safe to call twice."""
        self._feed._remove(self)
        self._task.cancel()
        # Unblock anyone waiting in drain()
        while not self.queue.empty():
            self.queue.get_nowait()
            self.queue.task_done()


class AlertChangeFeed:
    def __init__(self):
        self._subscriptions: list[Subscription] = []
        self._counter = 0

    def subscribe(self, handler: Handler) -> Subscription:
        """Register a handler. Must be called from inside the running event loop."""
        self._counter += 1
        sub = Subscription(self, handler, name=str(self._counter))
        self._subscriptions.append(sub)
        logger.debug(f"Feed subscriber {sub.name} attached ({len(self._subscriptions)} total)")
        return sub

    def _remove(self, sub: Subscription):
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
            logger.debug(f"Feed subscriber {sub.name} detached")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, event_type: str, alert) -> ChangeEvent:
        """Publish an alert row (ORM object or AlertOut) to every subscriber."""
        record = alert if isinstance(alert, AlertOut) else AlertOut.model_validate(alert)
        event = ChangeEvent(event_type=event_type, record=record)
        for sub in list(self._subscriptions):
            sub.queue.put_nowait(event)
        return event

    async def drain(self):
        """Wait until every subscriber has handled everything queued so far."""
        for sub in list(self._subscriptions):
            await sub.queue.join()


# Process-wide feed for the alerts table
alert_feed = AlertChangeFeed()
