# This project was developed with assistance from AI tools.
"""In-process change notification for live views.

Services publish after they commit; subscribers (the verification queue
and activity websockets) receive a ``ChangeEvent`` and re-read what they
display. One notifier is created per app in the lifespan and handed to
callers explicitly. Subscriptions must be closed; ``async with`` does it.

Delivery is best-effort and scoped to this process. A subscriber that
falls behind loses the oldest events, which is harmless because every
event only means "refresh".
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

LEAD_DOCUMENTS = "lead_documents"
LEAD_STATUS_HISTORY = "lead_status_history"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    action: str
    record_id: int | None = None
    at: datetime = field(default_factory=lambda: datetime.now(UTC))


class Subscription:
    """A closable stream of change events for a set of tables."""

    def __init__(self, notifier: "ChangeNotifier", tables: frozenset[str], maxsize: int):
        self._notifier = notifier
        self.tables = tables
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def _offer(self, event: ChangeEvent) -> None:
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(event)

    async def get(self) -> ChangeEvent:
        """Wait for the next event."""
        return await self._queue.get()

    def drain(self) -> list[ChangeEvent]:
        """Take every event already queued without waiting."""
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._notifier._remove(self)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class ChangeNotifier:
    """Fan-out of table change events to open subscriptions."""

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscriptions: set[Subscription] = set()

    def subscribe(self, tables: Iterable[str]) -> Subscription:
        sub = Subscription(self, frozenset(tables), self._queue_size)
        self._subscriptions.add(sub)
        logger.debug("Subscribed to %s (%d open)", sorted(sub.tables), len(self._subscriptions))
        return sub

    def _remove(self, sub: Subscription) -> None:
        self._subscriptions.discard(sub)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, table: str, action: str, record_id: int | None = None) -> ChangeEvent:
        """Deliver an event to every subscription watching ``table``."""
        event = ChangeEvent(table=table, action=action, record_id=record_id)
        for sub in list(self._subscriptions):
            if table in sub.tables:
                sub._offer(event)
        return event
