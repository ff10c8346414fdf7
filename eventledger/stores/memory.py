"""In-memory event store."""
from typing import List
import uuid
import structlog
from .base import EventStore, PoolStats
from ..errors import NotFoundError
from ..event_models import Event, EventIn

log = structlog.get_logger()


class InMemoryEventStore(EventStore):
    """Process-local event store. Contents are lost on restart."""

    backend = "memory"

    def __init__(self):
        self._buffer: list[Event] = []
        self._index: dict[str, Event] = {}

    def _append(self, evt: EventIn) -> str:
        stored = Event(
            id=str(uuid.uuid4()),
            type=evt.type,
            data=evt.data,
            timestamp=evt.timestamp,
        )
        self._buffer.append(stored)
        self._index[stored.id] = stored
        return stored.id

    async def create_event(self, evt: EventIn) -> str:
        new_id = self._append(evt)
        log.info("event.stored", id=new_id, type=evt.type, backend=self.backend)
        return new_id

    async def create_events(self, events: List[EventIn]) -> List[str]:
        ids = [self._append(e) for e in events]
        log.info("events.stored", count=len(ids), backend=self.backend)
        return ids

    async def get_event(self, event_id: str) -> Event:
        try:
            return self._index[event_id]
        except KeyError:
            raise NotFoundError() from None

    async def get_events(self) -> List[Event]:
        return list(self._buffer)

    async def get_latest_events(self, max_events: int) -> List[Event]:
        return list(reversed(self._buffer))[:max_events]

    async def ping(self) -> None:
        """In-memory store is always reachable."""

    def pool_stats(self) -> PoolStats:
        return PoolStats()

    async def close(self) -> None:
        return None
