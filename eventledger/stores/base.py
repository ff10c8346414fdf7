"""Base interface for event store backends."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List
import structlog
from ..event_models import Event, EventIn

log = structlog.get_logger()

# Advisory thresholds used by the health report
HEAVY_LOAD_OPEN_CONNECTIONS = 40
BOTTLENECK_WAIT_COUNT = 1000


@dataclass
class PoolStats:
    """Connection checkout counters reported by /health/db."""

    open_connections: int = 0
    in_use: int = 0
    idle: int = 0
    wait_count: int = 0
    wait_duration: float = 0.0
    max_idle_closed: int = 0
    max_lifetime_closed: int = 0


def assess_pool(stats: PoolStats) -> str:
    """Turn pool counters into a human readable health message."""
    message = "It's healthy"

    if stats.open_connections > HEAVY_LOAD_OPEN_CONNECTIONS:
        message = "The database is experiencing heavy load."

    if stats.wait_count > BOTTLENECK_WAIT_COUNT:
        message = "The database has a high number of wait events, indicating potential bottlenecks."

    if stats.max_idle_closed > stats.open_connections / 2:
        message = "Many idle connections are being closed, consider revising the connection pool settings."

    if stats.max_lifetime_closed > stats.open_connections / 2:
        message = (
            "Many connections are being closed due to max lifetime, consider increasing "
            "max lifetime or revising the connection usage pattern."
        )

    return message


class EventStore(ABC):
    """Abstract interface for event persistence backends."""

    backend: str = "base"

    async def connect(self) -> None:
        """Open backend resources ahead of first use."""

    @abstractmethod
    async def create_event(self, evt: EventIn) -> str:
        """
        Insert one event.

        Args:
            evt: Validated inbound event with its timestamp resolved

        Returns:
            The newly assigned event id

        Raises:
            PersistenceError: If the write fails
            StoreTimeoutError: If the write exceeds the deadline
        """

    @abstractmethod
    async def create_events(self, events: List[EventIn]) -> List[str]:
        """
        Insert several events atomically, in input order.

        Either every event is stored or none is.

        Returns:
            The assigned ids, in input order
        """

    @abstractmethod
    async def get_event(self, event_id: str) -> Event:
        """
        Fetch one event.

        Raises:
            NotFoundError: If no event has this id
        """

    @abstractmethod
    async def get_events(self) -> List[Event]:
        """Fetch every stored event, oldest first."""

    @abstractmethod
    async def get_latest_events(self, max_events: int) -> List[Event]:
        """Fetch at most max_events events, most recent first."""

    @abstractmethod
    async def ping(self) -> None:
        """Raise if the backend cannot be reached."""

    @abstractmethod
    def pool_stats(self) -> PoolStats:
        """Current connection checkout counters."""

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""

    async def health(self) -> Dict[str, Any]:
        """
        Report backend connectivity and connection usage.

        Failures are reported in the returned map, never raised.
        """
        try:
            await self.ping()
        except Exception as e:
            log.error("store.health_check_failed", backend=self.backend, error=str(e))
            return {
                "status": "down",
                "error": f"db down: {type(e).__name__}",
            }

        stats = self.pool_stats()
        return {
            "status": "up",
            "message": assess_pool(stats),
            "open_connections": stats.open_connections,
            "in_use": stats.in_use,
            "idle": stats.idle,
            "wait_count": stats.wait_count,
            "wait_duration": round(stats.wait_duration, 6),
            "max_idle_closed": stats.max_idle_closed,
            "max_lifetime_closed": stats.max_lifetime_closed,
        }
