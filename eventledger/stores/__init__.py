"""
Event store backends.

The backend is selected by the STORE_BACKEND setting.
"""
import structlog

from .base import EventStore, PoolStats, assess_pool
from .memory import InMemoryEventStore
from .sqlite import SQLiteEventStore

log = structlog.get_logger()


def create_store(settings, metrics=None) -> EventStore:
    """
    Create the store configured by settings.

    Returns:
        EventStore instance based on the STORE_BACKEND setting
    """
    if settings.STORE_BACKEND == "memory":
        log.info("store.selected", type="memory")
        return InMemoryEventStore()

    log.info("store.selected", type="sqlite", path=settings.DATABASE_URL)
    return SQLiteEventStore(
        settings.DATABASE_URL,
        timeout_seconds=settings.DB_TIMEOUT_SECONDS,
        metrics=metrics,
    )


__all__ = [
    "EventStore",
    "PoolStats",
    "assess_pool",
    "InMemoryEventStore",
    "SQLiteEventStore",
    "create_store",
]
