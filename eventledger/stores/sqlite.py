"""SQLite event store backed by a single shared aiosqlite connection."""
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, List, TypeVar
import asyncio
import time
import uuid
import aiosqlite
import structlog
from .base import EventStore, PoolStats
from ..errors import NotFoundError, PersistenceError, StoreTimeoutError
from ..event_models import Event, EventIn

log = structlog.get_logger()

T = TypeVar("T")

SCHEMA = """
CREATE TABLE IF NOT EXISTS events (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    data TEXT NOT NULL,
    timestamp TEXT NOT NULL
)
"""

INSERT_EVENT = "INSERT INTO events (id, type, data, timestamp) VALUES (?, ?, ?, ?)"
SELECT_COLUMNS = "SELECT id, type, data, timestamp FROM events"


class SQLiteEventStore(EventStore):
    """
    Relational event store on SQLite.

    One connection is opened lazily and shared by every request. Operations
    check it out one at a time and each runs under a fixed deadline; a write
    that fails or times out is rolled back before the error is raised.
    A deadline that expires while COMMIT is already running on the aiosqlite
    worker thread cannot stop it: the rows land even though the caller sees
    StoreTimeoutError, and a retry would store them twice.
    Recency follows insertion order (the implicit rowid).
    """

    backend = "sqlite"

    def __init__(self, db_path: str, timeout_seconds: float = 1.0, metrics=None):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file (":memory:" works too)
            timeout_seconds: Deadline applied to every store operation
            metrics: Optional Metrics instance for store telemetry
        """
        self.db_path = db_path
        self.timeout_seconds = timeout_seconds
        self._metrics = metrics
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._in_use = 0
        self._wait_count = 0
        self._wait_duration = 0.0

    async def connect(self) -> None:
        await self._run("connect", self._noop)

    async def _open(self) -> aiosqlite.Connection:
        """Get or create the shared connection."""
        if self._conn is None:
            conn = await aiosqlite.connect(self.db_path)
            try:
                conn.row_factory = aiosqlite.Row
                await conn.execute(SCHEMA)
                await conn.commit()
            except BaseException:
                await conn.close()
                raise
            self._conn = conn
            log.info("store.connected", backend=self.backend, path=self.db_path)
        return self._conn

    @asynccontextmanager
    async def _checkout(self):
        """Hold the shared connection for the duration of one operation."""
        waited = self._lock.locked()
        start = time.perf_counter()
        async with self._lock:
            if waited:
                self._wait_count += 1
                self._wait_duration += time.perf_counter() - start
            self._in_use += 1
            try:
                yield await self._open()
            finally:
                self._in_use -= 1

    async def _checked_out(self, fn: Callable[[aiosqlite.Connection], Awaitable[T]]) -> T:
        async with self._checkout() as conn:
            return await fn(conn)

    async def _run(self, operation: str, fn: Callable[[aiosqlite.Connection], Awaitable[T]]) -> T:
        """
        Execute fn against the shared connection under the store deadline.

        Driver errors become PersistenceError and an expired deadline becomes
        StoreTimeoutError. Other EventLedgerErrors pass through unchanged.
        """
        start = time.perf_counter()
        try:
            return await asyncio.wait_for(self._checked_out(fn), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            log.error(
                "store.operation_timeout",
                operation=operation,
                timeout_seconds=self.timeout_seconds,
            )
            self._record_error(operation, "timeout")
            raise StoreTimeoutError() from None
        except aiosqlite.Error as e:
            log.error(
                "store.operation_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._record_error(operation, "persistence")
            raise PersistenceError() from e
        finally:
            if self._metrics is not None:
                self._metrics.observe_store_operation(operation, time.perf_counter() - start)

    def _record_error(self, operation: str, kind: str):
        if self._metrics is not None:
            self._metrics.record_store_error(operation, kind)

    @staticmethod
    async def _noop(conn: aiosqlite.Connection) -> None:
        return None

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    async def _insert(self, conn: aiosqlite.Connection, rows: List[tuple]) -> None:
        try:
            for row in rows:
                await conn.execute(INSERT_EVENT, row)
            await conn.commit()
        except BaseException:
            try:
                await conn.rollback()
            except aiosqlite.Error as e:
                log.warning("store.rollback_failed", error=str(e))
            raise

    async def create_event(self, evt: EventIn) -> str:
        new_id = self._new_id()
        row = (new_id, evt.type, evt.data, evt.timestamp)

        await self._run("create_event", lambda conn: self._insert(conn, [row]))

        log.info("event.stored", id=new_id, type=evt.type, backend=self.backend)
        return new_id

    async def create_events(self, events: List[EventIn]) -> List[str]:
        ids = [self._new_id() for _ in events]
        rows = [(i, e.type, e.data, e.timestamp) for i, e in zip(ids, events)]

        await self._run("create_events", lambda conn: self._insert(conn, rows))

        log.info("events.stored", count=len(ids), backend=self.backend)
        return ids

    async def get_event(self, event_id: str) -> Event:
        async def fetch(conn: aiosqlite.Connection) -> Event:
            async with conn.execute(f"{SELECT_COLUMNS} WHERE id = ?", (event_id,)) as cursor:
                row = await cursor.fetchone()
            if row is None:
                raise NotFoundError()
            return Event(**dict(row))

        return await self._run("get_event", fetch)

    async def get_events(self) -> List[Event]:
        async def fetch(conn: aiosqlite.Connection) -> List[Event]:
            async with conn.execute(f"{SELECT_COLUMNS} ORDER BY rowid ASC") as cursor:
                rows = await cursor.fetchall()
            return [Event(**dict(r)) for r in rows]

        return await self._run("get_events", fetch)

    async def get_latest_events(self, max_events: int) -> List[Event]:
        async def fetch(conn: aiosqlite.Connection) -> List[Event]:
            async with conn.execute(
                f"{SELECT_COLUMNS} ORDER BY rowid DESC LIMIT ?", (max_events,)
            ) as cursor:
                rows = await cursor.fetchall()
            return [Event(**dict(r)) for r in rows]

        return await self._run("get_latest_events", fetch)

    async def ping(self) -> None:
        async def select_one(conn: aiosqlite.Connection) -> None:
            async with conn.execute("SELECT 1") as cursor:
                await cursor.fetchone()

        await self._run("ping", select_one)

    def pool_stats(self) -> PoolStats:
        open_connections = 1 if self._conn is not None else 0
        return PoolStats(
            open_connections=open_connections,
            in_use=self._in_use,
            idle=max(0, open_connections - self._in_use),
            wait_count=self._wait_count,
            wait_duration=self._wait_duration,
        )

    async def close(self) -> None:
        """Close the shared connection. Calling it again is a no-op."""
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await conn.close()
            log.info("store.disconnected", backend=self.backend, path=self.db_path)
