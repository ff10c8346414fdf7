"""Tests for event store backends."""
import asyncio
import pytest
from eventledger.errors import NotFoundError, PersistenceError, StoreTimeoutError
from eventledger.event_models import EventIn
from eventledger.stores import InMemoryEventStore, PoolStats, SQLiteEventStore, assess_pool


def _event(i: int = 0, type_: str = "login") -> EventIn:
    return EventIn(type=type_, data=f"user={i}", timestamp=f"2024-01-01T00:00:{i:02d}Z")


@pytest.mark.asyncio
async def test_sqlite_create_and_get(store):
    """Test a stored event reads back with the same fields."""
    new_id = await store.create_event(_event(1))

    event = await store.get_event(new_id)

    assert event.id == new_id
    assert event.type == "login"
    assert event.data == "user=1"
    assert event.timestamp == "2024-01-01T00:00:01Z"


@pytest.mark.asyncio
async def test_sqlite_ids_are_unique(store):
    ids = {await store.create_event(_event(i)) for i in range(5)}
    assert len(ids) == 5


@pytest.mark.asyncio
async def test_sqlite_get_missing_event(store):
    """Test unknown ids raise NotFoundError."""
    with pytest.raises(NotFoundError):
        await store.get_event("does-not-exist")


@pytest.mark.asyncio
async def test_sqlite_latest_events_newest_first(store):
    """Test latest events are bounded and ordered most recent first."""
    for i in range(5):
        await store.create_event(_event(i, type_=f"test.event.{i}"))

    events = await store.get_latest_events(3)

    assert [e.type for e in events] == ["test.event.4", "test.event.3", "test.event.2"]


@pytest.mark.asyncio
async def test_sqlite_latest_events_empty(store):
    assert await store.get_latest_events(10) == []


@pytest.mark.asyncio
async def test_sqlite_get_events_oldest_first(store):
    for i in range(3):
        await store.create_event(_event(i, type_=f"test.event.{i}"))

    events = await store.get_events()

    assert [e.type for e in events] == ["test.event.0", "test.event.1", "test.event.2"]


@pytest.mark.asyncio
async def test_sqlite_create_events_in_order(store):
    ids = await store.create_events([_event(i, type_=f"batch.{i}") for i in range(3)])

    assert len(ids) == 3
    for i, event_id in enumerate(ids):
        assert (await store.get_event(event_id)).type == f"batch.{i}"


@pytest.mark.asyncio
async def test_sqlite_duplicate_id_is_persistence_error(store, monkeypatch):
    """Test constraint violations surface as PersistenceError."""
    monkeypatch.setattr(store, "_new_id", lambda: "fixed-id")

    await store.create_event(_event(1))
    with pytest.raises(PersistenceError) as exc_info:
        await store.create_event(_event(2))

    # Driver text stays out of the message
    assert exc_info.value.message == "failed to persist or read events"


@pytest.mark.asyncio
async def test_sqlite_batch_failure_rolls_back(store, monkeypatch):
    """Test a failing batch leaves no rows behind."""
    monkeypatch.setattr(store, "_new_id", lambda: "same-id")

    with pytest.raises(PersistenceError):
        await store.create_events([_event(1), _event(2)])

    assert await store.get_events() == []


@pytest.mark.asyncio
async def test_sqlite_operation_timeout(tmp_path):
    """Test operations exceeding the deadline raise StoreTimeoutError."""
    store = SQLiteEventStore(str(tmp_path / "slow.db"), timeout_seconds=0.2)

    async def slow(conn):
        await asyncio.sleep(2)

    try:
        with pytest.raises(StoreTimeoutError):
            await store._run("slow", slow)

        # The connection is usable after a timeout
        new_id = await store.create_event(_event(1))
        assert (await store.get_event(new_id)).id == new_id
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_sqlite_batch_timeout_rolls_back(tmp_path, monkeypatch):
    """Test a batch whose commit outlives the deadline leaves no rows behind."""
    store = SQLiteEventStore(str(tmp_path / "slow_commit.db"), timeout_seconds=0.2)
    await store.connect()

    async def slow_commit():
        await asyncio.sleep(2)

    monkeypatch.setattr(store._conn, "commit", slow_commit)

    try:
        with pytest.raises(StoreTimeoutError):
            await store.create_events([_event(1), _event(2)])

        assert await store.get_events() == []
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_sqlite_health_up(store):
    """Test health on a reachable database."""
    health = await store.health()

    assert health["status"] == "up"
    assert health["message"] == "It's healthy"
    assert health["open_connections"] == 1
    for key in (
        "open_connections",
        "in_use",
        "idle",
        "wait_count",
        "wait_duration",
        "max_idle_closed",
        "max_lifetime_closed",
    ):
        assert health[key] >= 0


@pytest.mark.asyncio
async def test_sqlite_health_down(tmp_path):
    """Test health on an unreachable database reports down."""
    store = SQLiteEventStore(str(tmp_path / "missing" / "events.db"))

    health = await store.health()

    assert health["status"] == "down"
    assert health["error"]
    await store.close()


@pytest.mark.asyncio
async def test_sqlite_counts_waits(store):
    """Test operations queued behind a checkout are counted as waits."""
    await store.connect()

    async with store._checkout():
        assert store.pool_stats().in_use == 1
        task = asyncio.create_task(store.ping())
        await asyncio.sleep(0.01)

    await task
    stats = store.pool_stats()
    assert stats.wait_count == 1
    assert stats.wait_duration > 0
    assert stats.in_use == 0
    assert stats.idle == 1


@pytest.mark.asyncio
async def test_sqlite_close_twice(store):
    await store.connect()
    await store.close()
    await store.close()
    assert store.pool_stats().open_connections == 0


@pytest.mark.asyncio
async def test_sqlite_reopens_after_close(store):
    new_id = await store.create_event(_event(1))
    await store.close()

    assert (await store.get_event(new_id)).id == new_id


@pytest.mark.asyncio
async def test_memory_store_roundtrip():
    store = InMemoryEventStore()
    ids = await store.create_events([_event(i, type_=f"m.{i}") for i in range(4)])

    assert (await store.get_event(ids[0])).type == "m.0"
    assert [e.type for e in await store.get_latest_events(2)] == ["m.3", "m.2"]
    with pytest.raises(NotFoundError):
        await store.get_event("nope")
    assert (await store.health())["status"] == "up"


def test_assess_pool_healthy():
    assert assess_pool(PoolStats(open_connections=1, idle=1)) == "It's healthy"


def test_assess_pool_heavy_load():
    assert "heavy load" in assess_pool(PoolStats(open_connections=41))


def test_assess_pool_wait_bottleneck():
    assert "bottlenecks" in assess_pool(PoolStats(open_connections=1, wait_count=1001))


def test_assess_pool_lifetime_closed_wins():
    message = assess_pool(
        PoolStats(open_connections=41, wait_count=5000, max_idle_closed=30, max_lifetime_closed=30)
    )
    assert "max lifetime" in message


@pytest.mark.asyncio
async def test_memory_store_keeps_timestamp_verbatim():
    store = InMemoryEventStore()
    new_id = await store.create_event(_event(7))

    assert (await store.get_event(new_id)).timestamp == "2024-01-01T00:00:07Z"
