"""Shared fixtures."""
import pytest
from fastapi.testclient import TestClient
from eventledger.config import Settings
from eventledger.main import create_app
from eventledger.stores import SQLiteEventStore


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        DATABASE_URL=str(tmp_path / "events.db"),
        LOG_JSON=False,
        REQUIRE_AUTH=False,
        MAX_EVENT_SIZE=4096,
        WS_MESSAGE_INTERVAL=0.05,
    )


@pytest.fixture
async def store(tmp_path):
    store = SQLiteEventStore(str(tmp_path / "store.db"))
    yield store
    await store.close()


@pytest.fixture
def client(settings):
    """Test client with startup/shutdown run around each test."""
    with TestClient(create_app(settings)) as c:
        yield c
