"""Tests for the event REST endpoints."""
import pytest
from fastapi.testclient import TestClient
from eventledger.errors import PersistenceError, StoreTimeoutError
from eventledger.main import create_app
from eventledger.stores import InMemoryEventStore


class TestEventSubmission:
    """POST /api/v1/event and /api/v1/events"""

    def test_submit_event(self, client):
        """Test the login scenario end to end."""
        payload = {"type": "login", "data": "user=42", "timestamp": "2024-01-01T00:00:00Z"}

        response = client.post("/api/v1/event", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Event successfully received!"
        assert data["event"]["type"] == "login"
        assert data["event"]["data"] == "user=42"
        assert data["event"]["timestamp"] == "2024-01-01T00:00:00Z"
        assert len(data["event"]["id"]) == 36

        fetched = client.get("/api/v1/event", params={"id": data["event"]["id"]})
        assert fetched.status_code == 200
        assert fetched.json() == data["event"]

    def test_submit_event_missing_type(self, client):
        response = client.post("/api/v1/event", json={"data": "user=42"})

        assert response.status_code == 400
        assert response.json()["error"] == "type is required"
        assert client.get("/api/v1/events").json() == []

    def test_submit_event_without_body(self, client):
        response = client.post("/api/v1/event")

        assert response.status_code == 400
        assert response.json()["error"] == "request body must be a JSON object"

    def test_submit_events(self, client):
        response = client.post(
            "/api/v1/events",
            json=[{"type": "a", "data": "1"}, {"type": "b", "data": "2"}],
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 2
        assert data[0]["message"] == "Event(s) successfully received!"
        assert [item["event"]["type"] for item in data] == ["a", "b"]

    def test_submit_events_invalid_item(self, client):
        """Test the batch is rejected as a whole."""
        response = client.post(
            "/api/v1/events",
            json=[{"type": "a", "data": "1"}, {"type": "", "data": "2"}],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "events[1].type must not be empty"
        assert client.get("/api/v1/events").json() == []

    def test_submit_events_requires_array(self, client):
        response = client.post("/api/v1/events", json={"type": "a", "data": "1"})

        assert response.status_code == 400
        assert response.json()["error"] == "request body must be a JSON array"


class TestEventRetrieval:
    """GET /api/v1/event and /api/v1/events"""

    def test_get_missing_event(self, client):
        response = client.get("/api/v1/event", params={"id": "does-not-exist"})

        assert response.status_code == 404
        assert response.json()["error"] == "event not found"

    def test_get_event_requires_id(self, client):
        response = client.get("/api/v1/event")

        assert response.status_code == 400
        assert response.json()["error"] == "id is required"

    def test_list_events_empty(self, client):
        response = client.get("/api/v1/events")

        assert response.status_code == 200
        assert response.json() == []

    def test_list_events_bounded_newest_first(self, client):
        for i in range(4):
            client.post("/api/v1/event", json={"type": "t", "data": str(i)})

        response = client.get("/api/v1/events", params={"max": 3})

        assert response.status_code == 200
        assert [e["data"] for e in response.json()] == ["3", "2", "1"]

    def test_list_events_bad_max(self, client):
        response = client.get("/api/v1/events", params={"max": "lots"})

        assert response.status_code == 400
        assert response.json()["error"] == "max must be an integer"

    def test_list_events_blank_max(self, client):
        client.post("/api/v1/event", json={"type": "t", "data": "1"})

        response = client.get("/api/v1/events?max=")

        assert response.status_code == 200
        assert len(response.json()) == 1


class TestStoreFailures:
    """Store errors are mapped to curated responses"""

    def _client(self, settings, store):
        return TestClient(create_app(settings, store=store))

    def test_persistence_error_is_500(self, settings):
        class FailingStore(InMemoryEventStore):
            async def create_event(self, evt):
                raise PersistenceError()

        with self._client(settings, FailingStore()) as client:
            response = client.post("/api/v1/event", json={"type": "a", "data": "1"})

        assert response.status_code == 500
        assert response.json()["error"] == "failed to persist or read events"
        assert "correlation_id" in response.json()

    def test_timeout_is_503(self, settings):
        class SlowStore(InMemoryEventStore):
            async def get_latest_events(self, max_events):
                raise StoreTimeoutError()

        with self._client(settings, SlowStore()) as client:
            response = client.get("/api/v1/events")

        assert response.status_code == 503
        assert response.json()["error"] == "database operation timed out"


@pytest.mark.parametrize("path", ["/api/v1/events", "/api/v1/health/liveness"])
def test_auth_enforced_when_configured(settings, path):
    """Test Basic auth guards the API when enabled."""
    settings.REQUIRE_AUTH = True
    settings.API_USERNAME = "shion"
    settings.API_PASSWORD = "s3cret"

    with TestClient(create_app(settings)) as client:
        denied = client.get(path)
        wrong = client.get(path, auth=("shion", "nope"))
        allowed = client.get(path, auth=("shion", "s3cret"))

    assert denied.status_code == 401
    assert denied.json()["error"] == "Unauthorized"
    assert denied.headers["www-authenticate"] == "Basic"
    assert wrong.status_code == 401
    assert allowed.status_code == 200
