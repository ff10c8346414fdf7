"""Event service: validates inbound payloads and shapes store results."""
from datetime import datetime, timezone
from typing import Any, Dict, List
import pydantic
import structlog
from ..errors import ValidationError
from ..event_models import Event, EventIn, EventResponse
from ..stores.base import EventStore

log = structlog.get_logger()

SINGLE_EVENT_MESSAGE = "Event successfully received!"
BATCH_EVENT_MESSAGE = "Event(s) successfully received!"


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_iso_timestamp(value: str) -> bool:
    candidate = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        datetime.fromisoformat(candidate)
    except ValueError:
        return False
    return True


def _describe(exc: pydantic.ValidationError) -> str:
    """Reduce a pydantic error to a stable, field-level message."""
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ())) or "body"
    if err.get("type") == "missing":
        return f"{field} is required"
    if err.get("type") == "string_type":
        return f"{field} must be a string"
    return f"{field} must not be empty"


class EventService:
    """
    Event orchestration between the HTTP surface and the store.

    Every payload is validated before the store is touched. Batches are
    validated in full first and then written atomically, so a rejected batch
    leaves nothing behind.
    """

    def __init__(
        self,
        store: EventStore,
        metrics=None,
        default_limit: int = 50,
        max_limit: int = 1000,
        strict_timestamps: bool = False,
    ):
        """
        Initialize event service.

        Args:
            store: Event store backend
            metrics: Optional Metrics instance
            default_limit: Number of events returned when no max is supplied
            max_limit: Largest max accepted by fetch_recent
            strict_timestamps: Require ISO-8601 timestamps when supplied
        """
        self._store = store
        self._metrics = metrics
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.strict_timestamps = strict_timestamps

    def _validate(self, payload: Any, prefix: str = "") -> EventIn:
        if not isinstance(payload, dict):
            raise ValidationError(f"{prefix or 'request body'} must be a JSON object")

        try:
            evt = EventIn.model_validate(payload)
        except pydantic.ValidationError as e:
            message = _describe(e)
            raise ValidationError(f"{prefix}.{message}" if prefix else message) from None

        if evt.timestamp:
            if self.strict_timestamps and not is_iso_timestamp(evt.timestamp):
                field = f"{prefix}.timestamp" if prefix else "timestamp"
                raise ValidationError(f"{field} must be an ISO-8601 date-time")
        else:
            evt.timestamp = utc_timestamp()

        return evt

    def _record(self, evt: EventIn):
        if self._metrics is not None:
            self._metrics.record_event_created(evt.type, len(evt.data.encode("utf-8")))

    async def submit_event(self, payload: Any) -> EventResponse:
        """Validate and persist one event."""
        evt = self._validate(payload)

        new_id = await self._store.create_event(evt)
        self._record(evt)

        log.info("event.created", id=new_id, type=evt.type)
        return EventResponse(
            message=SINGLE_EVENT_MESSAGE,
            event=Event(id=new_id, type=evt.type, data=evt.data, timestamp=evt.timestamp),
        )

    async def submit_events(self, payloads: Any) -> List[EventResponse]:
        """Validate a whole batch, then persist it atomically."""
        if not isinstance(payloads, list):
            raise ValidationError("request body must be a JSON array")

        events = [self._validate(p, prefix=f"events[{i}]") for i, p in enumerate(payloads)]
        if not events:
            return []

        ids = await self._store.create_events(events)
        for evt in events:
            self._record(evt)

        log.info("events.created", count=len(ids))
        return [
            EventResponse(
                message=BATCH_EVENT_MESSAGE,
                event=Event(id=new_id, type=evt.type, data=evt.data, timestamp=evt.timestamp),
            )
            for new_id, evt in zip(ids, events)
        ]

    async def fetch_event(self, event_id: str | None) -> Event:
        """Fetch one event by id."""
        if not event_id or not event_id.strip():
            raise ValidationError("id is required")
        return await self._store.get_event(event_id)

    async def fetch_recent(self, max_events: int | str | None = None) -> List[Event]:
        """Fetch the most recent events, newest first."""
        limit = self._parse_limit(max_events)
        return await self._store.get_latest_events(limit)

    def _parse_limit(self, max_events: int | str | None) -> int:
        if max_events is None or (isinstance(max_events, str) and not max_events.strip()):
            return self.default_limit

        if isinstance(max_events, bool):
            raise ValidationError("max must be an integer")

        if isinstance(max_events, int):
            limit = max_events
        else:
            try:
                limit = int(str(max_events).strip())
            except ValueError:
                raise ValidationError("max must be an integer") from None

        if limit < 1 or limit > self.max_limit:
            raise ValidationError(f"max must be between 1 and {self.max_limit}")
        return limit

    async def database_health(self) -> Dict[str, Any]:
        """Store connectivity and connection usage report."""
        return await self._store.health()
