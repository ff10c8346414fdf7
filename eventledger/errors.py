"""Error taxonomy shared by the store, service and HTTP layers."""


class EventLedgerError(Exception):
    """
    Base class for errors surfaced to API callers.

    Subclasses pin an HTTP status and a curated message. The message is the
    only text returned to clients; driver details belong in the logs.
    """

    status_code: int = 500
    default_message: str = "internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(EventLedgerError):
    """Malformed or missing caller input."""

    status_code = 400
    default_message = "invalid request"


class NotFoundError(EventLedgerError):
    """Requested event id does not exist."""

    status_code = 404
    default_message = "event not found"


class PersistenceError(EventLedgerError):
    """Store read or write failed."""

    status_code = 500
    default_message = "failed to persist or read events"


class StoreTimeoutError(EventLedgerError):
    """Store operation exceeded its deadline."""

    status_code = 503
    default_message = "database operation timed out"
