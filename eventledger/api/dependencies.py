"""Request-scoped accessors for objects owned by the application."""
from fastapi import Request
from ..health import HealthChecker
from ..services.event_service import EventService


def get_event_service(request: Request) -> EventService:
    """Get the event service built by create_app."""
    return request.app.state.event_service


def get_health_checker(request: Request) -> HealthChecker:
    """Get the health checker built by create_app."""
    return request.app.state.health_checker
