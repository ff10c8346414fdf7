"""
EventLedger - Event persistence and retrieval service.

Features:
- Structured logging with correlation IDs
- Prometheus metrics
- Health checks (liveness, readiness and database)
- Event submission and retrieval backed by SQLite
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from . import __version__
from .config import Settings, get_settings
from .errors import EventLedgerError
from .logging import setup_logging, get_logger
from .api.router import router
from .api.health_router import router as health_router
from .api.ws_router import router as ws_router
from .auth.basic import BasicAuthenticator
from .middleware import (
    CorrelationIdMiddleware,
    MetricsMiddleware,
    ValidationMiddleware,
    register_error_handlers,
)
from .metrics import Metrics
from .health import HealthChecker
from .services.event_service import EventService
from .stores import EventStore, create_store

SERVICE_NAME = "eventledger"

logger = get_logger()


def create_app(settings: Settings | None = None, store: EventStore | None = None) -> FastAPI:
    """
    Build the application and the objects it owns.

    One store is created here and shared by every request for the lifetime
    of the app. It is connected at startup and closed at shutdown.

    Args:
        settings: Configuration (defaults to environment settings)
        store: Event store to use instead of the configured backend
    """
    settings = settings or get_settings()

    setup_logging(json_output=settings.LOG_JSON, service_name=SERVICE_NAME)

    metrics = Metrics(service_name=SERVICE_NAME, version=__version__)
    if store is None:
        store = create_store(settings, metrics=metrics)

    event_service = EventService(
        store,
        metrics=metrics,
        default_limit=settings.DEFAULT_EVENT_LIMIT,
        max_limit=settings.MAX_EVENT_LIMIT,
        strict_timestamps=settings.STRICT_TIMESTAMPS,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "service_starting",
            version=__version__,
            env=settings.ENV,
            store_backend=store.backend,
        )
        try:
            await store.connect()
        except EventLedgerError as e:
            # The store reconnects lazily; /health/db reports the outage
            logger.error("store_connect_failed", error=e.message)

        yield

        logger.info("service_stopping")
        metrics.app_up.labels(service=SERVICE_NAME, version=__version__).set(0)
        await store.close()

    app = FastAPI(
        title="EventLedger",
        version=__version__,
        description="Event persistence and retrieval service",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.metrics = metrics
    app.state.event_service = event_service
    app.state.health_checker = HealthChecker(event_service)
    app.state.authenticator = BasicAuthenticator.from_settings(settings)

    # Last added runs first: correlation ID, then metrics, then body checks
    app.add_middleware(ValidationMiddleware, max_size=settings.MAX_EVENT_SIZE)
    app.add_middleware(MetricsMiddleware, metrics=metrics)
    app.add_middleware(CorrelationIdMiddleware)

    register_error_handlers(app)

    app.include_router(router)
    app.include_router(health_router)
    app.include_router(ws_router)

    # Mount Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app(registry=metrics.registry))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "eventledger.main:app",
        host="0.0.0.0",
        port=get_settings().SERVICE_PORT,
    )
