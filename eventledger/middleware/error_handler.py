"""Structured error responses."""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
import structlog
from .correlation import get_correlation_id
from ..errors import EventLedgerError

log = structlog.get_logger()


def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "correlation_id": get_correlation_id()},
        headers=headers,
    )


async def eventledger_error_handler(request: Request, exc: EventLedgerError):
    log_method = log.error if exc.status_code >= 500 else log.warning
    log_method(
        "request.failed",
        error_type=exc.__class__.__name__,
        status_code=exc.status_code,
        message=exc.message,
        cause=str(exc.__cause__) if exc.__cause__ else None,
        path=request.url.path,
    )
    return _error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException):
    log.warning(
        "http.exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    log.warning("request.invalid", errors=len(exc.errors()), path=request.url.path)
    return _error_response(400, "invalid request")


async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error(
        "unhandled.exception",
        error=str(exc),
        error_type=exc.__class__.__name__,
        path=request.url.path,
        exc_info=exc,
    )
    return _error_response(500, "internal server error")


def register_error_handlers(app: FastAPI):
    """Render every error as {"error": <message>, "correlation_id": <id>}."""
    app.add_exception_handler(EventLedgerError, eventledger_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
