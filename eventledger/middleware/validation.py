"""Validation middleware for request payload size and structure."""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import structlog
import orjson

log = structlog.get_logger()


def _too_large(max_size: int, received: int) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "error": "payload too large",
            "max_size": max_size,
            "received_size": received,
        },
    )


class ValidationMiddleware(BaseHTTPMiddleware):
    """Rejects oversized bodies and bodies that are not valid JSON."""

    def __init__(self, app, max_size: int = 65536):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next):
        if request.method in ["POST", "PUT", "PATCH"]:
            # Check content-length header first
            content_length = request.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > self.max_size:
                log.warning(
                    "payload.too_large",
                    size=int(content_length),
                    max_size=self.max_size,
                    path=request.url.path,
                )
                return _too_large(self.max_size, int(content_length))

            if request.headers.get("content-type", "").startswith("application/json"):
                body = await request.body()
                if len(body) > self.max_size:
                    log.warning(
                        "payload.too_large",
                        size=len(body),
                        max_size=self.max_size,
                        path=request.url.path,
                    )
                    return _too_large(self.max_size, len(body))

                if body:
                    try:
                        orjson.loads(body)
                    except orjson.JSONDecodeError as e:
                        log.warning("invalid.json", error=str(e), path=request.url.path)
                        return JSONResponse(
                            status_code=400,
                            content={"error": "request body is not valid JSON"},
                        )

        return await call_next(request)
