"""Request ID middleware — correlation id plus one access-log line per request.

Learn: Every request gets an id, either from the incoming X-Request-ID
header (for distributed tracing) or auto-generated. The id is bound to
structlog's contextvars, so service log lines such as "account.created"
or "ledger.appended" carry it too, and it is echoed in the response.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate/propagate X-Request-ID and log the request outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response: Response = await call_next(request)
        # Path only; query strings can hold OAuth codes.
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        response.headers["X-Request-ID"] = request_id
        return response
