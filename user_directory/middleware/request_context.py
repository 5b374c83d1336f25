"""
RequestContext Middleware - Adds request tracking to all requests.

Every request gets a request_id that is:
- stored on request.state.request_id
- bound into the structlog context so every log line of the request carries it
- echoed back in the X-Request-ID response header

An incoming X-Request-ID header is reused so traces can span services.
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from user_directory.infrastructure.observability.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Add request_id to request.state, log context and response headers."""

    async def dispatch(self, request: Request, call_next):
        request_id = self._incoming_request_id(request) or str(uuid.uuid4())
        request.state.request_id = request_id

        clear_request_context()
        bind_request_context(request_id=request_id, path=request.url.path)

        logger.debug("Request started", method=request.method)

        try:
            response = await call_next(request)
        finally:
            clear_request_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _incoming_request_id(self, request: Request) -> str | None:
        value = request.headers.get(REQUEST_ID_HEADER)
        if not value:
            return None
        value = value.strip()
        if not value or len(value) > MAX_REQUEST_ID_LENGTH:
            return None
        return value
