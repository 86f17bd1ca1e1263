"""
RequestContext Middleware - Adds request tracking to all requests.

Adds to request.state:
- request_id: Unique ID for request tracing
- ip_address: Client IP address

The request_id is also bound into structlog's context variables so every log
line emitted while handling the request carries it, and returned to the
client as the X-Request-ID header.
"""

import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from scout.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id to the request, the log context and the response."""

    async def dispatch(self, request: Request, call_next):
        """Process request and add context."""
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.ip_address = request.client.host if request.client else None

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
            ip_address=request.state.ip_address,
        )

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        return response
