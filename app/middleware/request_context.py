"""
RequestContext Middleware - Adds request tracking to all requests.

This middleware automatically adds the following to every request:
- request_id: Unique ID for request tracing (reuses an incoming X-Request-ID)
- ip_address: Client IP address
- user_agent: Client user agent string

These values are stored in request.state and bound to the structlog context,
so every log line emitted while handling the request carries request_id.

Usage:
    In endpoints:
        request.state.request_id
        request.state.ip_address
        request.state.user_agent
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.infrastructure.observability.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
)
from app.middleware.error_handlers import internal_error_response

logger = get_logger(__name__)

MAX_REQUEST_ID_LENGTH = 128


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Add request context to all incoming requests.

    Also adds X-Request-ID header to responses for client-side tracing.
    """

    async def dispatch(self, request: Request, call_next):
        """Process request and add context."""

        request_id = self._resolve_request_id(request)
        request.state.request_id = request_id

        ip_address = request.client.host if request.client else None
        request.state.ip_address = ip_address

        user_agent = request.headers.get("user-agent")
        request.state.user_agent = user_agent

        bind_request_context(request_id=request_id)

        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            # Unhandled errors still get X-Request-ID
            response = internal_error_response(request, e)
        finally:
            clear_request_context()

        # Add request ID to response headers (for client-side tracing)
        response.headers["X-Request-ID"] = request_id

        return response

    def _resolve_request_id(self, request: Request) -> str:
        """Trust a sane client-supplied X-Request-ID, otherwise generate one."""
        incoming = (request.headers.get("x-request-id") or "").strip()
        if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and incoming.isprintable():
            return incoming
        return str(uuid.uuid4())
