"""
Middleware components for request processing.

This package contains middleware for:
- Request context (request ID, IP address, user agent)
- CORS for browser clients
- Exception handlers rendering JSON error bodies
"""

from app.middleware.cors import CORSMiddleware
from app.middleware.error_handlers import register_exception_handlers
from app.middleware.request_context import RequestContextMiddleware

__all__ = [
    "RequestContextMiddleware",
    "CORSMiddleware",
    "register_exception_handlers",
]
