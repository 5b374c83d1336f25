"""
Middleware components for request processing.

This package contains middleware for:
- Request context (request ID bound into structured logs)
"""

from user_directory.middleware.request_context import RequestContextMiddleware

__all__ = [
    "RequestContextMiddleware",
]
