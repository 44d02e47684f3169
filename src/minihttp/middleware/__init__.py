"""
=============================================================================
MIDDLEWARE FRAMEWORK
=============================================================================

Code that runs around the router's dispatch without the handlers knowing:

    Incoming Request
         │
         ▼
    ┌──────────────────┐
    │ LoggingMiddleware │ ──► access line with status and timing
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │  router.dispatch  │ ──► the actual handler
    └──────────────────┘

gzip is NOT a middleware here: it happens in the response serializer, so
Content-Length always matches the bytes that hit the wire.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",

    # Built-in middleware
    "LoggingMiddleware",
    "RequestLog",
]
