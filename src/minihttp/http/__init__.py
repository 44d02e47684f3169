"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows what HTTP looks like on the wire, and nothing that
knows about sockets:

    request.py       bytes → HTTPRequest (hand-written parser)
    response.py      HTTPResponse → bytes (plus the gzip step)
    status_codes.py  the small fixed reason-phrase table
    router.py        path segments → handler

=============================================================================
HTTP/1.1 IN ONE PICTURE
=============================================================================

    Client                                   Server
      │  GET /echo/abc HTTP/1.1\r\n            │
      │  Accept-Encoding: gzip\r\n             │
      │  \r\n                                  │
      │ ─────────────────────────────────────► │
      │                                        │  parse → route → echo()
      │  HTTP/1.1 200 OK\r\n                   │
      │  Content-Type: text/plain\r\n          │
      │  Content-Encoding: gzip\r\n            │
      │  Content-Length: 23\r\n                │
      │  \r\n                                  │
      │  <23 gzipped bytes>                    │
      │ ◄───────────────────────────────────── │
      │                                   close()

=============================================================================
"""

from .request import (
    HTTPRequest, RequestParser, HTTPParseError,
    Method, Version, ParseErrorKind,
    parse_request,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    serialize,
    # Convenience functions for common responses
    ok,              # 200 OK
    created,         # 201 Created
    not_found,       # 404 Not Found
    internal_error,  # 500 Internal Server Error
)
from .router import Router, Route, RouteMatch, build_router, dispatch
from .status_codes import HTTPStatus, reason_phrase

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "Method",
    "Version",
    "ParseErrorKind",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "serialize",

    # Response convenience functions
    "ok",
    "created",
    "not_found",
    "internal_error",

    # Routing
    "Router",
    "Route",
    "RouteMatch",
    "build_router",
    "dispatch",

    # Status codes
    "HTTPStatus",
    "reason_phrase",
]
