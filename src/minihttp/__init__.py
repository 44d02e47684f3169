"""
=============================================================================
MINIHTTP - A MINIMAL HTTP/1.1 SERVER FROM SCRATCH
=============================================================================

Raw sockets in, raw bytes out. No http.server, no third-party parser.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   SocketServer ──► Connection ──► RequestParser ──► Router          │
    │   (accept loop)    (framing)      (bytes→request)   (path→handler)  │
    │                                                          │          │
    │                        sendall ◄── HTTPResponse.to_bytes ◄┘         │
    │                                    (gzip if asked)                  │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ROUTES
=============================================================================

    GET  /                  200, empty body
    GET  /user-agent        200, the User-Agent header as text/plain
    GET  /echo/{text}       200, {text} as text/plain (gzip if accepted)
    GET  /files/{name}      200, file bytes (needs --directory)
    POST /files/{name}      201, request body written to {name}
    anything else           404

=============================================================================
QUICK START
=============================================================================

    python -m minihttp --directory /tmp/data

    curl -v http://127.0.0.1:4221/echo/abc
    curl -v --compressed http://127.0.0.1:4221/echo/abc
    curl -v --data-binary @notes.txt http://127.0.0.1:4221/files/notes.txt

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]
