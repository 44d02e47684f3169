"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the HTTP layer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Creates the TCP listening socket, binds IP:PORT                  │
    │  • Runs the accept() loop on the calling thread                     │
    │  • Wraps each accepted socket in a Connection                       │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ one new thread per connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Buffered line reads for the header block                         │
    │  • Content-Length framing for the body                              │
    │  • State: ACCEPTED → READING_HEADERS → ... → CLOSED                 │
    │  • Exactly one request/response, then close                         │
    └─────────────────────────────────────────────────────────────────────┘

Thread-per-connection needs no pool and no locks: connections share
nothing except the read-only server configuration.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, IncompleteBodyError

__all__ = [
    "SocketServer",          # Main TCP server - accepts connections
    "Connection",            # Wrapper for client socket - handles I/O
    "ConnectionState",       # Enum for connection lifecycle states
    "IncompleteBodyError",   # Peer closed before the whole body arrived
]
