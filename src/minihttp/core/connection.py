"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the reads and writes an HTTP
exchange needs: the header block line by line, then exactly
Content-Length body bytes, then one response.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        send(b"GET /echo/abc HTTP/1.1\r\nHost: x\r\n\r\n")

    Server might receive:
        recv() → b"GET /ec"
        recv() → b"ho/abc HTTP/1.1\r\nHo"
        recv() → b"st: x\r\n\r\n"

Nothing marks where a request ends except the protocol itself, so every
read goes through a buffer:

    1. Header block: one line at a time until an EMPTY line
    2. Body: exactly Content-Length bytes (only if Content-Length > 0)

Anything the client sends beyond that is never read. There is no
keep-alive: one request, one response, close.

=============================================================================
CONTENT-LENGTH FRAMING
=============================================================================

The connection, not the parser, decides how many body bytes to read. It
watches the header lines as they go past:

    Host: localhost\r\n
    Content-Length: 5\r\n      ← content_length = 5
    Content-Length: 7\r\n      ← content_length = 7  (last one wins)
    \r\n
    hello!!                    ← read_body(7)

    Content-Length: abc        ← HTTPParseError(MALFORMED_CONTENT_LENGTH)

A peer that hangs up before all the promised bytes arrive gets an
IncompleteBodyError. Both are fatal for this connection only.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

Linear, never goes back:

    ACCEPTED ──► READING_HEADERS ──► READING_BODY ──► DISPATCHING
                        │               (only if           │
                        │            Content-Length > 0)   ▼
                        │                           WRITING_RESPONSE
                        │                                  │
                        └──────────────► CLOSED ◄──────────┘

Every path ends in CLOSED: close() is called from a finally block (or
the context manager) no matter what went wrong.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..http.request import HTTPParseError, ParseErrorKind, Version


logger = logging.getLogger(__name__)


CONTENT_LENGTH = "content-length"


class IncompleteBodyError(ConnectionError):
    """The peer closed before sending all Content-Length body bytes."""

    def __init__(self, expected: int, received: int):
        super().__init__(f"Expected {expected} body bytes, received {received}")
        self.expected = expected
        self.received = received


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Used for logging and for asserting where a connection got to.
    """
    ACCEPTED = "accepted"                  # Just accepted, nothing read yet
    READING_HEADERS = "reading_headers"    # Reading request line + headers
    READING_BODY = "reading_body"          # Reading Content-Length bytes
    DISPATCHING = "dispatching"            # Parsed, handler is executing
    WRITING_RESPONSE = "writing_response"  # Sending response bytes
    CLOSED = "closed"                      # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
        content_length: Running Content-Length seen while reading headers.
        request_line: First line of the request, once read.
    """

    # Required parameters
    socket: socket.socket
    address: tuple[str, int]

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.ACCEPTED
    created_at: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 4096           # How much to read at once
    timeout: Optional[float] = None   # None = block forever

    # Filled in while reading
    content_length: int = 0
    request_line: str = ""

    # Internal state (not shown in repr for cleaner logs)
    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        # Blocking mode; a timeout (if any) is the only way out of recv()
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES: Convenient accessors
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def client_port(self) -> int:
        """Get the client port."""
        return self.address[1]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def nominal_version(self) -> Optional[Version]:
        """
        Best-effort HTTP version from the request line.

        Lets a framing error be answered in the client's own version even
        though the request never got parsed. None if it can't be told.
        """
        tokens = self.request_line.split()
        if len(tokens) != 3:
            return None
        try:
            return Version(tokens[2])
        except ValueError:
            return None

    # =========================================================================
    # READING: Header block, then body
    # =========================================================================

    def read_head(self) -> Optional[bytes]:
        """
        Read the request line and headers, up to and including the blank line.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    read_head() Flow                              │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while True:                                                    │
        │       line = next line from buffer (recv() more as needed)       │
        │       EOF?          → stop                                       │
        │       empty line?   → stop (end of headers)                      │
        │       Content-Length line? → remember the value                  │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Returns:
            Raw header block bytes, or None if the peer closed before
            sending anything.

        Raises:
            HTTPParseError: MALFORMED_CONTENT_LENGTH for a non-numeric
                Content-Length.
        """
        self.state = ConnectionState.READING_HEADERS
        head = b""
        framing_error: Optional[HTTPParseError] = None

        while True:
            line = self._read_line()
            if line is None:
                break  # Connection closed by client

            head += line
            stripped = line.rstrip(b"\r\n")
            if not stripped:
                break  # Empty line = end of headers

            text = stripped.decode("utf-8", errors="replace")
            if not self.request_line:
                self.request_line = text
                continue

            try:
                self._scan_content_length(text)
            except HTTPParseError as e:
                # Keep reading to the blank line; closing with unread
                # input can reset the connection before the 500 arrives
                framing_error = framing_error or e

        if framing_error is not None:
            raise framing_error

        return head or None

    def read_body(self, length: int) -> bytes:
        """
        Read exactly `length` body bytes.

        Some of the body may already be sitting in the buffer from the
        last header read; only the rest comes from the socket.

        Raises:
            IncompleteBodyError: If the peer closes first.
        """
        self.state = ConnectionState.READING_BODY

        while len(self._buffer) < length:
            chunk = self._recv()
            if not chunk:
                raise IncompleteBodyError(length, len(self._buffer))
            self._buffer += chunk

        body, self._buffer = self._buffer[:length], self._buffer[length:]
        return body

    def _read_line(self) -> Optional[bytes]:
        """
        Pull one line (with its \\n) out of the buffer.

        Returns:
            The line, whatever partial data was left at EOF, or None if
            the peer closed and the buffer is empty.
        """
        while b"\n" not in self._buffer:
            chunk = self._recv()
            if not chunk:
                line, self._buffer = self._buffer, b""
                return line or None
            self._buffer += chunk

        end = self._buffer.index(b"\n") + 1
        line, self._buffer = self._buffer[:end], self._buffer[end:]
        return line

    def _scan_content_length(self, line: str) -> None:
        """Track Content-Length as header lines go past. Last one wins."""
        name, separator, value = line.partition(": ")
        if not separator or name.lower() != CONTENT_LENGTH:
            return

        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise HTTPParseError(
                f"Malformed Content-Length: {value!r}",
                ParseErrorKind.MALFORMED_CONTENT_LENGTH,
                version=self.nominal_version,
            )
        self.content_length = int(value)

    def _recv(self) -> bytes:
        """
        Receive data from socket with error handling.

        Returns:
            Received bytes, or empty bytes if connection closed.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            # Client disconnected abruptly
            return b""

    # =========================================================================
    # WRITING: Send response data to the client
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response data to the client.

        Uses sendall() to ensure ALL data is sent. Regular send() might
        only send part of the data if the buffer is full.

        Returns:
            True if send succeeded, False if connection lost.
        """
        self.state = ConnectionState.WRITING_RESPONSE

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            # Client disconnected
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection. Safe to call more than once.

        shutdown(SHUT_WR) sends FIN first, so the client sees end-of-stream
        right after the last response byte.
        """
        if self.state == ConnectionState.CLOSED:
            return  # Already closed

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER: For use with 'with' statement
    # =========================================================================

    def __enter__(self):
        """
        Context manager entry.

            with conn:
                head = conn.read_head()
                conn.send_response(response)
            # Connection automatically closed here
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
