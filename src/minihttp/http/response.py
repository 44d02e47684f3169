"""
=============================================================================
HTTP RESPONSE BUILDER & SERIALIZER
=============================================================================

Builds HTTP responses and turns them into wire bytes, optionally gzipping
the body on the way out.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  │    ────┬─── ─┬─ ─┬─                                            │ │
    │  │    Version  Code Phrase                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Content-Type: text/plain\r\n                                │ │
    │  │    Content-Encoding: gzip\r\n       ← only when compressed     │ │
    │  │    Content-Length: 23\r\n           ← always the WIRE length   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                             ← exactly one, always      │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    <raw or gzipped bytes>                                      │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
GZIP, THE SHORT VERSION
=============================================================================

    Client:  Accept-Encoding: gzip, deflate
                              ────
                              "I can decode gzip"

    Handler: marks the response should_compress=True
    Codec:   body ──gzip.compress──► smaller body
             Content-Encoding: gzip
             Content-Length: <compressed size>   (NOT the original size!)

If compression blows up for any reason we quietly send the original bytes
instead.

gzip embeds a timestamp in its header. We pin it (mtime=0) so serializing
the same response twice produces identical bytes.

=============================================================================
BUILDER PATTERN
=============================================================================

HTTPResponse is frozen. Handlers assemble one with ResponseBuilder:

    response = (ResponseBuilder(version=request.version)
        .status(HTTPStatus.OK)
        .text("hello")
        .compress(request.accepts_gzip)
        .build())

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union
import gzip
import logging
import zlib

from .request import Version
from .status_codes import HTTPStatus, reason_phrase


logger = logging.getLogger(__name__)


DEFAULT_COMPRESSION_LEVEL = 6

TEXT_PLAIN = "text/plain"
OCTET_STREAM = "application/octet-stream"


@dataclass(frozen=True)
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Handler returns          to_bytes()              Socket sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
            │                       │                        │
        HTTPResponse(            b"HTTP/1.1 200 OK\r\n   socket.sendall(
          status_code=200,         Content-Type: ...\r\n     response_bytes
          headers={...},           \r\n                    )
          body=b"abc")             abc"

    Constructed once by a handler, consumed once by the codec. to_bytes()
    never modifies the response, so calling it twice gives the same bytes.

    =========================================================================
    """

    status_code: int = HTTPStatus.OK
    version: Version = Version.HTTP_1_1
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    should_compress: bool = False

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version.label} {int(self.status_code)} {reason_phrase(self.status_code)}"

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return default

    def to_bytes(self, compression_level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
        """
        Serialize the response to bytes for sending over socket.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 200 OK\r\n              ← Status line
            Content-Type: text/plain\r\n     ← Headers, one per line
            Content-Length: 3\r\n            ← Set from the bytes we send
            \r\n                             ← Empty line (separator)
            abc                              ← Body bytes

        With zero headers and no body this is just the status line plus
        the separator: b"HTTP/1.1 200 OK\r\n\r\n".

        =====================================================================

        Args:
            compression_level: gzip level (1-9) used when should_compress.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        # Copy headers to avoid modifying the (frozen) original's dict
        response_headers = dict(self.headers)
        body = self.body

        if body is not None:
            # =================================================================
            # COMPRESSION STEP
            # =================================================================
            if self.should_compress:
                compressed = gzip_body(body, compression_level)
                if compressed is not None:
                    body = compressed
                    _replace_header(response_headers, "Content-Encoding", "gzip")

            # =================================================================
            # CONTENT-LENGTH: always the number of bytes actually on the wire
            # =================================================================
            _replace_header(response_headers, "Content-Length", str(len(body)))

        # =====================================================================
        # BUILD RESPONSE HEAD
        # =====================================================================
        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")

        # Status line and headers each end in CRLF, then one empty line
        head = "\r\n".join(lines) + "\r\n\r\n"

        return head.encode("utf-8") + (body or b"")


def serialize(response: HTTPResponse, compression_level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """Serialize a response to wire bytes. Same as response.to_bytes()."""
    return response.to_bytes(compression_level)


def gzip_body(body: bytes, level: int = DEFAULT_COMPRESSION_LEVEL) -> Optional[bytes]:
    """
    gzip-encode a response body.

    Returns None instead of raising when encoding fails; the caller then
    sends the body uncompressed.
    """
    try:
        return gzip.compress(body, compresslevel=level, mtime=0)
    except (OSError, TypeError, ValueError, zlib.error) as e:
        logger.debug(f"gzip failed, sending uncompressed body: {e}")
        return None


def _replace_header(headers: Dict[str, str], name: str, value: str) -> None:
    """Set a header, dropping any existing spelling of the same name."""
    for existing in [key for key in headers if key.lower() == name.lower()]:
        del headers[existing]
    headers[name] = value


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Each method returns `self`, enabling chaining:

        builder.status(201).header("X-Key", "val").build()
        ────────┬───────────────┬─────────────────┬──────
                └───────────────┴─────────────────┘
                   All return 'self' except build()

    USAGE EXAMPLES

        # Plain text
        ResponseBuilder().text("abc").build()

        # File download, gzipped when the client allows it
        (ResponseBuilder(version=request.version)
            .octet_stream(content)
            .compress(request.accepts_gzip)
            .build())
    """

    def __init__(self, version: Version = Version.HTTP_1_1):
        """
        Initialize the response builder.

        Args:
            version: HTTP version to answer with (echo the request's).
        """
        self._status: int = HTTPStatus.OK       # Default to 200 OK
        self._version = version
        self._headers: Dict[str, str] = {}
        self._body: Optional[bytes] = None      # None = no body at all
        self._compress = False

    # =========================================================================
    # STATUS / VERSION
    # =========================================================================

    def status(self, status: int) -> "ResponseBuilder":
        """
        Set the HTTP status code.

        Args:
            status: HTTPStatus member or any int (unknown codes are allowed)

        Returns:
            Self for method chaining
        """
        self._status = status
        return self

    def version(self, version: Version) -> "ResponseBuilder":
        self._version = version
        return self

    # =========================================================================
    # HEADER METHODS
    # =========================================================================

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """
        Add a single response header.

        Args:
            name: Header name (e.g., "Content-Type")
            value: Header value

        Returns:
            Self for method chaining
        """
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set the Content-Type header."""
        return self.header("Content-Type", content_type)

    # =========================================================================
    # BODY METHODS
    # =========================================================================

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body (raw bytes or string).

        Args:
            body: Response body (string auto-encoded to UTF-8)

        Returns:
            Self for method chaining
        """
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Set a text/plain body."""
        return self.body(text).content_type(TEXT_PLAIN)

    def octet_stream(self, content: bytes) -> "ResponseBuilder":
        """Set an application/octet-stream body (file downloads)."""
        return self.body(content).content_type(OCTET_STREAM)

    # =========================================================================
    # ENCODING
    # =========================================================================

    def compress(self, enabled: bool = True) -> "ResponseBuilder":
        """
        Mark the body for gzip compression at serialization time.

        Handlers pass request.accepts_gzip here, so the flag is only ever
        set when the client asked for it.
        """
        self._compress = enabled
        return self

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self) -> HTTPResponse:
        """
        Build and return the (immutable) HTTPResponse object.

        Returns:
            Constructed HTTPResponse object
        """
        return HTTPResponse(
            status_code=self._status,
            version=self._version,
            headers=dict(self._headers),
            body=self._body,
            should_compress=self._compress,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# Quick one-liners for the bodiless responses the server sends most often.
#
#     return not_found(request.version)
#     return created(request.version)
#
# =============================================================================

def ok(version: Version = Version.HTTP_1_1) -> HTTPResponse:
    """200 OK with no body."""
    return ResponseBuilder(version).status(HTTPStatus.OK).build()


def created(version: Version = Version.HTTP_1_1) -> HTTPResponse:
    """201 Created with no body. Sent after a successful file upload."""
    return ResponseBuilder(version).status(HTTPStatus.CREATED).build()


def not_found(version: Version = Version.HTTP_1_1) -> HTTPResponse:
    """
    404 Not Found with no body.

    Used for unknown routes, missing files, and requests that could not
    be parsed at all.
    """
    return ResponseBuilder(version).status(HTTPStatus.NOT_FOUND).build()


def internal_error(version: Version = Version.HTTP_1_1) -> HTTPResponse:
    """
    500 Internal Server Error with no body.

    Used for failed writes, bad framing, and handler crashes. Never puts
    internal details on the wire.
    """
    return ResponseBuilder(version).status(HTTPStatus.INTERNAL_SERVER_ERROR).build()
