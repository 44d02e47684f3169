"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses raw HTTP request bytes into structured HTTPRequest objects, by hand.
No http.client, no email.parser, no third-party parser: just bytes, lines
and string splitting.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ─────────────────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    POST /files/notes.txt HTTP/1.1\r\n                           │ │
    │  │    ─┬── ────────┬──────── ───┬────                              │ │
    │  │     │           │            │                                  │ │
    │  │   Method      Path        Version                               │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    Host: localhost:4221\r\n                                     │ │
    │  │    User-Agent: curl/8.4.0\r\n                                   │ │
    │  │    Content-Length: 5\r\n                                        │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                        ← end of headers                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY (optional) ──────────────────────────────────────────────┐ │
    │  │    hello                       ← exactly Content-Length bytes   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHAT THIS PARSER ACCEPTS
=============================================================================

    Methods:   GET POST PUT DELETE PATCH        (exact, case-sensitive)
    Versions:  HTTP/1.0 HTTP/1.1 HTTP/2.0       (labels only)
    Lines:     \r\n, or bare \n from lenient clients (netcat, telnet)
    Headers:   "Name: Value", split on the FIRST ": "
               Name is lower-cased, value is kept raw
               Repeated names: the last one wins

Anything that breaks these rules raises HTTPParseError carrying a
ParseErrorKind, so the caller can pick the right status code without
string-matching error messages.

The parser never decides how many body bytes to read. That is the
connection's job (Content-Length framing happens while the header lines
stream in). By the time bytes reach parse(), the body is whatever follows
the blank line.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple
import logging


logger = logging.getLogger(__name__)


class Method(Enum):
    """HTTP methods the server understands. Values are the wire literals."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class Version(Enum):
    """
    HTTP version labels.

    Recognized as labels only. The server behaves the same for all three:
    one request, one response, close. HTTP/2.0 in particular is just a
    string here; there is no binary framing.
    """

    HTTP_1_0 = "HTTP/1.0"
    HTTP_1_1 = "HTTP/1.1"
    HTTP_2_0 = "HTTP/2.0"

    @property
    def label(self) -> str:
        return self.value


class ParseErrorKind(Enum):
    """Why a request could not be parsed."""

    INVALID_REQUEST = "invalid_request"                    # Request line is not 3 tokens
    INVALID_METHOD = "invalid_method"                      # Method not in Method
    INVALID_VERSION = "invalid_version"                    # Version not in Version
    MALFORMED_CONTENT_LENGTH = "malformed_content_length"  # Non-numeric Content-Length
    ENCODING_ERROR = "encoding_error"                      # Head is not valid UTF-8


class HTTPParseError(Exception):
    """
    Raised when an HTTP request cannot be parsed.

    Carries the kind of failure and, when it could be determined, the
    version the client claimed to speak. The connection handler echoes
    that version in the error response:

        "GET / HTTP/1.0" with a bad method → "HTTP/1.0 404 Not Found"
        garbage request line               → "HTTP/1.1 404 Not Found"

    Status codes:

        404 Not Found              - every parse-time failure
        500 Internal Server Error  - malformed Content-Length (framing)

    Interview insight: Custom exceptions with metadata (like status_code)
    make error handling cleaner than passing tuples or using generic exceptions.
    """

    def __init__(
        self,
        message: str,
        kind: ParseErrorKind = ParseErrorKind.INVALID_REQUEST,
        version: Optional[Version] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.version = version  # Nominal version, if the request line had one

    @property
    def status_code(self) -> int:
        """HTTP status to answer with."""
        if self.kind is ParseErrorKind.MALFORMED_CONTENT_LENGTH:
            return 500
        return 404

    @property
    def is_framing_error(self) -> bool:
        return self.kind is ParseErrorKind.MALFORMED_CONTENT_LENGTH


@dataclass(frozen=True)
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    =========================================================================
    REQUEST LIFECYCLE
    =========================================================================

        Raw bytes                  HTTPRequest                 Handler
        from socket    ──parse──►   (frozen)     ──route──►    function
           │                            │                          │
        b"GET /echo/hi               HTTPRequest(               def echo(
           HTTP/1.1..."                method=Method.GET,         request,
                                       path="/echo/hi",           text):
                                       headers={...},               ...
                                       body=None)

    Built once per connection, never modified afterwards (frozen=True),
    thrown away when the connection closes.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:   Method enum member
        path:     Raw request target, NOT percent-decoded ("/echo/a%20b")
        version:  Version enum member
        headers:  Lower-cased name → raw value
        body:     Bytes after the blank line, or None when nothing followed it
        client_address: (ip, port) of the peer, ("", 0) when unknown

    =========================================================================
    """

    method: Method
    path: str
    version: Version = Version.HTTP_1_1
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    client_address: tuple[str, int] = ("", 0)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def request_line(self) -> str:
        """
        Re-derive the request line from the parsed parts.

        For every valid request, this reproduces the three tokens the
        client sent: "GET /echo/abc HTTP/1.1".
        """
        return f"{self.method.value} {self.path} {self.version.label}"

    @property
    def segments(self) -> List[str]:
        """
        The path split on "/".

        "/"          → ["", ""]
        "/echo/abc"  → ["", "echo", "abc"]
        """
        return self.path.split("/")

    @property
    def user_agent(self) -> str:
        """User-Agent header value, or empty string."""
        return self.get_header("User-Agent")

    @property
    def accepts_gzip(self) -> bool:
        """
        Did the client advertise gzip support?

        A case-insensitive substring test on Accept-Encoding. No q-values,
        no content negotiation: "gzip;q=0" still counts as yes.
        """
        return "gzip" in self.get_header("Accept-Encoding").lower()

    @property
    def content_length(self) -> int:
        """
        Declared Content-Length, 0 if absent or not a number.

        Informational only; the connection has already framed the body.
        """
        value = self.get_header("Content-Length").strip()
        return int(value) if value.isascii() and value.isdigit() else 0

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value (case-insensitive lookup).

        Works because headers are stored with lower-cased names:

            request.get_header("Content-Type")
            request.get_header("content-type")   # same thing
        """
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER ARCHITECTURE
    ==========================================================================

        Raw Request Bytes
              │
              ▼
        ┌───────────────────────────────────────────────────────────────────┐
        │  1. Split head / body at the first blank line                     │
        │     (CRLF, bare LF, or a mix of the two)                          │
        │     ▼                                                             │
        │  2. Decode head as UTF-8                                          │
        │     Invalid? → ENCODING_ERROR                                     │
        │     ▼                                                             │
        │  3. Parse request line: exactly METHOD PATH VERSION               │
        │     Wrong token count? → INVALID_REQUEST                          │
        │     Unknown method?    → INVALID_METHOD                           │
        │     Unknown version?   → INVALID_VERSION                          │
        │     ▼                                                             │
        │  4. Parse "Name: Value" header lines                              │
        │     ▼                                                             │
        │  5. Build the (frozen) HTTPRequest                                │
        └───────────────────────────────────────────────────────────────────┘

    ==========================================================================
    """

    # Any empty line ends the head, whatever mix of CRLF and bare LF
    # surrounds it. Same rule as Connection.read_head().
    HEADER_TERMINATORS: Tuple[bytes, ...] = (b"\r\n\r\n", b"\n\r\n", b"\n\n")

    # The one separator allowed between a header name and its value.
    HEADER_SEPARATOR = ": "

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Header block bytes, optionally followed by body bytes.
            client_address: Client's (ip, port) tuple, for logging.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        # =====================================================================
        # STEP 1: Split head and body at the blank line
        # =====================================================================
        head, body = self._split_head_and_body(data)

        # =====================================================================
        # STEP 2: Decode the head
        # =====================================================================
        # The body stays as bytes (it may be a binary file upload).
        try:
            head_text = head.decode("utf-8")
        except UnicodeDecodeError as e:
            raise HTTPParseError(
                f"Request head is not valid UTF-8: {e}",
                ParseErrorKind.ENCODING_ERROR,
            )

        # =====================================================================
        # STEP 3: Split into lines
        # =====================================================================
        # Splitting on \n and stripping a trailing \r accepts both
        # "Host: x\r\n" and "Host: x\n".
        lines = [line.rstrip("\r") for line in head_text.split("\n")]
        if not lines[0].strip():
            raise HTTPParseError("Empty request", ParseErrorKind.INVALID_REQUEST)

        # =====================================================================
        # STEP 4: Request line
        # =====================================================================
        method, path, version = self._parse_request_line(lines[0])

        # =====================================================================
        # STEP 5: Headers
        # =====================================================================
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=body,
            client_address=client_address,
        )

    def _split_head_and_body(self, data: bytes) -> Tuple[bytes, Optional[bytes]]:
        """
        Split raw bytes at the first header terminator.

        The body is kept byte-for-byte (line separators inside it are
        untouched). Nothing after the terminator means no body at all.
        """
        found = [
            (index, terminator)
            for terminator in self.HEADER_TERMINATORS
            for index in [data.find(terminator)]
            if index != -1
        ]
        if not found:
            # No blank line at all (client hung up early). Treat it all as head.
            return data, None

        # Earliest blank line wins, so a body can never swallow the head.
        index, terminator = min(found)
        body = data[index + len(terminator):]
        return data[:index], (body or None)

    def _parse_request_line(self, line: str) -> Tuple[Method, str, Version]:
        """
        Parse the request line.

            METHOD SP PATH SP VERSION

            "GET /echo/abc HTTP/1.1"
             ─┬─ ────┬──── ───┬────
              │      │        │
            Method  Path   Version

        Args:
            line: The request line, without its line terminator.

        Returns:
            Tuple of (method, path, version).

        Raises:
            HTTPParseError: If the line is malformed.
        """
        parts = line.split()
        if len(parts) != 3:
            raise HTTPParseError(
                f"Invalid request line: {line!r}",
                ParseErrorKind.INVALID_REQUEST,
            )

        method_token, path, version_token = parts

        # Look the version up first so a bad method can still be answered
        # in the version the client asked for.
        version = self._lookup_version(version_token)

        try:
            method = Method(method_token)
        except ValueError:
            raise HTTPParseError(
                f"Invalid method: {method_token}",
                ParseErrorKind.INVALID_METHOD,
                version=version,
            )

        if version is None:
            raise HTTPParseError(
                f"Unsupported HTTP version: {version_token}",
                ParseErrorKind.INVALID_VERSION,
            )

        return method, path, version

    @staticmethod
    def _lookup_version(token: str) -> Optional[Version]:
        try:
            return Version(token)
        except ValueError:
            return None

    def _parse_headers(self, lines: List[str]) -> Dict[str, str]:
        """
        Parse "Name: Value" lines into a dictionary.

        Stops at the first empty line. Names are lower-cased, values are
        kept exactly as sent. A repeated name overwrites the earlier value.

        Args:
            lines: Header lines (request line already removed).

        Returns:
            Dictionary of lower-cased header name → value.
        """
        headers: Dict[str, str] = {}

        for line in lines:
            if not line:
                break

            name, separator, value = line.partition(self.HEADER_SEPARATOR)
            if not separator:
                logger.debug(f"Ignoring header line without ': ' separator: {line!r}")
                continue

            headers[name.lower()] = value

        return headers


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Parse an HTTP request in one call.

    Args:
        data: Raw HTTP request bytes.
        client_address: Client's (ip, port) tuple.

    Returns:
        Parsed HTTPRequest object.
    """
    return RequestParser().parse(data, client_address)
