"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this server ever emits, plus the reason-phrase
lookup used when writing the status line.

    HTTP/1.1 404 Not Found
             ─┬─ ────┬────
              │      │
              │      └── Reason phrase (human-readable)
              └───────── Status code (machine-readable)

=============================================================================
WHY SUCH A SMALL TABLE?
=============================================================================

The server only has four outcomes:

    200 OK                     - Request handled, body (maybe) attached
    201 Created                - File written by POST /files/{name}
    404 Not Found              - Unknown route, missing file, bad request
    500 Internal Server Error  - Write failed, bad framing, handler crashed

Any other numeric code a caller puts on a response is still written to the
wire, but with the placeholder phrase "Unknown Status". Clients are required
to ignore the phrase anyway (RFC 7230 §3.1.2), so this is safe.

=============================================================================
"""

from enum import IntEnum


UNKNOWN_STATUS_PHRASE = "Unknown Status"


class HTTPStatus(IntEnum):
    """
    Status codes emitted by the server.

    IntEnum means members compare equal to plain ints:

        HTTPStatus.OK == 200        # True
        f"{HTTPStatus.NOT_FOUND}"   # "404"
    """

    OK = 200
    CREATED = 201
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """Reason phrase for this status code."""
        return _STATUS_PHRASES[self]

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        return self >= 400

    def __str__(self) -> str:
        # Keep "HTTP/1.1 200 OK" formatting stable across Python versions
        return str(int(self))


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


def reason_phrase(status_code: int) -> str:
    """
    Get the reason phrase for any numeric status code.

    Args:
        status_code: Numeric status (an HTTPStatus member or a plain int).

    Returns:
        The phrase from the fixed table, or "Unknown Status".

    Example:
        reason_phrase(201)  # "Created"
        reason_phrase(418)  # "Unknown Status"
    """
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return UNKNOWN_STATUS_PHRASE
