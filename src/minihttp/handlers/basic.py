"""
Small built-in handlers: index, user-agent and echo.

Each one takes the parsed request (plus any captured path segment) and
returns an HTTPResponse in the same HTTP version the client used.
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, ok


def index(request: HTTPRequest) -> HTTPResponse:
    """GET / → 200 with no body, whatever the headers say."""
    return ok(request.version)


def user_agent(request: HTTPRequest) -> HTTPResponse:
    """
    GET /user-agent → the client's User-Agent header as text/plain.

    A missing header gives an empty (but present) body. Never compressed.
    """
    return (ResponseBuilder(request.version)
        .text(request.user_agent)
        .build())


def echo(request: HTTPRequest, text: str) -> HTTPResponse:
    """
    GET /echo/{text} → {text} verbatim as text/plain.

    The segment is NOT percent-decoded: /echo/a%20b answers "a%20b".
    Gzipped when the client sent Accept-Encoding: gzip.
    """
    return (ResponseBuilder(request.version)
        .text(text)
        .compress(request.accepts_gzip)
        .build())
