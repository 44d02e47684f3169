"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per dispatched request, with timing.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default), close to Apache's common log format:

        127.0.0.1 - - [18/Oct/2026:10:15:32 +0000] "GET /echo/abc" 200 3 0.41ms

    JSON, one object per line for log aggregators:

        {"request_id": "a1b2c3d4", "method": "GET", "path": "/echo/abc",
         "version": "HTTP/1.1", "client_ip": "127.0.0.1", ...}

The size is the LOGICAL body length (before gzip). The wire length is
only known once the response is serialized, after this middleware returns.

Requests that fail to parse never reach dispatch, so they never reach
this middleware either; the server logs those itself at WARNING.

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


# Namespaced so access lines can be routed or silenced on their own:
#   logging.getLogger("minihttp.access").setLevel(logging.WARNING)
logger = logging.getLogger("minihttp.access")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    request_id:     Short random ID, ties together lines about one request
    method:         HTTP method (GET, POST, ...)
    path:           Raw request path
    version:        HTTP version label the client used
    client_ip:      Client's IP address
    user_agent:     User-Agent header or "-"
    status_code:    HTTP response code
    content_length: Response body size in bytes (uncompressed)
    duration_ms:    Dispatch time
    timestamp:      When the request was processed
    """

    request_id: str
    method: str
    path: str
    version: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        """Format as an Apache-style access line."""
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Put it FIRST in the pipeline so the timing covers everything behind it:

        pipeline.add(LoggingMiddleware(log_format="json"))

    Exceptions from the handler are logged and re-raised; turning them
    into a 500 is the server's job.
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        """
        Initialize logging middleware.

        Args:
            log_format: "text" (human readable) or "json" (machine parseable)
            log_level: Level the access lines are emitted at.
            skip_paths: Exact paths not worth logging.
        """
        self.log_format = log_format
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method.value} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        if request.path in self.skip_paths:
            return response

        log_entry = RequestLog(
            request_id=request_id,
            method=request.method.value,
            path=request.path,
            version=request.version.label,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status_code),
            content_length=len(response.body or b""),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(self.log_level, log_entry.to_text())

        return response
