"""
=============================================================================
MAIN HTTP SERVER
=============================================================================

Ties the pieces together: the socket server accepts, a new thread per
connection reads, parses, dispatches and writes, then closes.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. CLIENT CONNECTS
       SocketServer.accept() → Connection → new daemon thread

    2. READ HEADERS (worker thread)
       Connection.read_head(): line by line up to the blank line,
       noting Content-Length on the way
       non-numeric Content-Length ──────────────────────► 500, close

    3. READ BODY (only if Content-Length > 0)
       Connection.read_body(n): exactly n bytes
       peer hangs up early ─────────────────────────────► 500, close

    4. PARSE
       RequestParser.parse(head + body)
       bad request line / method / version / encoding ──► 404, close

    5. DISPATCH
       LoggingMiddleware → Router.dispatch → handler
       handler raises ──────────────────────────────────► 500, close

    6. SERIALIZE + SEND
       response.to_bytes() (gzip here if marked) → sendall()

    7. CLOSE
       Always. One request per connection, no keep-alive.

Every error answers in the version the client claimed (when it got far
enough to claim one) and is confined to its own connection.

=============================================================================
"""

import logging
import threading
from typing import Optional, Callable, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, IncompleteBodyError
from .http import (
    HTTPRequest, RequestParser, HTTPParseError, Version,
    HTTPResponse, Router, build_router,
    internal_error, not_found,
)
from .middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Thread-per-connection HTTP/1.1 server.

    Usage:
        server = HTTPServer(ServerConfig(directory="/tmp/data"))
        server.run()   # blocks until Ctrl+C

    Or from another thread (tests):
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready(5.0)
        ...
        server.shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Initialize the HTTP server.

        Args:
            config: Server configuration. Uses the defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()

        # The fixed route table for this config; shared read-only by every
        # connection thread
        self._router = build_router(self.config)

        # Access log first, so its timing covers everything behind it
        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))

        self._handler: Callable[[HTTPRequest], HTTPResponse] = self._middleware.wrap(
            self._router.dispatch
        )

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """
        Add middleware around dispatch (after the access log).

        Returns:
            Self for method chaining.
        """
        self._middleware.add(middleware)
        self._handler = self._middleware.wrap(self._router.dispatch)
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port.

        Raises:
            OSError: If the address can't be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()

        directory = self.config.directory or "(none, /files disabled)"
        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        logger.info(f"Files directory: {directory}")
        for route in self._router.routes():
            logger.debug(f"Route {route.path} → {route.name}")

        try:
            self._socket_server.start(self._spawn_worker)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. In-flight connections finish on their own."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is up (see SocketServer)."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("minihttp").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _spawn_worker(self, conn: Connection):
        """
        Hand a connection to its own thread.

        Called by SocketServer on the accept thread, so it must return
        immediately. Daemon threads: a stuck client never blocks exit.
        """
        worker = threading.Thread(
            target=self.handle_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        worker.start()

    def handle_connection(self, conn: Connection):
        """
        Serve exactly one request on `conn`, then close it.

        Never raises: whatever goes wrong is logged and stays inside this
        connection.
        """
        with conn:  # Context manager ensures connection is closed
            try:
                response = self._process(conn)
                if response is None:
                    return

                conn.send_response(response.to_bytes(self.config.compression_level))

            except OSError as e:
                # Timeouts, resets mid-read: nothing left to answer
                logger.warning(f"[{conn.id}] Socket error: {e}")

            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _process(self, conn: Connection) -> Optional[HTTPResponse]:
        """
        Read, parse and dispatch one request.

        Returns:
            The response to send, or None if the peer sent nothing at all.
        """
        # ─────────────────────────────────────────────────────────────────
        # READ HEADERS
        # ─────────────────────────────────────────────────────────────────
        try:
            head = conn.read_head()
        except HTTPParseError as e:
            logger.warning(f"[{conn.id}] Framing error: {e}")
            return internal_error(e.version or Version.HTTP_1_1)

        if head is None:
            logger.debug(f"[{conn.id}] Peer closed without sending a request")
            return None

        # ─────────────────────────────────────────────────────────────────
        # READ BODY
        # ─────────────────────────────────────────────────────────────────
        body = b""
        if conn.content_length > 0:
            try:
                body = conn.read_body(conn.content_length)
            except IncompleteBodyError as e:
                logger.warning(f"[{conn.id}] Framing error: {e}")
                return internal_error(conn.nominal_version or Version.HTTP_1_1)

        # ─────────────────────────────────────────────────────────────────
        # PARSE
        # ─────────────────────────────────────────────────────────────────
        try:
            request = self._parser.parse(head + body, conn.address)
        except HTTPParseError as e:
            logger.warning(f"[{conn.id}] Bad request ({e.kind.value}): {e}")
            return not_found(e.version or Version.HTTP_1_1)

        # ─────────────────────────────────────────────────────────────────
        # DISPATCH (middleware + router)
        # ─────────────────────────────────────────────────────────────────
        conn.state = ConnectionState.DISPATCHING
        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            return internal_error(request.version)
