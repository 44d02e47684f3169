"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

The listener loop: bind one address, accept forever, hand each accepted
socket to a callback. It does NOT read or write anything itself.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a socket file descriptor
    2. bind()      Associate the socket with an IP:PORT    ← fatal if it fails
    3. listen()    Mark socket as a "listening" socket
    4. accept()    Wait for and accept an incoming connection
    5. close()     Release the socket resources

    Each accept() creates a NEW socket for that specific client. The
    listening socket keeps listening.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR:
    Lets a restarted server bind its port right away instead of failing
    with "Address already in use" while old sockets sit in TIME_WAIT.

TCP_NODELAY:
    Disables Nagle's algorithm. Responses are written with one sendall(),
    so there is nothing to gain from batching small packets.

=============================================================================
ACCEPT ERRORS
=============================================================================

    accept() fails  ──►  log it  ──►  keep accepting

One bad accept (a client that reset mid-handshake, a momentary fd
shortage) never takes the server down. Only shutdown() ends the loop.

There is no signal handling: Ctrl+C surfaces as KeyboardInterrupt in
whoever called start().

=============================================================================
"""

import socket
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    # accept() wakes up this often to check whether shutdown() was called
    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        Args:
            config: Server configuration (host, port, backlog, ...)

        Note: This does NOT create the socket. That happens in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is listening; cleared again on cleanup
        self._ready_event = threading.Event()

    @property
    def address(self) -> Tuple[str, int]:
        """
        The server's bound address (IP, port).

        After bind this is the REAL address, so port=0 in the config
        turns into whatever port the OS picked.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the server socket.

        Returns:
            Configured socket ready for binding.
        """
        # AF_INET = IPv4, SOCK_STREAM = TCP
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() blocks for at most this long, then we re-check _running
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)

        return sock

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen, and accept connections until shutdown().

        This method BLOCKS.

        Args:
            connection_handler: Called with every accepted Connection. It
                must return quickly (HTTPServer starts a thread and returns).

        Raises:
            OSError: If the address can't be bound.
        """
        self._socket = self._create_socket()

        try:
            # Common errors:
            # - Address already in use: Another process has this port
            # - Permission denied: Ports < 1024 require root
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._ready_event.set()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Main loop for accepting connections.

        Args:
            connection_handler: Callback for each new connection.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Normal: lets us notice shutdown() within a second
                continue
            except OSError as e:
                if not self._running:
                    break  # Listening socket closed during shutdown
                logger.error(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )

            # Hand off to HTTP server (which starts a worker thread)
            connection_handler(conn)

    def shutdown(self):
        """
        Stop the accept loop.

        Safe to call from any thread, any number of times. The loop exits
        within ACCEPT_POLL_INTERVAL seconds. Connections already handed to
        workers finish on their own.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the socket is listening.

        Useful for tests that start the server in a background thread.

        Returns:
            True if the server is listening, False on timeout.
        """
        return self._ready_event.wait(timeout)

    def _cleanup(self):
        """Close the listening socket."""
        self._ready_event.clear()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        logger.info("Socket server stopped")
