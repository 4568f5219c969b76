"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop.

=============================================================================
SOCKET LIFECYCLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   socket()      Create TCP socket (AF_INET, SOCK_STREAM)            │
    │      │                                                               │
    │   setsockopt()  SO_REUSEADDR: restart without "Address in use"      │
    │      │                                                               │
    │   bind()        Claim host:port (port 0 = let the OS pick)          │
    │      │                                                               │
    │   listen()      Queue up to `backlog` pending connections           │
    │      │                                                               │
    │   accept() ◄─┐  Wait up to 1s for a client                          │
    │      │       │                                                       │
    │   handler(conn)  Hand the Connection off; must not block            │
    │      │       │                                                       │
    │      └───────┘  Loop until shutdown()                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The 1 second accept() timeout is what makes shutdown() work: the loop
wakes up regularly and re-checks the running flag.

SIGINT and SIGTERM trigger the same graceful shutdown, when the server
runs on the main thread (signal handlers cannot be installed elsewhere).

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Low-level TCP server.

        def on_connection(conn: Connection):
            pool.submit(handle, args=(conn,))

        server = SocketServer(config)
        server.start(on_connection)      # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound_address: Optional[Tuple[str, int]] = None

        # Set once listening; lets other threads wait for startup
        self.ready = threading.Event()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); reflects the real port when 0 was asked for."""
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        # Responses are written in one sendall(); no need to wait for Nagle
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """Install SIGINT/SIGTERM handlers that call shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            logger.info("Received %s, initiating shutdown...", signal.Signals(signum).name)
            self.shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Args:
            connection_handler: Called with every accepted Connection. It
                                runs on the accept thread, so it must only
                                dispatch the work.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()
        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error("Failed to bind to %s:%s: %s", self.config.host, self.config.port, e)
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._setup_signals()

        logger.info("Server listening on %s:%s", *self.address)
        self.ready.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error("Accept error: %s", e)
                break

            logger.debug("Accepted connection from %s:%s", *client_address[:2])

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            )

            try:
                connection_handler(conn)
            except Exception:
                # One bad connection never takes the listener down
                logger.exception("[%s] Connection dispatch failed", conn.id)
                conn.close()

    def shutdown(self):
        """Stop the accept loop. Idempotent; safe from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self.ready.clear()
        logger.info("Socket server stopped")
