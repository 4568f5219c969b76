"""
=============================================================================
FILE SERVER
=============================================================================

Wires the pieces together: socket server, worker pool, request parser,
file handler, access log.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │  ACCEPT THREAD                                                       │
    │  ─────────────                                                       │
    │  SocketServer.accept()                                               │
    │        │                                                             │
    │        ▼                                                             │
    │  _handle_connection(conn) ── pool full? ──► 503, close               │
    │        │                                                             │
    │        │ submit, return immediately                                  │
    │        ▼                                                             │
    │  WORKER THREAD                                                       │
    │  ─────────────                                                       │
    │  _process_connection(conn)                                           │
    │        │                                                             │
    │        ├── read_request()   timeout ──► 408   too large ──► 413     │
    │        ├── parse_request()  bad version ──► 505                      │
    │        ├── FileHandler.handle()  OSError ──► log, close, no answer  │
    │        ├── send_response()                                           │
    │        └── close()                                                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Exactly one request per connection; every response carries
"Connection: close".

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .access_log import AccessLogger
from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .core.connection import RequestTimeoutError, RequestTooLargeError
from .handlers import FileHandler
from .http import (
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    MalformedVersionError,
    RequestParser,
    error_response,
)


logger = logging.getLogger(__name__)


class FileServer:
    """
    Multi-threaded static file server.

    =========================================================================
    USAGE
    =========================================================================

        server = FileServer(ServerConfig(root_dir="/srv/files", port=8000))
        server.run()                  # blocks until Ctrl+C / SIGTERM

        # From another thread (tests):
        threading.Thread(target=server.run, daemon=True).start()
        server.wait_until_ready(5.0)
        ...
        server.shutdown()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults serve the current
                    directory on 127.0.0.1:7878.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser()
        self._handler = FileHandler(self.config.root_dir)
        self._access_log = AccessLogger(self.config.log_format)

        self._running = False

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.ready.wait(timeout)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start serving (blocking).

        Args:
            host: Override config host.
            port: Override config port.

        Raises:
            OSError: If the address cannot be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._thread_pool.start()
        self._running = True

        logger.info("Serving %s", self._handler.root)

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Safe to call from any thread."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = self.config.log_level_number
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("fileserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout or 30.0)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Dispatch a connection to the pool (runs on the accept thread).

        Never waits for a worker: a saturated pool gets an immediate 503.
        """
        try:
            submitted = self._thread_pool.submit(self._process_connection, args=(conn,))
        except RuntimeError:
            # Pool already stopping
            submitted = False

        if not submitted:
            logger.warning("[%s] Thread pool full, rejecting connection", conn.id)
            self._send(conn, None, error_response(HTTPStatus.SERVICE_UNAVAILABLE))
            conn.close(drain=False)

    def _process_connection(self, conn: Connection):
        """Read, parse, answer and close one connection (runs on a worker)."""
        with conn:
            request = self._read_request(conn)
            if request is None:
                return

            try:
                response = self._handler.handle(request)
            except OSError:
                # Drop the connection rather than send a misleading answer
                logger.exception("[%s] Failed to build response for %s", conn.id, request.target)
                return

            self._send(conn, request, response)

    def _read_request(self, conn: Connection) -> Optional[HTTPRequest]:
        """
        Read and parse the request, answering connection-level errors.

        Returns:
            The request, or None if the connection is already answered
            or was closed by the client.
        """
        try:
            raw = conn.read_request()
        except RequestTimeoutError:
            logger.info("[%s] Request timed out from %s", conn.id, conn.client_ip)
            self._send(conn, None, error_response(HTTPStatus.REQUEST_TIMEOUT))
            return None
        except RequestTooLargeError as e:
            logger.warning("[%s] %s", conn.id, e)
            self._send(conn, None, error_response(HTTPStatus.PAYLOAD_TOO_LARGE))
            return None
        except OSError as e:
            logger.warning("[%s] Read failed: %s", conn.id, e)
            return None

        if raw is None:
            logger.debug("[%s] Client closed without sending a request", conn.id)
            return None

        try:
            return self._parser.parse(raw)
        except MalformedVersionError as e:
            logger.warning("[%s] %s", conn.id, e)
            response = error_response(HTTPStatus.HTTP_VERSION_NOT_SUPPORTED, str(e))
            self._send(conn, None, response)
            return None

    def _send(self, conn: Connection, request: Optional[HTTPRequest], response: HTTPResponse):
        """Serialize, write and access-log a response."""
        if conn.send_response(response.to_bytes(self.config.server_name)):
            self._access_log.log(conn.id, conn.client_ip, request, response, conn.age)


def create_server(config: Optional[ServerConfig] = None) -> FileServer:
    """
    Create a file server.

    Example:
        server = create_server(ServerConfig(root_dir="public", port=8000))
        server.run()
    """
    return FileServer(config)
