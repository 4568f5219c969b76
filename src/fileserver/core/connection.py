"""
=============================================================================
CONNECTION
=============================================================================

Wraps one accepted client socket: read exactly one request, write exactly
one response, close.

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

TCP does not preserve message boundaries. A single request can arrive in
any number of recv() chunks:

    recv() → b"GET /read"
    recv() → b"me.txt HTTP/1.1\\r\\nHost: x\\r\\n"
    recv() → b"\\r\\n"

So the connection buffers until it has seen the end of the headers
(\\r\\n\\r\\n), then keeps reading until Content-Length body bytes are in.

=============================================================================
LIMITS
=============================================================================

    ┌──────────────────────┬──────────────────────────────────────────────┐
    │  timeout             │  Deadline for the WHOLE request, not per     │
    │                      │  recv(). A client dribbling one byte a       │
    │                      │  second still runs out of time.              │
    │                      │  → RequestTimeoutError (server answers 408)  │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │  max_request_size    │  Buffered bytes allowed before giving up.    │
    │                      │  → RequestTooLargeError (server answers 413) │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │  client closes early │  Whatever arrived is returned as-is and the  │
    │                      │  parser decides what it means.               │
    └──────────────────────┴──────────────────────────────────────────────┘

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)


HEADER_TERMINATOR = b"\r\n\r\n"

# Upper bound on the whole drain in close(), however fast the client sends
DRAIN_TIMEOUT = 0.5


class RequestTimeoutError(TimeoutError):
    """The client did not deliver a complete request before the deadline."""


class RequestTooLargeError(ValueError):
    """The request grew past max_request_size."""


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A single client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used in log lines.
        state: Current lifecycle state.
        created_at: Monotonic timestamp of accept().
        bytes_sent: Bytes written by send_response().
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.monotonic)
    bytes_sent: int = 0

    buffer_size: int = 8192
    timeout: float = 30.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else "-"

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.monotonic() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one HTTP request from the socket.

        Returns:
            The request bytes, possibly incomplete if the client closed
            early, or None if the client sent nothing at all.

        Raises:
            RequestTimeoutError: If the deadline passes first.
            RequestTooLargeError: If the request exceeds max_request_size.
        """
        self.state = ConnectionState.READING
        deadline = time.monotonic() + self.timeout if self.timeout else None

        # ─────────────────────────────────────────────────────────────────
        # STEP 1: headers
        # ─────────────────────────────────────────────────────────────────
        while HEADER_TERMINATOR not in self._buffer:
            chunk = self._recv(deadline)
            if not chunk:
                return self._buffer or None
            self._append(chunk)

        # ─────────────────────────────────────────────────────────────────
        # STEP 2: body, if the client announced one
        # ─────────────────────────────────────────────────────────────────
        header_end = self._buffer.find(HEADER_TERMINATOR)
        body_start = header_end + len(HEADER_TERMINATOR)
        content_length = self._parse_content_length(self._buffer[:header_end])

        if body_start + content_length > self.max_request_size:
            raise RequestTooLargeError(
                f"Request too large: Content-Length {content_length}"
            )

        while len(self._buffer) - body_start < content_length:
            chunk = self._recv(deadline)
            if not chunk:
                break
            self._append(chunk)

        request_end = body_start + content_length
        data, self._buffer = self._buffer[:request_end], b""
        return data

    def _append(self, chunk: bytes):
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLargeError(f"Request too large: {len(self._buffer)} bytes")

    def _recv(self, deadline: Optional[float]) -> bytes:
        """One recv() bounded by what is left of the deadline."""
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise RequestTimeoutError("Request read timeout")
            self.socket.settimeout(remaining)

        try:
            return self.socket.recv(self.buffer_size)
        except socket.timeout as exc:
            raise RequestTimeoutError("Request read timeout") from exc
        except (ConnectionResetError, BrokenPipeError):
            # Client vanished; treat like EOF
            return b""

    @staticmethod
    def _parse_content_length(headers: bytes) -> int:
        """
        Content-Length from raw header bytes, 0 if absent or unparseable.

        Done on raw bytes because it is needed before the request is parsed.
        """
        text = headers.decode("latin-1").lower()
        for line in text.split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(int(line.split(":", 1)[1].strip()), 0)
                except ValueError:
                    return 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Write a full response with sendall().

        Returns:
            True if everything was written, False if the client went away.
        """
        self.state = ConnectionState.WRITING
        if self.timeout:
            self.socket.settimeout(self.timeout)
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning("[%s] Send failed: %s", self.id, e)
            return False
        self.bytes_sent += len(data)
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self, drain: bool = True):
        """
        Close gracefully: FIN, drain what the client still sends, release.

        Args:
            drain: Wait briefly (DRAIN_TIMEOUT in total) for the client
                   to finish sending before releasing the socket. The
                   accept thread passes False so it never blocks on a
                   client.

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        if drain:
            self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug("[%s] Connection closed after %.3fs", self.id, self.age)

    def _drain(self):
        """Discard what the client still sends, for DRAIN_TIMEOUT in total."""
        deadline = time.monotonic() + DRAIN_TIMEOUT
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(1024):
                    break
        except OSError:
            pass  # includes socket.timeout

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
