"""
=============================================================================
HTTP RESPONSE
=============================================================================

The structured response produced for every request, and its serialization
to the bytes written on the socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Content-Type: text/plain\r\n            ← content_type      │ │
    │  │    Content-Length: 5\r\n                   ← len(body)         │ │
    │  │    Accept-Ranges: none\r\n                 ← accept_ranges     │ │
    │  │    Date: Sun, 18 Oct 2026 12:00:00 GMT\r\n                     │ │
    │  │    Server: PyFileServer/1.0\r\n                                │ │
    │  │    Connection: close\r\n                   ← one request only  │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    hello                                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Content-Length is never stored. It is computed from the body every time,
so it cannot drift out of sync with what is actually sent.

=============================================================================
ACCEPT-RANGES
=============================================================================

Range requests (206 Partial Content) are not implemented, so every
response says so honestly with "Accept-Ranges: none". AcceptRanges.BYTES
exists for completeness of the header's value space.

=============================================================================
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "PyFileServer/1.0"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"
PLAIN_CONTENT_TYPE = "text/plain; charset=utf-8"


class AcceptRanges(Enum):
    """Values of the Accept-Ranges header."""
    BYTES = "bytes"
    NONE = "none"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        FileHandler returns      to_bytes()              Socket sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
            │                       │                        │
        HTTPResponse(            b"HTTP/1.1 200 OK\r\n   connection.send_response(
          status=200,              Content-Type: ...\r\n     response
          content_type=...,        \r\n                    )
          body=b"hello"            hello"
        )

    =========================================================================
    """

    status: HTTPStatus = HTTPStatus.OK
    content_type: str = HTML_CONTENT_TYPE
    body: bytes = b""
    accept_ranges: AcceptRanges = AcceptRanges.NONE
    version: str = "HTTP/1.1"

    @property
    def content_length(self) -> int:
        """Byte length of the body."""
        return len(self.body)

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def headers(self, server_name: str = DEFAULT_SERVER_NAME) -> Dict[str, str]:
        """
        The header block, in the order it goes on the wire.

        Args:
            server_name: Value for the Server header.
        """
        return {
            "Content-Type": self.content_type,
            "Content-Length": str(self.content_length),
            "Accept-Ranges": self.accept_ranges.value,
            "Date": format_http_date(datetime.now(timezone.utc)),
            "Server": server_name,
            "Connection": "close",
        }

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the response to bytes for sending over socket.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 200 OK\r\n              ← Status line
            Content-Type: text/plain\r\n
            Content-Length: 5\r\n            ← Always len(body)
            ...\r\n
            \r\n                             ← Empty line (separator)
            hello                            ← Body bytes, untouched

        =====================================================================

        Args:
            server_name: Server identifier for Server header.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        lines = [self.status_line]
        for name, value in self.headers(server_name).items():
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("latin-1", errors="replace") + b"\r\n"
        return header_bytes + self.body


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sun, 18 Oct 2026 12:00:00 GMT

    HTTP dates are always GMT. Aware datetimes are converted first; naive
    ones are assumed to already be UTC.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def html_response(html: str, status: HTTPStatus = HTTPStatus.OK) -> HTTPResponse:
    """An HTML page (listing or not-found page)."""
    return HTTPResponse(
        status=status,
        content_type=HTML_CONTENT_TYPE,
        body=html.encode("utf-8", errors="replace"),
    )


def text_response(text: str, status: HTTPStatus = HTTPStatus.OK) -> HTTPResponse:
    """A short plain-text message."""
    return HTTPResponse(
        status=status,
        content_type=PLAIN_CONTENT_TYPE,
        body=text.encode("utf-8", errors="replace"),
    )


def error_response(status: HTTPStatus, message: Optional[str] = None) -> HTTPResponse:
    """
    A connection-level error answer (408, 413, 503, 505).

    The body is the message if given, otherwise "<code> <phrase>".

        >>> error_response(HTTPStatus.SERVICE_UNAVAILABLE).body
        b'503 Service Unavailable\\n'
    """
    text = message if message is not None else f"{int(status)} {status.phrase}"
    return text_response(text + "\n", status)
