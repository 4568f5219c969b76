"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes read from a client socket into an immutable
HTTPRequest. Pure text transformation, no I/O.

=============================================================================
WHAT THE PARSER LOOKS AT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE (everything before the first \r\n) ──────────────┐ │
    │  │                                                                 │ │
    │  │    GET /docs/readme.txt HTTP/1.1\r\n                           │ │
    │  │    ─┬─ ────────┬─────── ────┬───                               │ │
    │  │     │          │            │                                   │ │
    │  │   Method      Path       Version                                │ │
    │  │   token 1    token 2     any token equal to a known version    │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ REQUEST HEAD (skipped) ───────────────────────────────────────┐ │
    │  │    Host: localhost:7878\r\n                                    │ │
    │  │    User-Agent: curl/8.5.0\r\n                                  │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ SEPARATOR ────────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADER BLOCK (after \r\n\r\n, until the next empty line) ─────┐ │
    │  │    X-Token: abc\r\n                                             │ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY (raw bytes after the first \r\n\r\n) ────────────────────┐ │
    │  │    X-Token: abc\r\n\r\nname=value                               │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PERMISSIVE BY DEFAULT, STRICT ON VERSION
=============================================================================

    Part      Malformed input                  Result
    ───────   ──────────────────────────────   ─────────────────────────
    Method    unknown verb / no request line   Method.UNRECOGNIZED
    Path      fewer than three tokens          ""
    Headers   a line without ":"               {} (whole block dropped)
    Headers   no \r\n\r\n separator             {}
    Body      no \r\n\r\n separator             b""
    Version   no HTTP/1.0, 1.1, 2, 2.0 token   MalformedVersionError

The version is the one deliberate hard boundary: a request without a
recognizable protocol version is not HTTP and is rejected with 505.

The header map comes from the block AFTER the first blank line, not from
the lines between the request line and it. A plain GET with no body
therefore has no headers. Connection framing (Content-Length) reads the
raw head itself and does not depend on this map.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


CRLF = "\r\n"
HEADER_TERMINATOR = b"\r\n\r\n"


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the HTTP status code the connection handler should answer with.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class MalformedVersionError(HTTPParseError):
    """
    No recognizable protocol version on the request line.

    The decoded request text is kept on ``request`` so the server can log
    exactly what the client sent.
    """

    def __init__(self, request: str):
        first_line = request.split(CRLF, 1)[0]
        super().__init__(
            f"Unknown protocol version in {first_line!r}",
            status_code=505,  # HTTP Version Not Supported
        )
        self.request = request


class Method(Enum):
    """Request methods the server distinguishes."""
    GET = "GET"
    POST = "POST"
    UNRECOGNIZED = "UNRECOGNIZED"

    @classmethod
    def from_token(cls, token: Optional[str]) -> "Method":
        """Map a request-line token to a Method; never fails."""
        if token == "GET":
            return cls.GET
        if token == "POST":
            return cls.POST
        return cls.UNRECOGNIZED


class Version(Enum):
    """Protocol versions recognized on the request line (parsed, not negotiated)."""
    HTTP_1_0 = "HTTP/1.0"
    HTTP_1_1 = "HTTP/1.1"
    HTTP_2_0 = "HTTP/2.0"

    @classmethod
    def from_token(cls, token: str) -> Optional["Version"]:
        """Exact-match a token against the known version strings."""
        return _VERSION_TOKENS.get(token)

    def __str__(self) -> str:
        return self.value


# "HTTP/2" and "HTTP/2.0" are both accepted spellings of the same version
_VERSION_TOKENS = {
    "HTTP/1.0": Version.HTTP_1_0,
    "HTTP/1.1": Version.HTTP_1_1,
    "HTTP/2": Version.HTTP_2_0,
    "HTTP/2.0": Version.HTTP_2_0,
}


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:   Method enum (GET, POST, UNRECOGNIZED)

        path:     Request target with leading "/" removed, exactly as sent
                  otherwise. Still percent-encoded:
                      "GET /my%20docs/ HTTP/1.1"  →  "my%20docs/"
                  Decoding is done once, by the path resolver.

        version:  Version enum

        headers:  Header name → value, from the block after the first
                  blank line. Names keep the case the client used; a
                  repeated header keeps its last value.

        body:     Raw bytes after the blank line (b"" if none)

    =========================================================================

    Frozen: a request is built once by the parser and only read afterwards.
    """

    method: Method
    path: str
    version: Version = Version.HTTP_1_1
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def target(self) -> str:
        """The request target as the client wrote it (leading slash restored)."""
        return "/" + self.path

    def get_header(self, name: str, default: str = "") -> str:
        """
        Case-insensitive header lookup.

        Headers are stored with their original casing, so this scans
        instead of indexing.
        """
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

        Raw bytes
            │
            ├──► decode (UTF-8, invalid bytes replaced)
            │
            ├──► request line ──► method, path, version
            │
            ├──► lines after \r\n\r\n ──► headers
            │
            └──► bytes after \r\n\r\n ──► body
    """

    def parse(self, data: bytes) -> HTTPRequest:
        """
        Parse raw HTTP request data.

        Args:
            data: Bytes read from the client socket.

        Returns:
            The parsed request.

        Raises:
            MalformedVersionError: If the request line has no known version.
        """
        text = data.decode("utf-8", errors="replace")

        request_line = self._request_line(text)
        tokens = request_line.split() if request_line is not None else []

        version = self._parse_version(tokens, text)

        return HTTPRequest(
            method=self._parse_method(tokens),
            path=self._parse_path(tokens),
            version=version,
            headers=self._parse_headers(text),
            body=self._parse_body(data),
        )

    @staticmethod
    def _request_line(text: str) -> Optional[str]:
        """Text before the first CRLF, or None if the buffer has no CRLF."""
        line, sep, _ = text.partition(CRLF)
        return line if sep else None

    @staticmethod
    def _parse_method(tokens: list[str]) -> Method:
        return Method.from_token(tokens[0] if tokens else None)

    @staticmethod
    def _parse_path(tokens: list[str]) -> str:
        # METHOD SP PATH SP VERSION: the path is only trusted when it is
        # framed by a method and a following field
        if len(tokens) < 3:
            return ""
        return tokens[1].lstrip("/")

    @staticmethod
    def _parse_version(tokens: list[str], text: str) -> Version:
        for token in tokens:
            version = Version.from_token(token)
            if version is not None:
                return version
        raise MalformedVersionError(text)

    @staticmethod
    def _parse_headers(text: str) -> Dict[str, str]:
        """
        Parse "Name: value" lines from the block after the first blank line.

        Stops at the next empty line. A single line without a colon means
        the header block is unreliable, so no headers are returned at all.
        """
        _, sep, rest = text.partition(CRLF + CRLF)
        if not sep:
            return {}

        headers: Dict[str, str] = {}
        for line in rest.split(CRLF):
            if not line:
                break
            name, colon, value = line.partition(":")
            if not colon:
                return {}
            headers[name.strip()] = value.strip()
        return headers

    @staticmethod
    def _parse_body(data: bytes) -> bytes:
        header_end = data.find(HEADER_TERMINATOR)
        if header_end == -1:
            return b""
        return data[header_end + len(HEADER_TERMINATOR):]


def parse_request(data: bytes) -> HTTPRequest:
    """
    Convenience function to parse an HTTP request.

    The parser holds no state, so a fresh instance per call is fine.
    """
    return RequestParser().parse(data)
