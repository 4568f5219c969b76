"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between raw request bytes and raw response bytes, with no
sockets involved.

=============================================================================
MODULE COMPONENTS
=============================================================================

    ┌──────────────────┬──────────────────────────────────────────────────┐
    │  request.py      │  bytes → HTTPRequest (method, path, version...)  │
    │  paths.py        │  request path → canonical path under the root   │
    │  mime_types.py   │  file bytes + extension → MIME type              │
    │  response.py     │  HTTPResponse → bytes                            │
    │  status_codes.py │  HTTPStatus enum                                 │
    └──────────────────┴──────────────────────────────────────────────────┘

    raw bytes ──► parse_request ──► HTTPRequest
                                         │
                          FileHandler (handlers/files.py)
                         uses PathResolver + classify
                                         │
                                         ▼
                  socket ◄── to_bytes ◄── HTTPResponse

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    MalformedVersionError,
    Method,
    Version,
    parse_request,
)
from .paths import PathResolver, PathBlockedError, normalize_request_path, encode_url_path
from .mime_types import classify, DEFAULT_MIME_TYPE, TEXT_EXTENSIONS
from .response import (
    HTTPResponse,
    AcceptRanges,
    format_http_date,
    html_response,
    text_response,
    error_response,
)
from .status_codes import HTTPStatus

__all__ = [
    # Request
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "MalformedVersionError",
    "Method",
    "Version",
    "parse_request",

    # Paths
    "PathResolver",
    "PathBlockedError",
    "normalize_request_path",
    "encode_url_path",

    # Content types
    "classify",
    "DEFAULT_MIME_TYPE",
    "TEXT_EXTENSIONS",

    # Response
    "HTTPResponse",
    "AcceptRanges",
    "format_http_date",
    "html_response",
    "text_response",
    "error_response",

    # Status codes
    "HTTPStatus",
]
