"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this file server can emit.

=============================================================================
WHERE EACH CODE COMES FROM
=============================================================================

    ┌────────┬──────────────────────────────┬──────────────────────────────┐
    │  Code  │  Phrase                      │  Emitted by                  │
    ├────────┼──────────────────────────────┼──────────────────────────────┤
    │  200   │  OK                          │  FileHandler (file / dir)    │
    │  404   │  Not Found                   │  FileHandler (missing or     │
    │        │                              │  traversal blocked)          │
    │  408   │  Request Timeout             │  FileServer (slow client)    │
    │  413   │  Payload Too Large           │  FileServer (oversize read)  │
    │  503   │  Service Unavailable         │  FileServer (pool saturated) │
    │  505   │  HTTP Version Not Supported  │  FileServer (bad version)    │
    └────────┴──────────────────────────────┴──────────────────────────────┘

Only 200 and 404 are produced by the request-to-response pipeline itself.
The others are connection-level answers written by the server before or
instead of running the pipeline.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to their integer code:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200                            # File or directory listing served

    NOT_FOUND = 404                     # Missing resource or blocked traversal
    REQUEST_TIMEOUT = 408               # Client never finished its request
    PAYLOAD_TOO_LARGE = 413             # Request exceeded max_request_size

    SERVICE_UNAVAILABLE = 503           # Worker pool saturated
    HTTP_VERSION_NOT_SUPPORTED = 505    # No recognizable version token

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """Check if this is a 2xx status code."""
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        """Check if this is a 4xx or 5xx status code."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
