"""
=============================================================================
ACCESS LOG
=============================================================================

One line per response written, on the "fileserver.access" logger.

    text (Apache common style):

        127.0.0.1 - - [18/Oct/2026:12:00:00 +0000] "GET /readme.txt HTTP/1.1" 200 5 0.41ms

    json:

        {"connection_id": "3f2a9c1e", "method": "GET", "target": "/readme.txt", ...}

Connection-level answers (408, 413, 503, 505) are logged too; when no
request could be parsed, method and target are "-".

Route it separately from the application log with:

    logging.getLogger("fileserver.access").addHandler(file_handler)

=============================================================================
"""

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Optional

from .http.request import HTTPRequest
from .http.response import HTTPResponse


logger = logging.getLogger("fileserver.access")


@dataclass
class RequestLog:
    """
    Structured access log entry.

    connection_id:  Short id shared with the connection's debug lines
    method:         Request method, or "-"
    target:         Request target as sent, or "-"
    version:        Protocol version from the request line, or "-"
    client_ip:      Peer address
    status_code:    Response status
    content_length: Response body size in bytes
    duration_ms:    Time from accept to response written
    timestamp:      Local time in common log format
    """

    connection_id: str
    method: str
    target: str
    version: str
    client_ip: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.target} {self.version}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """Formats RequestLog entries and writes them to the access logger."""

    def __init__(self, log_format: str = "text", level: int = logging.INFO):
        self.log_format = log_format
        self.level = level

    def build_entry(self, connection_id: str, client_ip: str,
                    request: Optional[HTTPRequest], response: HTTPResponse,
                    duration: float) -> RequestLog:
        if request is not None:
            method = request.method.value
            target = request.target
            version = str(request.version)
        else:
            method = target = version = "-"

        return RequestLog(
            connection_id=connection_id,
            method=method,
            target=target,
            version=version,
            client_ip=client_ip,
            status_code=int(response.status),
            content_length=response.content_length,
            duration_ms=duration * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def log(self, connection_id: str, client_ip: str,
            request: Optional[HTTPRequest], response: HTTPResponse,
            duration: float) -> RequestLog:
        """Emit one access log line and return the entry."""
        entry = self.build_entry(connection_id, client_ip, request, response, duration)
        if self.log_format == "json":
            logger.log(self.level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.level, entry.to_text())
        return entry
