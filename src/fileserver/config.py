"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the file server in one dataclass.

=============================================================================
WHERE VALUES COME FROM
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   dataclass defaults        ServerConfig()                          │
    │          │                                                           │
    │          ▼                                                           │
    │   environment variables     ServerConfig.from_env()                 │
    │          │                  FILESERVER_PORT=9000 ...                │
    │          ▼                                                           │
    │   command-line flags        python -m fileserver --port 9000        │
    │                                                                      │
    │   Later layers override earlier ones. validate() runs once, before  │
    │   the server binds anything.                                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE SERVER ROOT
=============================================================================

root_dir defaults to the working directory AT CONSTRUCTION TIME. It is
captured once and handed to the path resolver; nothing reads the process
working directory while serving requests.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, backlog, buffer_size, timeout
    HTTP        max_request_size, server_name
    FILES       root_dir
    THREADING   min_workers, max_workers, queue_size
    LOGGING     log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    port: int = 7878
    """Port to listen on. 0 asks the OS for a free port (used by tests)."""

    backlog: int = 128
    """Maximum number of connections queued by the kernel before accept()."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Per-connection deadline in seconds, covering the whole request read
    and each response write. None disables it (not recommended).
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_request_size: int = 1024 * 1024  # 1 MB
    """Largest request (headers and body) accepted before answering 413."""

    server_name: str = "PyFileServer/1.0"
    """Value of the Server response header."""

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = field(default_factory=os.getcwd)
    """Directory to serve. Nothing outside it is ever read."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """Worker threads created at startup."""

    max_workers: int = 16
    """Upper bound on worker threads under load."""

    queue_size: int = 100
    """Connections allowed to wait for a worker before answering 503."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    log_format: str = "text"
    """
    Access log format: 'text' (Apache common style) or 'json'
    (one object per line, for log aggregators).
    """

    @property
    def root_path(self) -> Path:
        return Path(self.root_dir)

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        FILESERVER_HOST       Bind address           (default: 127.0.0.1)
        FILESERVER_PORT       Port                   (default: 7878)
        FILESERVER_ROOT       Directory to serve     (default: CWD)
        FILESERVER_WORKERS    Max worker threads     (default: 16)
        FILESERVER_TIMEOUT    Connection deadline s  (default: 30)
        FILESERVER_LOG_LEVEL  Logging level          (default: INFO)

        =====================================================================

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        max_workers = int(os.getenv("FILESERVER_WORKERS", "16"))
        return cls(
            host=os.getenv("FILESERVER_HOST", "127.0.0.1"),
            port=int(os.getenv("FILESERVER_PORT", "7878")),
            root_dir=os.getenv("FILESERVER_ROOT") or os.getcwd(),
            min_workers=min(4, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv("FILESERVER_TIMEOUT", "30")),
            log_level=os.getenv("FILESERVER_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """
        Validate configuration values. Called at startup so a bad value
        fails immediately instead of on the first request.

        Raises:
            ValueError: On the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Invalid log_format: {self.log_format}. Must be 'text' or 'json'.")

        if not self.root_path.is_dir():
            raise ValueError(f"Root directory does not exist: {self.root_dir}")
