"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

Networking plumbing, independent of what is being served.

    ┌────────────────────┬─────────────────────────────────────────────────┐
    │  SocketServer      │  Listening socket, accept loop, signals         │
    │  Connection        │  One client socket: read one request, write     │
    │                    │  one response, close                            │
    │  ThreadPool        │  Bounded workers; the accept loop never waits   │
    └────────────────────┴─────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import (
    Connection,
    ConnectionState,
    RequestTimeoutError,
    RequestTooLargeError,
)
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "RequestTimeoutError",
    "RequestTooLargeError",
    "ThreadPool",
]
