"""
=============================================================================
FILESERVER - Minimal HTTP/1.x File Server
=============================================================================

Serves the files under one root directory over plain HTTP, one request
per connection, on top of raw sockets and a worker thread pool.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    fileserver/
    ├── __main__.py        CLI (python -m fileserver)
    ├── config.py          ServerConfig
    ├── server.py          FileServer: wires everything together
    ├── access_log.py      One line per response
    ├── core/              Sockets, connections, worker pool
    ├── http/              Parser, path resolver, MIME sniffing, response
    └── handlers/          FileHandler: file / listing / 404

=============================================================================
QUICK START
=============================================================================

    from fileserver import FileServer, ServerConfig

    FileServer(ServerConfig(root_dir="./public", port=8000)).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import FileServer, create_server

__all__ = ["FileServer", "ServerConfig", "create_server", "__version__"]
