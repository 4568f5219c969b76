"""
pytest configuration and fixtures.
"""

import socket
import threading
from dataclasses import dataclass, field
from typing import Dict, Generator

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig
from fileserver.handlers import FileHandler


# Signature + IHDR + IEND: enough for magic-number sniffing
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\x0dIHDR"
    b"\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00"
    b"\x90wS\xde"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /readme.txt HTTP/1.1\r\n"
        b"Host: localhost:7878\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a form body."""
    body = b"name=John&email=john%40example.com"
    head = (
        "POST /submit HTTP/1.1\r\n"
        "Host: localhost:7878\r\n"
        "Content-Type: application/x-www-form-urlencoded\r\n"
        f"Content-Length: {len(body)}\r\n"
        "\r\n"
    )
    return head.encode() + body


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """
    A small tree to serve, next to a file that must stay unreachable:

        tmp_path/
        ├── secret.txt            (outside the root)
        └── site/                 (the root)
            ├── readme.txt        "hello"
            ├── image.txt         PNG bytes behind a .txt name
            ├── data.bin          opaque bytes
            └── docs/
                ├── guide.md
                ├── my notes.txt
                └── deep/
                    └── inner.txt
    """
    (tmp_path / "secret.txt").write_text("top secret")

    root = tmp_path / "site"
    root.mkdir()
    (root / "readme.txt").write_bytes(b"hello")
    (root / "image.txt").write_bytes(PNG_BYTES)
    (root / "data.bin").write_bytes(b"\x00\x01\x02\x03")

    docs = root / "docs"
    docs.mkdir()
    (docs / "guide.md").write_text("# Guide\n")
    (docs / "my notes.txt").write_text("notes\n")

    deep = docs / "deep"
    deep.mkdir()
    (deep / "inner.txt").write_text("inner\n")

    return root


@pytest.fixture
def handler(site_root: Path) -> FileHandler:
    return FileHandler(site_root)


@pytest.fixture
def config(site_root: Path) -> ServerConfig:
    """Test server configuration serving site_root."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root_dir=str(site_root),
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        log_level="WARNING",
    )


@dataclass
class RawResponse:
    """A response read off the wire, split into its parts."""
    status: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def parse(cls, data: bytes) -> "RawResponse":
        head, _, body = data.partition(b"\r\n\r\n")
        lines = head.decode("latin-1").split("\r\n")
        _, status, reason = lines[0].split(" ", 2)
        headers = {}
        for line in lines[1:]:
            name, _, value = line.partition(":")
            headers[name.strip()] = value.strip()
        return cls(status=int(status), reason=reason, headers=headers, body=body)


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def send(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes, read until the server closes the connection."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as sock:
            if raw:
                sock.sendall(raw)
            chunks = []
            while True:
                chunk = sock.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def request(self, raw: bytes) -> RawResponse:
        return RawResponse.parse(self.send(raw))

    def get(self, target: str) -> RawResponse:
        return self.request(f"GET {target} HTTP/1.1\r\nHost: test\r\n\r\n".encode())


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running FileServer serving site_root."""
    test_srv = TestServer(FileServer(config))
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def make_server(config: ServerConfig):
    """Factory for a running FileServer with config overrides."""
    servers = []

    def factory(**overrides) -> TestServer:
        for name, value in overrides.items():
            setattr(config, name, value)
        test_srv = TestServer(FileServer(config))
        test_srv.start()
        servers.append(test_srv)
        return test_srv

    yield factory

    for test_srv in servers:
        test_srv.stop()
