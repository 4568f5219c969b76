"""
End-to-end tests against a running server on a loopback port.
"""

import socket
import time
from concurrent.futures import ThreadPoolExecutor

from fileserver.handlers.files import BLOCKED_MESSAGE


class TestServing:
    """Files, listings and 404s over a real socket."""

    def test_serves_file(self, test_server):
        response = test_server.get("/readme.txt")

        assert response.status == 200
        assert response.reason == "OK"
        assert response.headers["Content-Type"] == "text/plain"
        assert response.headers["Content-Length"] == "5"
        assert response.headers["Connection"] == "close"
        assert response.headers["Accept-Ranges"] == "none"
        assert "Date" in response.headers
        assert response.body == b"hello"

    def test_serves_binary(self, test_server, png_bytes: bytes):
        response = test_server.get("/image.txt")

        assert response.headers["Content-Type"] == "image/png"
        assert response.body == png_bytes

    def test_directory_listing(self, test_server):
        response = test_server.get("/docs/")

        assert response.status == 200
        assert response.headers["Content-Type"].startswith("text/html")
        assert b'href="/docs/my%20notes.txt"' in response.body
        assert int(response.headers["Content-Length"]) == len(response.body)

    def test_listing_link_is_servable(self, test_server):
        response = test_server.get("/docs/my%20notes.txt")

        assert response.status == 200
        assert response.body == b"notes\n"

    def test_not_found(self, test_server):
        response = test_server.get("/missing.txt")

        assert response.status == 404
        assert b"/missing.txt was not found on this server." in response.body

    def test_traversal_blocked(self, test_server):
        for target in ("/../secret.txt", "/%2e%2e/secret.txt", "/docs/../../secret.txt"):
            response = test_server.get(target)

            assert response.status == 404
            assert response.body == BLOCKED_MESSAGE.encode()

    def test_post_served_like_get(self, test_server):
        response = test_server.request(
            b"POST /readme.txt HTTP/1.1\r\nContent-Length: 3\r\n\r\nabc"
        )

        assert response.status == 200
        assert response.body == b"hello"

    def test_server_header(self, test_server):
        assert test_server.get("/").headers["Server"] == "PyFileServer/1.0"


class TestConnectionErrors:
    """Answers produced before any file is looked up."""

    def test_bad_version(self, test_server):
        response = test_server.request(b"GET / HTTP/9.9\r\n\r\n")

        assert response.status == 505
        assert b"Unknown protocol version" in response.body

    def test_incomplete_request_line(self, test_server):
        """Test a client that closes mid request line gets 505."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5) as sock:
            sock.sendall(b"GET / HTTP/1.1")
            sock.shutdown(socket.SHUT_WR)
            data = sock.recv(65536)

        assert data.startswith(b"HTTP/1.1 505 ")

    def test_silent_client_does_not_break_server(self, test_server):
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5):
            pass

        assert test_server.get("/readme.txt").status == 200

    def test_timeout(self, make_server):
        server = make_server(timeout=0.5)

        started = time.monotonic()
        response = server.request(b"GET / HTTP/1.1\r\n")

        assert response.status == 408
        assert time.monotonic() - started < 4.0

    def test_too_large(self, make_server):
        server = make_server(max_request_size=16 * 1024)

        response = server.request(b"GET /" + b"a" * 20000 + b" HTTP/1.1\r\n\r\n")

        assert response.status == 413

    def test_saturated_pool_gets_503(self, make_server):
        server = make_server(min_workers=1, max_workers=1, queue_size=1, timeout=2.0)
        port = server.port

        # One connection occupies the worker, the next fills the queue
        hold_worker = socket.create_connection(("127.0.0.1", port))
        time.sleep(0.2)
        hold_queue = socket.create_connection(("127.0.0.1", port))
        time.sleep(0.2)
        try:
            response = server.request(b"GET /readme.txt HTTP/1.1\r\n\r\n")
        finally:
            hold_worker.close()
            hold_queue.close()

        assert response.status == 503


class TestLifecycle:
    """Starting and stopping."""

    def test_shutdown_stops_run(self, make_server):
        server = make_server()
        assert server.server.is_running

        server.stop()

        assert not server._thread.is_alive()
        assert not server.server.is_running
        assert not server.server.wait_until_ready(timeout=0.1)


class TestConcurrency:
    """Several clients at once."""

    def test_parallel_requests(self, test_server):
        targets = ["/readme.txt", "/docs/", "/missing.txt", "/image.txt"] * 5

        with ThreadPoolExecutor(max_workers=8) as executor:
            responses = list(executor.map(test_server.get, targets))

        assert [r.status for r in responses] == [200, 200, 404, 200] * 5
        assert all(r.headers["Connection"] == "close" for r in responses)

    def test_slow_client_does_not_block_others(self, test_server):
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5) as slow:
            slow.sendall(b"GET /readme")

            started = time.monotonic()
            response = test_server.get("/readme.txt")

            assert response.status == 200
            assert time.monotonic() - started < 2.0
