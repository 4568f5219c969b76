"""
Unit tests for HTTP response serialization.
"""

from datetime import datetime, timedelta, timezone

from fileserver.http.response import (
    AcceptRanges,
    HTTPResponse,
    error_response,
    format_http_date,
    html_response,
    text_response,
)
from fileserver.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.NOT_FOUND).status_line == "HTTP/1.1 404 Not Found"

    def test_content_length_tracks_body(self):
        """Test content_length always equals the body size."""
        response = HTTPResponse(body=b"hello")
        assert response.content_length == 5

        response.body = "héllo".encode("utf-8")
        assert response.content_length == 6

    def test_to_bytes_layout(self):
        """Test the serialized form: status line, headers, blank line, body."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            content_type="text/plain",
            body=b"hello",
        )

        result = response.to_bytes()
        head, _, body = result.partition(b"\r\n\r\n")

        assert head.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"\r\nContent-Type: text/plain\r\n" in head
        assert b"Content-Length: 5" in head
        assert b"Accept-Ranges: none" in head
        assert b"Connection: close" in head
        assert b"Date: " in head
        assert body == b"hello"

    def test_server_header(self):
        """Test the Server header uses the given name."""
        result = HTTPResponse().to_bytes(server_name="Test/0.1")

        assert b"Server: Test/0.1\r\n" in result

    def test_binary_body_untouched(self, png_bytes: bytes):
        """Test that binary bodies are written byte for byte."""
        response = HTTPResponse(content_type="image/png", body=png_bytes)

        assert response.to_bytes().endswith(png_bytes)
        assert f"Content-Length: {len(png_bytes)}".encode() in response.to_bytes()

    def test_accept_ranges_value(self):
        """Test the Accept-Ranges header follows the enum."""
        response = HTTPResponse(accept_ranges=AcceptRanges.BYTES)

        assert response.headers()["Accept-Ranges"] == "bytes"
        assert HTTPResponse().headers()["Accept-Ranges"] == "none"

    def test_empty_body(self):
        """Test a response without a body still declares its length."""
        result = HTTPResponse().to_bytes()

        assert b"Content-Length: 0\r\n" in result
        assert result.endswith(b"\r\n\r\n")


class TestConvenienceFunctions:
    """Tests for the response shortcut functions."""

    def test_html_response(self):
        response = html_response("<p>ok</p>")

        assert response.status == HTTPStatus.OK
        assert response.content_type == "text/html; charset=utf-8"
        assert response.body == b"<p>ok</p>"

    def test_text_response_with_status(self):
        response = text_response("nope", HTTPStatus.NOT_FOUND)

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.content_type == "text/plain; charset=utf-8"
        assert response.body == b"nope"

    def test_error_response_default_body(self):
        response = error_response(HTTPStatus.REQUEST_TIMEOUT)

        assert response.status == 408
        assert response.body == b"408 Request Timeout\n"

    def test_error_response_custom_message(self):
        response = error_response(HTTPStatus.HTTP_VERSION_NOT_SUPPORTED, "bad version")

        assert response.status_line == "HTTP/1.1 505 HTTP Version Not Supported"
        assert response.body == b"bad version\n"


class TestFormatHTTPDate:
    """Tests for format_http_date."""

    def test_format(self):
        dt = datetime(2026, 10, 18, 9, 5, 3, tzinfo=timezone.utc)

        assert format_http_date(dt) == "Sun, 18 Oct 2026 09:05:03 GMT"

    def test_converts_to_utc(self):
        dt = datetime(2026, 1, 1, 1, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_http_date(dt) == "Wed, 31 Dec 2025 23:00:00 GMT"


class TestHTTPStatus:
    """Tests for the status code enum."""

    def test_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.PAYLOAD_TOO_LARGE.phrase == "Payload Too Large"

    def test_categories(self):
        assert HTTPStatus.OK.is_success
        assert not HTTPStatus.OK.is_error
        assert HTTPStatus.NOT_FOUND.is_error
        assert HTTPStatus.SERVICE_UNAVAILABLE.is_error
