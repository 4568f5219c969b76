"""
=============================================================================
FILE HANDLER
=============================================================================

Turns a parsed request into a response: file contents, a directory
listing, or a 404 page.

=============================================================================
DECISION ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    FileHandler.handle(request)                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   resolve(request.path)                                             │
    │        │                                                             │
    │        ├── PathBlockedError ──► 404  text/plain                     │
    │        │                        "Backtracking is not allowed."      │
    │        │                                                             │
    │        ├── regular file ──────► 200  sniffed / extension type       │
    │        │                        body = whole file                   │
    │        │                                                             │
    │        ├── directory ─────────► 200  text/html                      │
    │        │                        listing of immediate children       │
    │        │                                                             │
    │        └── anything else ─────► 404  text/html                      │
    │                                 page naming the requested path      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The request method is not consulted; GET and POST are served alike.

A path that cannot exist (ENOENT, ENOTDIR, ENAMETOOLONG on the stat) is a
404 like any other missing path. Other errors (permission denied, I/O
failure, a file removed between the stat and the read) are NOT turned
into 404s. They propagate as OSError so the connection handler can log
them and drop the connection instead of sending a misleading answer.

The 404 page shows the requested target HTML-escaped: "/a&b.txt" appears
as "/a&amp;b.txt". Paths without markup characters appear verbatim.

=============================================================================
DIRECTORY LISTING
=============================================================================

    GET /docs/ HTTP/1.1

    <h1>Currently in /docs</h1>
    <a href="/">../</a><br>                 ← requested path minus last segment
    <a href="/docs/a%20b.txt">a b.txt</a><br>
    <a href="/docs/img/">img/</a><br>        ← directories end in "/"

Entries are sorted by name. Only immediate children appear; nothing is
walked recursively. Link targets are percent-encoded, link text is
HTML-escaped.

=============================================================================
"""

import errno
import html
import logging
import stat
from pathlib import Path

from ..http.mime_types import classify
from ..http.paths import PathBlockedError, PathResolver, encode_url_path, normalize_request_path
from ..http.request import HTTPRequest
from ..http.response import AcceptRanges, HTTPResponse, html_response, text_response
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


BLOCKED_MESSAGE = "Backtracking is not allowed."

# stat() failures that just mean "no such path"
MISSING_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR, errno.ENAMETOOLONG})

NOT_FOUND_PAGE = (
    "<html><body><h1>404 NOT FOUND</h1>"
    "<p>{path} was not found on this server.</p>"
    "</body></html>"
)

LISTING_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Directory Listing</title>
</head>
<body>
<h1>Currently in {heading}</h1>
{links}
</body>
</html>
"""

LINK = '<a href="{href}">{label}</a><br>'


class FileHandler:
    """
    Serves files and directory listings from a single root directory.

    =========================================================================
    USAGE
    =========================================================================

        handler = FileHandler("/srv/files")
        response = handler.handle(parse_request(raw_bytes))
        connection.send_response(response)

    The handler keeps no per-request state, so one instance is shared by
    every worker thread.

    =========================================================================
    """

    def __init__(self, root: str | Path):
        """
        Args:
            root: Directory to serve. Canonicalized once, here.
        """
        self.resolver = PathResolver(root)

    @property
    def root(self) -> Path:
        return self.resolver.root

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Build the response for a request.

        Args:
            request: The parsed request.

        Returns:
            A 200 or 404 response.

        Raises:
            OSError: If an existing file or directory cannot be read.
        """
        # ─────────────────────────────────────────────────────────────────
        # SECURITY: PATH TRAVERSAL CHECK
        # ─────────────────────────────────────────────────────────────────
        try:
            target = self.resolver.resolve(request.path)
        except PathBlockedError as exc:
            logger.warning("Path traversal attempt: %s", exc)
            return self._blocked()

        try:
            mode = target.stat().st_mode
        except OSError as exc:
            if exc.errno not in MISSING_ERRNOS:
                raise
            return self._not_found(request)

        if stat.S_ISREG(mode):
            return self._serve_file(target)

        if stat.S_ISDIR(mode):
            return self._list_directory(target, request.path)

        return self._not_found(request)

    def _serve_file(self, path: Path) -> HTTPResponse:
        # One read; a file removed since is_file() raises here
        content = path.read_bytes()
        content_type = classify(content, path.suffix)
        logger.debug("Serving %s (%d bytes, %s)", path, len(content), content_type)
        return HTTPResponse(
            status=HTTPStatus.OK,
            content_type=content_type,
            body=content,
            accept_ranges=AcceptRanges.NONE,
        )

    def _list_directory(self, path: Path, requested: str) -> HTTPResponse:
        """
        Generate the listing page for a directory.

        Args:
            path: Canonical directory path.
            requested: The request path as parsed (still encoded).
        """
        current = normalize_request_path(requested).strip("/")

        # "Up" drops the last segment of the requested path
        parent = current.rsplit("/", 1)[0] if "/" in current else ""
        links = [LINK.format(href=html.escape(encode_url_path(parent)), label="../")]

        for child in sorted(path.iterdir(), key=lambda entry: entry.name):
            name = child.name
            child_path = f"{current}/{name}" if current else name
            href = encode_url_path(child_path)
            label = name
            if child.is_dir():
                href += "/"
                label += "/"
            links.append(LINK.format(href=html.escape(href), label=html.escape(label)))

        page = LISTING_PAGE.format(
            heading=html.escape("/" + current),
            links="\n".join(links),
        )
        logger.debug("Listing %s (%d entries)", path, len(links) - 1)
        return html_response(page)

    @staticmethod
    def _blocked() -> HTTPResponse:
        return text_response(BLOCKED_MESSAGE, HTTPStatus.NOT_FOUND)

    @staticmethod
    def _not_found(request: HTTPRequest) -> HTTPResponse:
        logger.debug("Not found: %s", request.target)
        page = NOT_FOUND_PAGE.format(path=html.escape(request.target))
        return html_response(page, HTTPStatus.NOT_FOUND)


def build_response(request: HTTPRequest, root: str | Path) -> HTTPResponse:
    """
    Build the response for ``request`` against ``root``.

    Factory-style shortcut for one-off use; the server keeps a single
    FileHandler instead.
    """
    return FileHandler(root).handle(request)
