"""
=============================================================================
PATH RESOLUTION
=============================================================================

Maps a request path onto the filesystem under the server root, and refuses
anything that would land outside it.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /../../etc/passwd HTTP/1.1                                     │
    │  GET /%2e%2e/%2e%2e/etc/passwd HTTP/1.1      (same, encoded)        │
    │                                                                      │
    │  Unprotected:  /srv/files/../../etc/passwd  →  /etc/passwd         │
    │                                                                      │
    │  Protection, in this exact order:                                   │
    │  1. Percent-decode            (%2e%2e → ..)                         │
    │  2. Join onto the root                                              │
    │  3. Canonicalize              (resolve . / .. / symlinks)           │
    │  4. Prefix check              (target == root or below root)        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Decoding AFTER the containment check would let "%2e%2e" slip through
undecoded, then turn into ".." when the file is opened. Decoding happens
exactly once, in normalize_request_path().

    PYTHON PROTECTION:

        target = (root / decoded).resolve()
        target.relative_to(root)      # ValueError if outside root

=============================================================================
NORMALIZATION PIPELINE
=============================================================================

    "/docs/my%20notes.txt?v=2#top"
            │
            ├── drop query / fragment   →  "/docs/my%20notes.txt"
            ├── percent-decode (UTF-8)  →  "/docs/my notes.txt"
            └── strip leading "/"       →  "docs/my notes.txt"

=============================================================================
"""

import errno
from pathlib import Path
from urllib.parse import quote, unquote


class PathBlockedError(Exception):
    """The requested path resolves outside the server root."""

    def __init__(self, requested: str, reason: str = "escapes server root"):
        super().__init__(f"Blocked path {requested!r}: {reason}")
        self.requested = requested
        self.reason = reason


def normalize_request_path(raw: str) -> str:
    """
    Turn a raw request path into a root-relative filesystem path string.

    This is the only place request paths are decoded.

    Examples:
        >>> normalize_request_path("/docs/my%20notes.txt?v=2")
        'docs/my notes.txt'
        >>> normalize_request_path("%2e%2e/secret")
        '../secret'
        >>> normalize_request_path("")
        ''
    """
    path = raw.split("?", 1)[0].split("#", 1)[0]
    decoded = unquote(path, encoding="utf-8", errors="replace")
    # "%2F" decodes to a separator that the parser's strip never saw
    return decoded.lstrip("/")


def encode_url_path(relative: str) -> str:
    """
    Percent-encode a root-relative path into an absolute URL path.

        >>> encode_url_path("my docs/a&b.txt")
        '/my%20docs/a%26b.txt'
    """
    return "/" + quote(relative.strip("/"), safe="/", errors="surrogateescape")


class PathResolver:
    """
    Resolves request paths against a fixed server root.

    The root is canonicalized once at construction and never re-read from
    the process working directory.

        resolver = PathResolver("/srv/files")
        resolver.resolve("docs/readme.txt")   # /srv/files/docs/readme.txt
        resolver.resolve("")                  # /srv/files
        resolver.resolve("../etc/passwd")     # PathBlockedError
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def resolve(self, requested: str) -> Path:
        """
        Resolve a request path to a canonical path inside the root.

        The returned path may not exist; callers decide what a missing
        target means.

        Args:
            requested: Request path as parsed (leading "/" optional,
                       still percent-encoded).

        Returns:
            Canonical absolute path, equal to or below the root.

        Raises:
            PathBlockedError: If the path escapes the root or contains NUL.
        """
        relative = normalize_request_path(requested)

        if "\x00" in relative:
            raise PathBlockedError(requested, "NUL byte in path")

        joined = self.root / relative
        try:
            target = joined.resolve()
        except RuntimeError as exc:
            # Symlink loops raise RuntimeError before Python 3.13
            raise OSError(errno.ELOOP, str(exc), str(joined)) from exc

        # ─────────────────────────────────────────────────────────────────
        # CONTAINMENT: canonical target must be the root or below it
        # ─────────────────────────────────────────────────────────────────
        try:
            target.relative_to(self.root)
        except ValueError:
            raise PathBlockedError(requested) from None

        return target

    def contains(self, requested: str) -> bool:
        """True if ``requested`` resolves inside the root."""
        try:
            self.resolve(requested)
        except PathBlockedError:
            return False
        return True
