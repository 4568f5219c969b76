"""
=============================================================================
CONTENT CLASSIFICATION
=============================================================================

Decides the Content-Type of a served file from its bytes first and its
extension second.

=============================================================================
FALLBACK ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    classify(data, extension)                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. MAGIC NUMBERS                                                   │
    │     Leading bytes match a known signature?                          │
    │        89 50 4E 47 ...  →  image/png                                │
    │        25 50 44 46 ...  →  application/pdf                          │
    │        ──► return the sniffed type                                  │
    │                                                                      │
    │  2. SAFE TEXT EXTENSION                                             │
    │     Extension in TEXT_EXTENSIONS?                                   │
    │        .txt .md .html .py .toml ...                                 │
    │        ──► return text/plain                                        │
    │                                                                      │
    │  3. FALLBACK                                                        │
    │        ──► return application/octet-stream                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Sniffing wins over the extension: "photo.txt" holding PNG bytes is served
as image/png. Sniffing knows nothing about plain-text formats though, so
the extension allow-list rescues them from the binary fallback.

Text files are deliberately all served as text/plain, markup included, so
a browser shows source rather than rendering whatever sits in the root.

Signature detection comes from the ``filetype`` package, which reads only
the first few hundred bytes.

=============================================================================
"""

from typing import Optional

import filetype


DEFAULT_MIME_TYPE = "application/octet-stream"
TEXT_MIME_TYPE = "text/plain"


# =============================================================================
# SAFE TEXT EXTENSIONS
# =============================================================================
#
# Lowercase, without the dot. Anything listed here is served as text/plain
# unless its bytes identify it as something else.
#
# =============================================================================

TEXT_EXTENSIONS = frozenset({
    # Plain text and documentation
    "txt", "text", "md", "markdown", "rst", "log", "csv", "tsv",
    # Markup
    "html", "htm", "xml", "xhtml", "svg",
    # Styles and scripts
    "css", "js", "mjs", "ts",
    # Data and configuration
    "json", "yaml", "yml", "toml", "ini", "cfg", "conf", "env", "properties",
    # Source code
    "py", "rs", "go", "c", "h", "cpp", "hpp", "java", "rb", "php", "sh",
    "sql", "lock",
})


def _normalize_extension(extension: Optional[str]) -> str:
    """".TXT" / "txt" / None → "txt" / "txt" / ""."""
    if not extension:
        return ""
    return extension.lstrip(".").lower()


def is_text_extension(extension: Optional[str]) -> bool:
    """Check an extension against the safe-text allow-list."""
    return _normalize_extension(extension) in TEXT_EXTENSIONS


def sniff(data: bytes) -> Optional[str]:
    """
    MIME type from the file's magic number, or None if unrecognized.

        >>> sniff(b"\\x89PNG\\r\\n\\x1a\\n" + bytes(16))
        'image/png'
        >>> sniff(b"hello") is None
        True
    """
    if not data:
        return None
    return filetype.guess_mime(data)


def classify(data: bytes, extension: Optional[str] = None) -> str:
    """
    Determine the MIME type for file content.

    Args:
        data: The file's bytes (only the head is inspected).
        extension: File extension, with or without the leading dot.

    Returns:
        A MIME type string. Never fails.

    Examples:
        >>> classify(b"hello", "txt")
        'text/plain'
        >>> classify(b"\\x00\\x01", "bin")
        'application/octet-stream'
    """
    sniffed = sniff(data)
    if sniffed:
        return sniffed

    if is_text_extension(extension):
        return TEXT_MIME_TYPE

    return DEFAULT_MIME_TYPE
