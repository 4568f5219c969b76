"""
Request handlers.

    FileHandler     Serves files and directory listings from a root
    build_response  One-shot helper around FileHandler
"""

from .files import FileHandler, build_response

__all__ = [
    "FileHandler",
    "build_response",
]
