"""Exception classes for kls.

Low-level ``OSError``s are translated into these at the path resolver and
listing engine boundary.
"""

from pathlib import Path
from typing import Optional, Union


class KlsError(Exception):
    """Base exception for listing operations."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.message = message
        self.path = path
        super().__init__(message)


class ConfigError(KlsError):
    """Raised for an unrecognized command-line flag."""
    pass


class CanonicalizeError(KlsError):
    """Raised when a path cannot be made absolute or resolved."""

    def __init__(
        self,
        message: str = "Failed to canonicalize path",
        path: Optional[Union[str, Path]] = None,
    ):
        super().__init__(message, path)


class RootAccessError(KlsError):
    """Raised when a requested root cannot be stat'ed."""
    pass


class EntryReadError(KlsError):
    """Raised when iterating a directory fails part way through."""
    pass


class EntryMetadataError(KlsError):
    """Raised when a single directory member cannot be snapshotted."""
    pass
