"""Error types raised while identifying, reading, and writing API descriptions."""

from __future__ import annotations

from pathlib import Path


class ApiStubError(Exception):
    """Base exception for registry and format operations."""


class UnsupportedFormatError(ApiStubError):
    """Raised when no registered reader or writer claims the input."""


class MalformedFileError(ApiStubError):
    """Raised when a capability that claimed the input fails to parse or render it.

    Attributes:
        path: Source path of the offending input, when known.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message if path is None else f"{path}: {message}")
        self.path = path


class FileAccessError(ApiStubError):
    """Raised when a source or destination file cannot be opened, read, or written."""


__all__ = [
    "ApiStubError",
    "UnsupportedFormatError",
    "MalformedFileError",
    "FileAccessError",
]
