"""Exceptions raised by embedfs."""

from __future__ import annotations


class EmbedFSError(Exception):
    """Base exception for embedfs operations."""

    pass


class ConfigurationError(EmbedFSError, ValueError):
    """Raised when discovery parameters or a build config are invalid."""

    pass


class AssetIOError(EmbedFSError, OSError):
    """Raised when the filesystem fails during discovery or packaging."""

    pass


class NotFoundError(EmbedFSError, FileNotFoundError):
    """Raised when a logical path has no record in the archive."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path

    def __str__(self) -> str:
        return f"File not found: {self.path}"


class EncodingError(EmbedFSError, ValueError):
    """Raised on malformed base64 contents or invalid UTF-8 text."""

    pass


class ArchiveFormatError(EmbedFSError, ValueError):
    """Raised when persisted archive records are malformed."""

    pass
