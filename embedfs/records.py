"""
Archive record types.

ArchiveRecord is the interchange unit of a persisted archive: a canonical
archive path and the file's bytes as standard base64. AssetReference pairs
a record with the file it was read from during discovery.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, field_validator

from .errors import EncodingError
from .paths import normalize_path


class ArchiveRecord(BaseModel):
    """A single file in an archive."""

    model_config = ConfigDict(frozen=True)

    path: str  # Canonical archive path, e.g. "/test_assets/asset_1.txt"
    contents: str  # Standard base64 of the raw bytes

    @field_validator("path")
    @classmethod
    def _canonical_path(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("path must not be empty")
        return normalize_path(value)

    @classmethod
    def from_bytes(cls, path: str, data: bytes) -> "ArchiveRecord":
        """Create a record by base64-encoding raw bytes."""
        return cls(path=path, contents=base64.b64encode(data).decode("ascii"))

    def decode(self) -> bytes:
        """
        Decode the record contents.

        Returns:
            Fresh bytes on every call

        Raises:
            EncodingError: If contents is not valid base64
        """
        try:
            return base64.b64decode(self.contents, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EncodingError(f"Malformed base64 contents for {self.path}: {e}") from e

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"path": self.path, "contents": self.contents}


@dataclass(frozen=True, slots=True)
class AssetReference:
    """
    A discovered asset.

    Attributes:
        system_path: Absolute native path of the source file (logging only)
        record: The archive record built from the file
    """

    system_path: str
    record: ArchiveRecord

    @property
    def path(self) -> str:
        """Archive path of the record."""
        return self.record.path
