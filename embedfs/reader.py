"""
Archive reader.

Provides read-only, filesystem-like access to an in-memory archive:
exact-path reads (sync and async, bytes and text) and glob listing.
Nothing touches disk.

The archive is fixed at construction. Lookups go through a path index
built once; if the archive holds the same path twice, the first record
wins and later ones are unreachable. Contents are decoded from base64 on
every read, so each call returns fresh bytes.

Text decoding is strict UTF-8 by default: invalid byte sequences raise
EncodingError. Pass errors="replace" to substitute U+FFFD instead, as a
standard UTF-8 decoder does.

The async methods never suspend; they exist for callers that await. A
failure, including NotFoundError, is raised when the coroutine is awaited,
not when it is created. There is nothing to cancel.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from .errors import ArchiveFormatError, EncodingError, NotFoundError
from .paths import PathLike, compile_glob, to_archive_path
from .records import ArchiveRecord

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Reader protocol
# -----------------------------------------------------------------------------


@runtime_checkable
class AssetReader(Protocol):
    """
    Protocol for read-only asset access.

    Mirrors the read half of a filesystem API so code can switch between
    embedded archives and other sources.
    """

    def read_bytes(self, path: PathLike) -> bytes:
        """Read file contents as bytes."""
        ...

    def read_text(self, path: PathLike, errors: str = "strict") -> str:
        """Read file contents as UTF-8 text."""
        ...

    async def read_bytes_async(self, path: PathLike) -> bytes:
        """Read file contents as bytes (awaitable)."""
        ...

    async def read_text_async(self, path: PathLike, errors: str = "strict") -> str:
        """Read file contents as UTF-8 text (awaitable)."""
        ...


# -----------------------------------------------------------------------------
# Archive reader
# -----------------------------------------------------------------------------


def _coerce_record(raw: ArchiveRecord | Mapping[str, Any], index: int) -> ArchiveRecord:
    if isinstance(raw, ArchiveRecord):
        return raw
    try:
        return ArchiveRecord.model_validate(raw)
    except ValidationError as e:
        raise ArchiveFormatError(f"Invalid archive record at index {index}: {e}") from e


class ArchiveReader:
    """
    Read-only view over an immutable archive.

    Usage:
        from assets import assets

        vfs = ArchiveReader(assets)
        text = vfs.read_text("/templates/index.html")
        for path in vfs.expand_glob("/static/**/*.css"):
            css = vfs.read_bytes(path)
    """

    def __init__(self, archive: Iterable[ArchiveRecord | Mapping[str, Any]]) -> None:
        """
        Initialize the reader.

        Args:
            archive: Ordered records, as ArchiveRecord or {"path", "contents"} mappings

        Raises:
            ArchiveFormatError: If a record is malformed
        """
        self._records: tuple[ArchiveRecord, ...] = tuple(
            _coerce_record(raw, i) for i, raw in enumerate(archive)
        )

        index: dict[str, ArchiveRecord] = {}
        for record in self._records:
            # First occurrence wins
            index.setdefault(record.path, record)
        self._index = index

        if len(index) != len(self._records):
            logger.debug(
                "Archive has %d duplicate paths; first occurrences win",
                len(self._records) - len(index),
            )

    @property
    def records(self) -> tuple[ArchiveRecord, ...]:
        """All records, in archive order."""
        return self._records

    @property
    def paths(self) -> tuple[str, ...]:
        """All record paths, in archive order."""
        return tuple(record.path for record in self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str) and not hasattr(path, "__fspath__"):
            return False
        return self.exists(path)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return f"ArchiveReader({len(self._records)} records)"

    def exists(self, path: PathLike) -> bool:
        """Check if a path has a record."""
        return to_archive_path(path) in self._index

    def _lookup(self, path: PathLike) -> ArchiveRecord:
        normalized = to_archive_path(path)
        record = self._index.get(normalized)
        if record is None:
            raise NotFoundError(normalized)
        return record

    def read_bytes(self, path: PathLike) -> bytes:
        """
        Read file contents as bytes.

        Args:
            path: Archive path, PathLike or file:// URL

        Returns:
            Decoded contents (fresh bytes per call)

        Raises:
            NotFoundError: If no record has the normalized path
            EncodingError: If the record's base64 is malformed
        """
        return self._lookup(path).decode()

    def read_text(self, path: PathLike, errors: str = "strict") -> str:
        """
        Read file contents as UTF-8 text.

        Args:
            path: Archive path, PathLike or file:// URL
            errors: Decode error handling (default strict)

        Raises:
            NotFoundError: If no record has the normalized path
            EncodingError: On malformed base64, or invalid UTF-8 when strict
        """
        raw = self.read_bytes(path)
        try:
            return raw.decode("utf-8", errors=errors)
        except UnicodeDecodeError as e:
            raise EncodingError(f"Invalid UTF-8 in {to_archive_path(path)}: {e}") from e

    async def read_bytes_async(self, path: PathLike) -> bytes:
        """Awaitable read_bytes(); errors surface on await."""
        return self.read_bytes(path)

    async def read_text_async(self, path: PathLike, errors: str = "strict") -> str:
        """Awaitable read_text(); errors surface on await."""
        raw = await self.read_bytes_async(path)
        try:
            return raw.decode("utf-8", errors=errors)
        except UnicodeDecodeError as e:
            raise EncodingError(f"Invalid UTF-8 in {to_archive_path(path)}: {e}") from e

    def expand_glob(self, pattern: str) -> Iterator[str]:
        """
        List archive paths matching a glob pattern.

        The pattern is matched against the whole path, leading "/" included.
        Paths are yielded in archive order. Each call scans afresh.

        Args:
            pattern: Glob pattern ("/" separators only)

        Yields:
            Matching archive paths

        Example:
            list(vfs.expand_glob("/test_assets/*_2.txt"))
            # ["/test_assets/asset_2.txt"]
        """
        matcher = compile_glob(pattern)
        for record in self._records:
            if matcher.match(record.path):
                yield record.path
