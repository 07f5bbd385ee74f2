"""
Embedfs: embed on-disk assets into a Python build and read them back
through a filesystem-like API, without touching disk at runtime.

Usage:
    from embedfs import ArchiveReader, discover

    # Build time
    records = [ref.record for ref in discover(".", ["./static/**"])]

    # Run time
    vfs = ArchiveReader(records)
    vfs.read_text("/static/site.css")
    list(vfs.expand_glob("/static/*.css"))
"""

__version__ = "0.1.1"

# Persisted archive format revision
FORMAT_VERSION = "1"

from .errors import (  # noqa: E402
    ArchiveFormatError,
    AssetIOError,
    ConfigurationError,
    EmbedFSError,
    EncodingError,
    NotFoundError,
)
from .ingest import discover, discover_async  # noqa: E402
from .paths import compile_glob, normalize_path, to_archive_path  # noqa: E402
from .reader import ArchiveReader, AssetReader  # noqa: E402
from .records import ArchiveRecord, AssetReference  # noqa: E402

__all__ = [
    "__version__",
    "FORMAT_VERSION",
    # Records
    "ArchiveRecord",
    "AssetReference",
    # Discovery
    "discover",
    "discover_async",
    # Reader
    "ArchiveReader",
    "AssetReader",
    # Paths
    "compile_glob",
    "normalize_path",
    "to_archive_path",
    # Exceptions
    "EmbedFSError",
    "ConfigurationError",
    "AssetIOError",
    "NotFoundError",
    "EncodingError",
    "ArchiveFormatError",
]
