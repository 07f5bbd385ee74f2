"""
Archive packaging.

Serializes discovered assets into a persisted archive and loads it back.
Two formats are supported, chosen by the output file suffix:

- ".py":   a Python module exporting `assets = [{"path": ..., "contents": ...}, ...]`
- ".json": a JSON array of {"path", "contents"} objects

The archive file is only written after discovery has finished, so a
failed build never leaves a partial archive behind.
"""

from __future__ import annotations

import importlib.util
import json
import logging
from pathlib import Path
from typing import Iterable, Literal

from embedfs import FORMAT_VERSION, __version__
from embedfs.errors import ArchiveFormatError, AssetIOError, ConfigurationError
from embedfs.ingest import discover
from embedfs.reader import ArchiveReader
from embedfs.records import ArchiveRecord, AssetReference

logger = logging.getLogger(__name__)

ArchiveFormat = Literal["module", "json"]

DEFAULT_EXPORT_NAME = "assets"

# Suffix -> archive format
ARCHIVE_SUFFIXES: dict[str, ArchiveFormat] = {
    ".py": "module",
    ".json": "json",
}


def archive_format(out: str | Path) -> ArchiveFormat:
    """
    Determine the archive format from an output path.

    Raises:
        ConfigurationError: If the suffix is not .py or .json
    """
    suffix = Path(out).suffix.lower()
    fmt = ARCHIVE_SUFFIXES.get(suffix)
    if fmt is None:
        raise ConfigurationError(
            f"Unsupported archive extension {suffix or '(none)'!r} for {out}; use .py or .json"
        )
    return fmt


def _as_records(items: Iterable[AssetReference | ArchiveRecord]) -> list[ArchiveRecord]:
    return [item.record if isinstance(item, AssetReference) else item for item in items]


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------


def render_module(
    items: Iterable[AssetReference | ArchiveRecord],
    export_name: str = DEFAULT_EXPORT_NAME,
) -> str:
    """
    Render records as Python module source.

    Args:
        items: Asset references or records, in archive order
        export_name: Name of the module-level list

    Returns:
        Module source text
    """
    if not export_name.isidentifier():
        raise ConfigurationError(f"Export name must be a Python identifier: {export_name!r}")

    lines = [
        f"# Generated by embedfs {__version__} (archive format {FORMAT_VERSION}). Do not edit.",
        "# fmt: off",
        f"{export_name} = [",
    ]
    for record in _as_records(items):
        # Non-ASCII stays literal; an escaped astral character would split into surrogates
        lines.append("    {")
        lines.append(f'        "path": {json.dumps(record.path, ensure_ascii=False)},')
        lines.append(f'        "contents": {json.dumps(record.contents)},')
        lines.append("    },")
    lines.append("]")
    return "\n".join(lines) + "\n"


def render_json(items: Iterable[AssetReference | ArchiveRecord]) -> str:
    """Render records as a JSON array."""
    return json.dumps([record.to_dict() for record in _as_records(items)], indent=2) + "\n"


def render_archive(
    items: Iterable[AssetReference | ArchiveRecord],
    fmt: ArchiveFormat = "module",
    export_name: str = DEFAULT_EXPORT_NAME,
) -> str:
    """Render records in the given archive format."""
    if fmt == "json":
        return render_json(items)
    return render_module(items, export_name)


# -----------------------------------------------------------------------------
# Build
# -----------------------------------------------------------------------------


def build_archive(
    cwd: str | Path,
    globs: list[str],
    out: str | Path | None = None,
    *,
    allow_duplicates: bool = False,
    export_name: str = DEFAULT_EXPORT_NAME,
) -> str:
    """
    Discover assets and render (and optionally write) an archive.

    Args:
        cwd: Base directory for discovery and for a relative `out`
        globs: Ordered glob patterns
        out: Output file (.py or .json); None renders without writing
        allow_duplicates: Passed through to discovery
        export_name: Module-level name for .py archives

    Returns:
        The rendered archive text

    Raises:
        ConfigurationError: On invalid globs or output suffix
        AssetIOError: On discovery or write failure

    Example:
        build_archive(".", ["./static/**"], "app/assets.py")
    """
    out_path: Path | None = None
    fmt: ArchiveFormat = "module"
    if out is not None:
        out_path = Path(cwd) / out
        fmt = archive_format(out_path)

    refs: list[AssetReference] = []
    for ref in discover(cwd, globs, allow_duplicates):
        refs.append(ref)
        logger.info("%s ~ %s", ref.path, ref.system_path)

    text = render_archive(refs, fmt, export_name)

    if out_path is not None:
        out_path = out_path.resolve()
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise AssetIOError(f"Failed to write archive {out_path}: {e}") from e
        logger.info("Written to %s...", out_path)

    logger.debug("Packaged %d assets", len(refs))
    return text


# -----------------------------------------------------------------------------
# Load
# -----------------------------------------------------------------------------


def load_records(path: str | Path, export_name: str = DEFAULT_EXPORT_NAME) -> list[dict]:
    """
    Load raw records from a persisted archive file.

    Raises:
        AssetIOError: If the file cannot be read
        ArchiveFormatError: If the file does not hold an archive
        ConfigurationError: If the suffix is not .py or .json
    """
    archive_path = Path(path)
    fmt = archive_format(archive_path)

    if fmt == "json":
        try:
            text = archive_path.read_text(encoding="utf-8")
        except OSError as e:
            raise AssetIOError(f"Failed to read archive {archive_path}: {e}") from e
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ArchiveFormatError(f"Invalid JSON archive {archive_path}: {e}") from e
    else:
        if not archive_path.is_file():
            raise AssetIOError(f"Archive not found: {archive_path}")
        spec = importlib.util.spec_from_file_location(f"_embedfs_archive_{archive_path.stem}", archive_path)
        if spec is None or spec.loader is None:
            raise ArchiveFormatError(f"Cannot import archive module {archive_path}")
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except OSError as e:
            raise AssetIOError(f"Failed to read archive {archive_path}: {e}") from e
        except Exception as e:
            raise ArchiveFormatError(f"Invalid archive module {archive_path}: {e}") from e
        data = getattr(module, export_name, None)
        if data is None:
            raise ArchiveFormatError(f"Archive module {archive_path} has no {export_name!r}")

    if not isinstance(data, list):
        raise ArchiveFormatError(f"Archive {archive_path} must hold a list of records")
    return data


def load_archive(path: str | Path, export_name: str = DEFAULT_EXPORT_NAME) -> ArchiveReader:
    """
    Load a persisted archive file into an ArchiveReader.

    Example:
        vfs = load_archive("app/assets.json")
        vfs.read_text("/templates/index.html")
    """
    return ArchiveReader(load_records(path, export_name))
