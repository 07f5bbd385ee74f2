"""
Asset discovery.

Walks glob patterns against a base directory and yields an AssetReference
for each matching regular file. Files are read one at a time, on demand:
a consumer that stops iterating early triggers no further reads.

Ordering:
    Patterns are processed in the order given. Within a pattern, files are
    yielded in filesystem-enumeration order (depth-first, entries in the
    order the OS lists them). This order is not sorted and may differ
    between machines.
"""

from __future__ import annotations

import asyncio
import logging
import os
import posixpath
from pathlib import Path
from typing import AsyncIterator, Iterable, Iterator

from embedfs.errors import AssetIOError, ConfigurationError
from embedfs.paths import compile_glob, relative_archive_path, split_glob
from embedfs.records import ArchiveRecord, AssetReference

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Glob walking
# -----------------------------------------------------------------------------


def resolve_pattern(base_dir: str, pattern: str) -> tuple[str, str]:
    """
    Split a glob pattern into a literal walk root and a relative pattern.

    Relative patterns ("./assets/*.txt", "assets/**") are rooted at
    base_dir, which is never read as glob syntax. Leading ".." segments
    move the root up. Absolute patterns are rooted at their anchor.

    Returns:
        (root directory, normalized POSIX pattern relative to root; "" for
        the root itself)
    """
    if posixpath.isabs(pattern) or Path(pattern).is_absolute():
        anchor = Path(pattern).anchor or "/"
        root, rel = Path(anchor), pattern[len(anchor) :]
    else:
        root, rel = Path(base_dir), pattern

    rel = posixpath.normpath(rel or ".")
    while rel == ".." or rel.startswith("../"):
        root = root.parent
        rel = rel[3:] or "."
    return str(root), "" if rel == "." else rel


def _scan(directory: str, depth: int, max_depth: int | None) -> Iterator[os.DirEntry[str]]:
    """Depth-first scan yielding regular, non-symlink file entries."""
    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.is_symlink():
                continue
            if entry.is_dir(follow_symlinks=False):
                if max_depth is None or depth < max_depth:
                    yield from _scan(entry.path, depth + 1, max_depth)
                continue
            if entry.is_file(follow_symlinks=False):
                yield entry


def iter_glob(root: str, pattern: str) -> Iterator[str]:
    """
    Iterate paths of regular files under root matching a relative pattern.

    The walk starts at the literal directory prefix of the pattern. A
    missing prefix yields nothing. Patterns without "**" are not walked
    deeper than their own segment count.

    Args:
        root: Directory the pattern is relative to, taken literally
        pattern: Relative, normalized POSIX-style glob pattern

    Yields:
        Native path of each matching file

    Raises:
        ConfigurationError: If the pattern does not compile
        OSError: If a directory cannot be listed
    """
    base = Path(root)
    prefix, glob_segments = split_glob(pattern)

    if not glob_segments:
        # Literal path: match only if it is a regular file
        target = base / prefix
        try:
            if target.is_symlink() or not target.is_file():
                return
        except OSError:
            return
        yield str(target)
        return

    start = base / prefix
    if not start.is_dir() or start.is_symlink():
        return

    matcher = compile_glob(pattern)
    max_depth = None if "**" in glob_segments else len(glob_segments) - 1

    for entry in _scan(str(start), 0, max_depth):
        if matcher.match(Path(entry.path).relative_to(base).as_posix()):
            yield entry.path


# -----------------------------------------------------------------------------
# Discovery
# -----------------------------------------------------------------------------


def _read_asset(system_path: str, base_dir: str) -> AssetReference:
    """Read a file and build its AssetReference."""
    try:
        data = Path(system_path).read_bytes()
    except OSError as e:
        raise AssetIOError(f"Failed to read asset {system_path}: {e}") from e

    record = ArchiveRecord.from_bytes(relative_archive_path(system_path, base_dir), data)
    return AssetReference(system_path=system_path, record=record)


def discover(
    base_dir: str | Path,
    patterns: Iterable[str],
    allow_duplicates: bool = False,
) -> Iterator[AssetReference]:
    """
    Discover assets matching glob patterns under a base directory.

    Single-pass and lazy: nothing is read until the iterator is advanced.
    Any I/O failure raises AssetIOError and ends the sequence; references
    already yielded stay valid.

    Args:
        base_dir: Base directory; archive paths are relative to it
        patterns: Ordered glob patterns (relative to base_dir or absolute)
        allow_duplicates: Yield a file once per matching pattern

    Yields:
        AssetReference for each matching regular file

    Raises:
        ConfigurationError: If patterns is empty or malformed, or base_dir is
            not a directory
        AssetIOError: On directory listing or file read failure

    Example:
        for ref in discover("./project", ["./test_assets/*.txt"]):
            print(ref.record.path, ref.system_path)
    """
    globs = list(patterns)
    if not globs:
        raise ConfigurationError("At least one glob pattern is required.")
    for glob in globs:
        if not isinstance(glob, str) or not glob:
            raise ConfigurationError(f"Glob patterns must be non-empty strings: {glob!r}")
        compile_glob(glob)

    base = Path(base_dir).resolve()
    if not base.is_dir():
        raise ConfigurationError(f"Not a directory: {base}")

    return _discover(str(base), globs, allow_duplicates)


def _discover(base_dir: str, globs: list[str], allow_duplicates: bool) -> Iterator[AssetReference]:
    seen: set[str] = set()

    for glob in globs:
        root, pattern = resolve_pattern(base_dir, glob)
        logger.debug("Expanding %s in %s", pattern, root)

        try:
            for system_path in iter_glob(root, pattern):
                if not allow_duplicates and system_path in seen:
                    continue
                seen.add(system_path)
                yield _read_asset(system_path, base_dir)
        except AssetIOError:
            raise
        except OSError as e:
            raise AssetIOError(f"Failed to scan {glob!r}: {e}") from e


_END = object()


async def discover_async(
    base_dir: str | Path,
    patterns: Iterable[str],
    allow_duplicates: bool = False,
) -> AsyncIterator[AssetReference]:
    """
    Async variant of discover().

    Each step (directory listing plus one file read) runs in a worker
    thread so the event loop is never blocked. Files are still read one
    at a time, in the same order, with the same deduplication.

    Example:
        async for ref in discover_async(".", ["./assets/**"]):
            refs.append(ref)
    """
    iterator = discover(base_dir, patterns, allow_duplicates)
    try:
        while True:
            ref = await asyncio.to_thread(next, iterator, _END)
            if ref is _END:
                return
            yield ref
    finally:
        iterator.close()
