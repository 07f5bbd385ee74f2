"""
Embedfs ingest layer.

Discovers on-disk files matching glob patterns and turns them into
archive records, lazily and one file at a time.

Usage:
    from embedfs.ingest import discover

    for ref in discover("./my-project", ["./static/**/*.css", "./templates/*"]):
        print(ref.record.path, ref.system_path)
"""

from .discovery import discover, discover_async, iter_glob, resolve_pattern

__all__ = [
    "discover",
    "discover_async",
    "iter_glob",
    "resolve_pattern",
]
