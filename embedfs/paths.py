"""
Path and glob helpers shared by discovery and the archive reader.

Archive paths are always "/"-rooted POSIX strings with no "." or ".."
segments and no trailing slash. Glob patterns compile to anchored regular
expressions that match a whole path.
"""

from __future__ import annotations

import os
import posixpath
import re
from pathlib import PurePath
from typing import Union
from urllib.parse import unquote, urlparse

from embedfs.errors import ConfigurationError

PathLike = Union[str, os.PathLike]

# Characters that make a path segment a glob
GLOB_CHARS: frozenset[str] = frozenset("*?[{")


def normalize_path(path: str) -> str:
    """
    Normalize a path string to canonical archive form.

    Converts backslashes to forward slashes, roots the path at "/",
    and collapses "." and ".." segments. ".." never climbs above root.

    Args:
        path: Relative or absolute path, any separator style

    Returns:
        Canonical archive path (e.g. "/test_assets/asset_1.txt")
    """
    normalized = path.replace("\\", "/")
    normalized = posixpath.normpath("/" + normalized)
    # posixpath keeps a leading "//" as-is
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def to_archive_path(path: PathLike) -> str:
    """
    Convert a path address into a canonical archive path.

    Accepts plain strings, os.PathLike values (e.g. PurePosixPath) and
    file:// URLs.
    """
    if isinstance(path, PurePath):
        raw = path.as_posix()
    elif isinstance(path, os.PathLike):
        raw = os.fspath(path)
    else:
        raw = path

    if raw.startswith("file://"):
        raw = unquote(urlparse(raw).path)

    return normalize_path(raw)


def relative_archive_path(system_path: str, base_dir: str) -> str:
    """Archive path of a file relative to the base directory."""
    rel = os.path.relpath(system_path, base_dir)
    return normalize_path(rel)


def is_glob(segment: str) -> bool:
    """Check if a path segment contains glob syntax."""
    return any(c in GLOB_CHARS for c in segment)


# -----------------------------------------------------------------------------
# Glob compilation
# -----------------------------------------------------------------------------


def _class_body(body: str) -> str:
    """Escape a character class body so only "-" ranges keep a meaning."""
    out: list[str] = []
    for c in body:
        # Doubled "&", "~", "-" and "|" are reserved for set operations
        if c in "\\[]^&~|" or (c == "-" and out and out[-1] == "-"):
            out.append("\\" + c)
        else:
            out.append(c)
    return "".join(out)


def _translate_segment(segment: str) -> str:
    """Translate a single glob segment (no "/") to a regex fragment."""
    out: list[str] = []
    i = 0
    n = len(segment)

    while i < n:
        c = segment[i]

        if c == "\\":
            # Escape next character literally
            if i + 1 < n:
                out.append(re.escape(segment[i + 1]))
                i += 2
            else:
                out.append(re.escape(c))
                i += 1
            continue

        if c == "*":
            # Collapse runs of stars; inside a segment ** acts like *
            while i < n and segment[i] == "*":
                i += 1
            out.append("[^/]*")
            continue

        if c == "?":
            out.append("[^/]")
            i += 1
            continue

        if c == "[":
            # A "]" directly after "[" or "[!" is part of the class
            start = i + 3 if i + 1 < n and segment[i + 1] in "!^" else i + 2
            end = segment.find("]", start)
            if end == -1:
                out.append(re.escape(c))
                i += 1
                continue
            body = segment[i + 1 : end]
            negate = body[:1] in ("!", "^")
            if negate:
                body = body[1:]
            body = _class_body(body)
            out.append(f"[^/{body}]" if negate else f"[{body}]")
            i = end + 1
            continue

        if c == "{":
            end = segment.find("}", i + 1)
            if end == -1:
                out.append(re.escape(c))
                i += 1
                continue
            options = segment[i + 1 : end].split(",")
            out.append("(?:" + "|".join(_translate_segment(o) for o in options) + ")")
            i = end + 1
            continue

        out.append(re.escape(c))
        i += 1

    return "".join(out)


def glob_to_regex(pattern: str) -> str:
    """
    Translate a glob pattern into an anchored regular expression string.

    Supported syntax:
        *        any run of characters within one segment
        **       (whole segment) zero or more segments
        ?        one character within a segment
        [abc]    character class, [!a] / [^a] negated
        {a,b}    alternation
        \\x      literal x

    "/" is the only separator. A trailing "/" in a pattern is ignored.

    Args:
        pattern: Glob pattern

    Returns:
        Regex source anchored with ^ and $
    """
    segments = pattern.split("/")
    # Ignore trailing separator
    if len(segments) > 1 and segments[-1] == "":
        segments.pop()

    out = ["^"]
    last = len(segments) - 1

    for i, segment in enumerate(segments):
        if segment == "**":
            if i == last:
                # "a/**" also matches "a" itself
                if i > 0:
                    out[-1] = out[-1].removesuffix("/")
                    out.append("(?:/.*)?")
                else:
                    out.append(".*")
            else:
                out.append("(?:[^/]*/)*")
            continue

        out.append(_translate_segment(segment))
        if i != last:
            out.append("/")

    out.append("$")
    return "".join(out)


def compile_glob(pattern: str) -> re.Pattern[str]:
    """
    Compile a glob pattern to a reusable path matcher.

    Example:
        matcher = compile_glob("/test_assets/*.txt")
        matcher.match("/test_assets/asset_1.txt")  # match
        matcher.match("/test_assets/sub/a.txt")  # None

    Raises:
        ConfigurationError: If the pattern does not compile (e.g. "[z-a]")
    """
    try:
        return re.compile(glob_to_regex(pattern))
    except re.error as e:
        raise ConfigurationError(f"Invalid glob pattern {pattern!r}: {e}") from e


def split_glob(pattern: str) -> tuple[str, list[str]]:
    """
    Split a POSIX glob pattern into its literal prefix and glob segments.

    Returns:
        (prefix directory, remaining segments starting at the first glob)
    """
    segments = pattern.split("/")
    for i, segment in enumerate(segments):
        if is_glob(segment):
            prefix = "/".join(segments[:i])
            if not prefix and pattern.startswith("/"):
                prefix = "/"
            return prefix, segments[i:]
    return pattern, []
