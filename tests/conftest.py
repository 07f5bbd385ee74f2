"""Shared fixtures for embedfs tests."""

import logging
from pathlib import Path

import pytest

from embedfs import ArchiveRecord

TESTS_DIR = Path(__file__).parent


@pytest.fixture
def tests_dir():
    """Directory holding the test_assets/ fixture files."""
    return TESTS_DIR


@pytest.fixture
def asset_tree(tmp_path):
    """
    Create a small asset tree.

    Layout:
        a/one.txt
        a/two.txt
        a/nested/deep.txt
        b/three.css
        b/logo.bin
    """
    (tmp_path / "a" / "nested").mkdir(parents=True)
    (tmp_path / "b").mkdir()
    (tmp_path / "a" / "one.txt").write_text("one")
    (tmp_path / "a" / "two.txt").write_text("two")
    (tmp_path / "a" / "nested" / "deep.txt").write_text("deep")
    (tmp_path / "b" / "three.css").write_text("body {}")
    (tmp_path / "b" / "logo.bin").write_bytes(bytes(range(256)))
    return tmp_path


@pytest.fixture
def records():
    """Records for a small archive, in archive order."""
    return [
        ArchiveRecord.from_bytes("/index.html", b"<h1>hi</h1>"),
        ArchiveRecord.from_bytes("/static/site.css", b"body {}"),
        ArchiveRecord.from_bytes("/static/js/app.js", b"console.log(1)"),
        ArchiveRecord.from_bytes("/static/logo.png", b"\x89PNG\r\n\x1a\n"),
    ]


@pytest.fixture(autouse=True)
def reset_embedfs_logger():
    """Undo CLI logging setup so caplog sees embedfs records."""
    yield
    logger = logging.getLogger("embedfs")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
