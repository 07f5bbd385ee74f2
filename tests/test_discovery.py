"""
Unit tests for asset discovery.

Tests cover:
- Glob expansion relative to a base directory (taken literally)
- Pattern ordering and deduplication
- Regular files only (no directories, no symlinks)
- Laziness and abort-on-failure
- Async discovery
"""

import base64
import os
import pathlib

import pytest

import embedfs.ingest.discovery as discovery
from embedfs import AssetIOError, ConfigurationError, discover, discover_async


def _paths(refs):
    return [ref.record.path for ref in refs]


class TestScenario:
    """Discovery over the bundled test_assets/ directory."""

    def test_glob_iteration(self, tests_dir):
        refs = list(discover(tests_dir, ["./test_assets/*.txt"]))

        assert len(refs) == 2
        # Enumeration order is not sorted; compare by path
        by_path = {ref.record.path: ref for ref in refs}
        assert sorted(by_path) == ["/test_assets/asset_1.txt", "/test_assets/asset_2.txt"]
        assert len(base64.b64decode(by_path["/test_assets/asset_1.txt"].record.contents)) == 16
        assert len(base64.b64decode(by_path["/test_assets/asset_2.txt"].record.contents)) == 48

    def test_literal_patterns_keep_order(self, tests_dir):
        refs = list(
            discover(tests_dir, ["./test_assets/asset_1.txt", "./test_assets/asset_2.txt"])
        )
        assert _paths(refs) == ["/test_assets/asset_1.txt", "/test_assets/asset_2.txt"]

    def test_system_path_is_absolute(self, tests_dir):
        ref = next(discover(tests_dir, ["./test_assets/asset_1.txt"]))
        assert os.path.isabs(ref.system_path)
        assert pathlib.Path(ref.system_path) == (tests_dir / "test_assets" / "asset_1.txt").resolve()


class TestDiscover:
    """Tests for discover()."""

    def test_round_trip_bytes(self, asset_tree):
        ref = next(discover(asset_tree, ["./b/*.bin"]))
        assert base64.b64decode(ref.record.contents) == bytes(range(256))

    def test_pattern_without_dot_prefix(self, asset_tree):
        assert sorted(_paths(discover(asset_tree, ["a/*.txt"]))) == ["/a/one.txt", "/a/two.txt"]

    def test_absolute_pattern(self, asset_tree):
        pattern = (asset_tree / "b").resolve().as_posix() + "/*.css"
        assert _paths(discover(asset_tree, [pattern])) == ["/b/three.css"]

    def test_star_does_not_descend(self, asset_tree):
        paths = _paths(discover(asset_tree, ["./a/*"]))
        assert sorted(paths) == ["/a/one.txt", "/a/two.txt"]

    def test_globstar_descends(self, asset_tree):
        paths = _paths(discover(asset_tree, ["./**/*.txt"]))
        assert sorted(paths) == ["/a/nested/deep.txt", "/a/one.txt", "/a/two.txt"]

    def test_globstar_everything(self, asset_tree):
        assert len(list(discover(asset_tree, ["./**"]))) == 5

    def test_directories_not_yielded(self, asset_tree):
        paths = _paths(discover(asset_tree, ["./a/*", "./*"]))
        assert "/a/nested" not in paths
        assert "/a" not in paths

    def test_symlinks_skipped(self, asset_tree):
        try:
            os.symlink(asset_tree / "a" / "one.txt", asset_tree / "a" / "link.txt")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")

        paths = _paths(discover(asset_tree, ["./a/*.txt"]))
        assert "/a/link.txt" not in paths

    def test_missing_prefix_yields_nothing(self, asset_tree):
        assert list(discover(asset_tree, ["./missing/*.txt"])) == []

    def test_missing_literal_yields_nothing(self, asset_tree):
        assert list(discover(asset_tree, ["./a/missing.txt"])) == []

    def test_patterns_processed_in_order(self, asset_tree):
        paths = _paths(discover(asset_tree, ["./b/*.css", "./a/one.txt"]))
        assert paths == ["/b/three.css", "/a/one.txt"]

    def test_file_outside_base_loses_dotdot(self, asset_tree):
        base = asset_tree / "a"
        paths = _paths(discover(base, ["../b/*.css"]))
        assert paths == ["/b/three.css"]

    def test_empty_patterns(self, asset_tree):
        with pytest.raises(ConfigurationError):
            discover(asset_tree, [])

    def test_empty_pattern_string(self, asset_tree):
        with pytest.raises(ConfigurationError):
            discover(asset_tree, [""])

    def test_base_not_a_directory(self, asset_tree):
        with pytest.raises(ConfigurationError):
            discover(asset_tree / "a" / "one.txt", ["./*"])

    def test_malformed_pattern(self, asset_tree):
        with pytest.raises(ConfigurationError, match="Invalid glob pattern"):
            discover(asset_tree, ["./a/[z-a].txt"])


class TestGlobCharactersInBase:
    """The base directory is a literal root, never glob syntax."""

    @pytest.fixture
    def site(self, tmp_path):
        base = tmp_path / "site[v1]{x}"
        (base / "a").mkdir(parents=True)
        (base / "b").mkdir()
        (base / "a" / "one.txt").write_text("one")
        (base / "b" / "three.css").write_text("body {}")
        return base

    def test_glob_pattern(self, site):
        assert _paths(discover(site, ["./a/*.txt"])) == ["/a/one.txt"]

    def test_literal_pattern(self, site):
        assert _paths(discover(site, ["./a/one.txt"])) == ["/a/one.txt"]

    def test_globstar(self, site):
        assert sorted(_paths(discover(site, ["**"]))) == ["/a/one.txt", "/b/three.css"]

    def test_pattern_leaving_base(self, site):
        assert _paths(discover(site / "a", ["../b/*.css"])) == ["/b/three.css"]


class TestDeduplication:
    """Tests for duplicate suppression."""

    def test_overlapping_patterns_yield_once(self, asset_tree):
        paths = _paths(discover(asset_tree, ["./a/*.txt", "./a/one.txt", "./**/one.txt"]))
        assert sorted(paths) == ["/a/one.txt", "/a/two.txt"]

    def test_allow_duplicates_yields_per_pattern(self, asset_tree):
        paths = _paths(
            discover(asset_tree, ["./a/*.txt", "./a/one.txt"], allow_duplicates=True)
        )
        assert sorted(paths) == ["/a/one.txt", "/a/one.txt", "/a/two.txt"]


class TestLaziness:
    """Tests for on-demand reads and failure handling."""

    def test_nothing_read_before_iteration(self, asset_tree, monkeypatch):
        calls = []
        original = discovery._read_asset

        def counting(system_path, base_dir):
            calls.append(system_path)
            return original(system_path, base_dir)

        monkeypatch.setattr(discovery, "_read_asset", counting)

        iterator = discover(asset_tree, ["./a/one.txt", "./a/two.txt", "./b/*"])
        assert calls == []

        next(iterator)
        assert len(calls) == 1

        # Stopping early triggers no further reads
        iterator.close()
        assert len(calls) == 1

    def test_read_failure_aborts_sequence(self, asset_tree, monkeypatch):
        original = pathlib.Path.read_bytes

        def failing(self):
            if self.name == "two.txt":
                raise PermissionError(13, "Permission denied", str(self))
            return original(self)

        monkeypatch.setattr(pathlib.Path, "read_bytes", failing)

        iterator = discover(asset_tree, ["./a/one.txt", "./a/two.txt", "./b/three.css"])
        first = next(iterator)
        assert first.record.path == "/a/one.txt"

        with pytest.raises(AssetIOError) as exc_info:
            next(iterator)
        assert isinstance(exc_info.value, OSError)
        assert isinstance(exc_info.value.__cause__, PermissionError)

        # Sequence is finished; already-yielded reference stays valid
        with pytest.raises(StopIteration):
            next(iterator)
        assert base64.b64decode(first.record.contents) == b"one"

    def test_scan_failure_raises_asset_io_error(self, asset_tree, monkeypatch):
        def failing_scandir(path):
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr(discovery.os, "scandir", failing_scandir)

        with pytest.raises(AssetIOError):
            list(discover(asset_tree, ["./a/*.txt"]))


class TestDiscoverAsync:
    """Tests for discover_async()."""

    @pytest.mark.asyncio
    async def test_matches_sync_discovery(self, asset_tree):
        refs = [ref async for ref in discover_async(asset_tree, ["./b/*.css", "./a/one.txt"])]
        assert _paths(refs) == ["/b/three.css", "/a/one.txt"]

    @pytest.mark.asyncio
    async def test_deduplicates(self, asset_tree):
        refs = [ref async for ref in discover_async(asset_tree, ["./a/*.txt", "./a/*.txt"])]
        assert len(refs) == 2

    @pytest.mark.asyncio
    async def test_configuration_error_surfaces_on_iteration(self, asset_tree):
        iterator = discover_async(asset_tree, [])
        with pytest.raises(ConfigurationError):
            await iterator.__anext__()

    @pytest.mark.asyncio
    async def test_early_stop_closes_sync_iterator(self, asset_tree, monkeypatch):
        closed = []
        real_discover = discovery.discover

        def tracking_discover(*args):
            def generate():
                try:
                    yield from real_discover(*args)
                finally:
                    closed.append(True)

            return generate()

        monkeypatch.setattr(discovery, "discover", tracking_discover)

        iterator = discover_async(asset_tree, ["./a/*.txt"])
        await iterator.__anext__()
        await iterator.aclose()

        assert closed == [True]


class TestResolvePattern:
    """Tests for resolve_pattern()."""

    def test_relative(self, tmp_path):
        assert discovery.resolve_pattern(str(tmp_path), "./a/*.txt") == (str(tmp_path), "a/*.txt")

    def test_base_kept_literal(self, tmp_path):
        base = str(tmp_path / "site[v1]")
        assert discovery.resolve_pattern(base, "**") == (base, "**")

    def test_leading_dotdot_moves_root(self, tmp_path):
        base = str(tmp_path / "a")
        assert discovery.resolve_pattern(base, "../b/*.css") == (str(tmp_path), "b/*.css")

    def test_base_itself(self, tmp_path):
        assert discovery.resolve_pattern(str(tmp_path), ".") == (str(tmp_path), "")
