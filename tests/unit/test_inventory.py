"""Unit tests for the asset inventory (size snapshots and diffs)."""

from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from appbuild.pipeline.inventory import (
    FileSize,
    SizeDelta,
    diff,
    gzip_size,
    remove_file_name_hash,
    snapshot,
)


class TestSnapshot:
    """Tests for snapshot()."""

    @pytest.mark.requirement("inventory-snapshot")
    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        """A directory that does not exist yet (first build) has no sizes."""
        assert snapshot(tmp_path / "build") == {}

    @pytest.mark.requirement("inventory-snapshot")
    def test_empty_directory_is_empty(self, tmp_path: Path) -> None:
        assert snapshot(tmp_path) == {}

    @pytest.mark.requirement("inventory-snapshot")
    def test_records_raw_and_gzip_sizes(self, tmp_path: Path) -> None:
        """Every file is keyed by its relative POSIX path."""
        content = b"console.log('x');" * 100
        (tmp_path / "static" / "js").mkdir(parents=True)
        (tmp_path / "static" / "js" / "main.abc123.js").write_bytes(content)
        (tmp_path / "favicon.ico").write_bytes(b"ico")

        sizes = snapshot(tmp_path)

        assert set(sizes) == {"favicon.ico", "static/js/main.abc123.js"}
        main = sizes["static/js/main.abc123.js"]
        assert main.raw_bytes == len(content)
        assert main.gzip_bytes == len(gzip.compress(content, compresslevel=9))
        assert main.gzip_bytes < main.raw_bytes

    @pytest.mark.requirement("inventory-snapshot")
    def test_directories_are_not_entries(self, tmp_path: Path) -> None:
        (tmp_path / "static" / "media").mkdir(parents=True)

        assert snapshot(tmp_path) == {}


class TestRemoveFileNameHash:
    """Tests for remove_file_name_hash()."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("static/js/main.8f4c2a1b.js", "static/js/main.js"),
            ("static/js/787.1a2b3c4d.chunk.js", "static/js/787.js"),
            ("static/css/main.0ff1ce.css", "static/css/main.css"),
            ("favicon.ico", "favicon.ico"),
            ("manifest.json", "manifest.json"),
        ],
    )
    def test_strips_content_hash(self, path: str, expected: str) -> None:
        assert remove_file_name_hash(path) == expected


class TestDiff:
    """Tests for diff()."""

    @pytest.mark.requirement("inventory-diff")
    def test_pairs_assets_across_hash_changes(self) -> None:
        """main.<old>.js and main.<new>.js are the same asset."""
        before = {"static/js/main.aaaa1111.js": FileSize(raw_bytes=1000, gzip_bytes=400)}
        after = {"static/js/main.bbbb2222.js": FileSize(raw_bytes=1200, gzip_bytes=500)}

        deltas = diff(before, after)

        assert len(deltas) == 1
        assert deltas[0].path == "static/js/main.bbbb2222.js"
        assert deltas[0].gzip_delta == 100

    @pytest.mark.requirement("inventory-diff")
    def test_new_and_removed_assets(self) -> None:
        before = {"old.css": FileSize(raw_bytes=10, gzip_bytes=10)}
        after = {"new.css": FileSize(raw_bytes=30, gzip_bytes=30)}

        deltas = {delta.path: delta for delta in diff(before, after)}

        assert deltas["new.css"].before is None
        assert deltas["new.css"].gzip_delta == 30
        assert deltas["old.css"].after is None
        assert deltas["old.css"].gzip_delta == -10

    @pytest.mark.requirement("inventory-diff")
    def test_sorted_by_absolute_change(self) -> None:
        before = {
            "a.js": FileSize(raw_bytes=100, gzip_bytes=100),
            "b.js": FileSize(raw_bytes=100, gzip_bytes=100),
        }
        after = {
            "a.js": FileSize(raw_bytes=110, gzip_bytes=110),
            "b.js": FileSize(raw_bytes=10, gzip_bytes=10),
            "c.js": FileSize(raw_bytes=20, gzip_bytes=20),
        }

        assert [delta.path for delta in diff(before, after)] == ["b.js", "c.js", "a.js"]

    @pytest.mark.requirement("inventory-diff")
    def test_colliding_baseline_names_all_reported(self) -> None:
        """Two old builds of main.js: one pairs with the new file, the other is removed."""
        before = {
            "static/js/main.aaaa1111.js": FileSize(raw_bytes=100, gzip_bytes=40),
            "static/js/main.cccc3333.js": FileSize(raw_bytes=200, gzip_bytes=80),
        }
        after = {"static/js/main.bbbb2222.js": FileSize(raw_bytes=150, gzip_bytes=60)}

        deltas = {delta.path: delta for delta in diff(before, after)}

        assert set(deltas) == {
            "static/js/main.aaaa1111.js",
            "static/js/main.bbbb2222.js",
            "static/js/main.cccc3333.js",
        }
        assert deltas["static/js/main.bbbb2222.js"].gzip_delta == 20
        assert deltas["static/js/main.aaaa1111.js"].after is None
        assert deltas["static/js/main.cccc3333.js"].after is None
        assert deltas["static/js/main.cccc3333.js"].gzip_delta == -80

    @pytest.mark.requirement("inventory-diff")
    def test_unchanged_path_pairs_with_itself(self) -> None:
        before = {
            "static/js/main.aaaa1111.js": FileSize(raw_bytes=100, gzip_bytes=40),
            "static/js/main.bbbb2222.js": FileSize(raw_bytes=200, gzip_bytes=80),
        }
        after = {"static/js/main.bbbb2222.js": FileSize(raw_bytes=200, gzip_bytes=80)}

        deltas = {delta.path: delta for delta in diff(before, after)}

        assert deltas["static/js/main.bbbb2222.js"].gzip_delta == 0
        assert deltas["static/js/main.aaaa1111.js"].after is None

    def test_empty_snapshots(self) -> None:
        assert diff({}, {}) == []


def test_gzip_size_matches_gzip_module() -> None:
    data = b"x" * 4096
    assert gzip_size(data) == len(gzip.compress(data, compresslevel=9))


def test_size_delta_without_sizes() -> None:
    assert SizeDelta(path="gone.js", before=None, after=None).gzip_delta == 0
