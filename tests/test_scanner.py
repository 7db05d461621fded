"""Tests for size measurement and location scanning."""

import os
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from conftest import FIXED_NOW, blocks_of, set_age, write_file

from cachecleaner.cancellation import CancelToken, OperationCancelled
from cachecleaner.models import CacheLocation
from cachecleaner.scanner import _du_size, get_directory_size, get_disk_usage, scan_location

CUTOFF_30_DAYS = FIXED_NOW.timestamp() - 30 * 86400


class TestGetDirectorySize:
    def test_single_file(self, tmp_path):
        f = write_file(tmp_path / "file.bin", 8192)
        assert get_directory_size(f) == blocks_of(f)

    def test_directory_includes_contents(self, tmp_path):
        d = tmp_path / "dir"
        a = write_file(d / "a.bin", 4096)
        b = write_file(d / "sub" / "b.bin", 10000)

        expected = blocks_of(d) + blocks_of(d / "sub") + blocks_of(a) + blocks_of(b)
        assert get_directory_size(d) == expected

    def test_reports_allocated_not_logical_size(self, tmp_path):
        """A sparse file occupies far less than its logical length."""
        sparse = tmp_path / "sparse.img"
        with open(sparse, "wb") as fh:
            fh.truncate(50 * 1024 * 1024)

        size = get_directory_size(sparse)
        assert size == blocks_of(sparse)
        assert size < 50 * 1024 * 1024

    def test_counts_hard_links_once(self, tmp_path):
        d = tmp_path / "dir"
        original = write_file(d / "original.bin", 8192)
        os.link(original, d / "link.bin")

        assert get_directory_size(d) == blocks_of(d) + blocks_of(original)

    def test_does_not_follow_symlinks(self, tmp_path):
        outside = write_file(tmp_path / "outside" / "big.bin", 100_000)
        d = tmp_path / "dir"
        d.mkdir()
        (d / "link").symlink_to(outside.parent)

        assert get_directory_size(d) == blocks_of(d) + blocks_of(d / "link")

    def test_missing_path_returns_none(self, tmp_path):
        assert get_directory_size(tmp_path / "missing") is None

    def test_unreadable_subtree_contributes_nothing(self, tmp_path):
        d = tmp_path / "dir"
        write_file(d / "a.bin", 4096)

        with patch("os.scandir", side_effect=PermissionError("Access denied")):
            assert get_directory_size(d) == blocks_of(d)

    def test_very_deep_tree(self, tmp_path, deep_tree):
        """Nesting deeper than the interpreter recursion limit is still measured."""
        top = tmp_path / "deep"
        top.mkdir()
        leaf = write_file(deep_tree(top, 1200) / "leaf.bin", 4096)

        expected = blocks_of(leaf)
        level = leaf.parent
        while level != tmp_path:
            expected += blocks_of(level)
            level = level.parent
        assert get_directory_size(top) == expected

    def test_falls_back_to_du_without_st_blocks(self, tmp_path):
        fake_stat = MagicMock(spec=["st_mode", "st_size"])
        with patch("os.lstat", return_value=fake_stat), patch(
            "cachecleaner.scanner._du_size", return_value=12345
        ) as mock_du:
            assert get_directory_size(tmp_path) == 12345
        mock_du.assert_called_once_with(tmp_path)


class TestDuSize:
    def test_parses_du_output(self, tmp_path):
        completed = subprocess.CompletedProcess(
            args=[], returncode=0, stdout=f"12\t{tmp_path}\n", stderr=""
        )
        with patch("subprocess.run", return_value=completed):
            assert _du_size(tmp_path) == 12 * 1024

    def test_missing_du_returns_none(self, tmp_path):
        with patch("subprocess.run", side_effect=FileNotFoundError("du")):
            assert _du_size(tmp_path) is None

    def test_timeout_returns_none(self, tmp_path):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("du", 300)):
            assert _du_size(tmp_path) is None

    def test_garbage_output_returns_none(self, tmp_path):
        completed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="boom")
        with patch("subprocess.run", return_value=completed):
            assert _du_size(tmp_path) is None


class TestScanLocation:
    def test_logs_example(self, home):
        """One file older than the cutoff, one newer: only the old one counts."""
        logs = home / "Library" / "Logs"
        old = write_file(logs / "old.log", 4096)
        new = write_file(logs / "new.log", 8192)
        set_age(old, 40)
        set_age(new, 5)
        location = CacheLocation(name="Logs", base_paths=["~/Library/Logs"])

        category = scan_location(location, CUTOFF_30_DAYS)
        assert category.name == "Logs"
        assert category.size_bytes == blocks_of(old)
        assert category.item_count == 1

    def test_missing_base_path(self, home):
        location = CacheLocation(name="Missing", base_paths=["~/nope"])
        category = scan_location(location, CUTOFF_30_DAYS)
        assert category.size_bytes == 0
        assert category.item_count == 0

    def test_pattern_location_measures_whole_match(self, home):
        node_modules = home / "code" / "app" / "node_modules"
        pkg = write_file(node_modules / "react" / "index.js", 20000)
        set_age(node_modules, 60)
        location = CacheLocation(name="node_modules", base_paths=["~"], name_pattern="node_modules")

        category = scan_location(location, CUTOFF_30_DAYS)
        assert category.item_count == 1
        assert category.size_bytes == (
            blocks_of(node_modules) + blocks_of(pkg.parent) + blocks_of(pkg)
        )

    def test_recent_pattern_match_is_ignored(self, home):
        node_modules = home / "app" / "node_modules"
        node_modules.mkdir(parents=True)
        set_age(node_modules, 1)
        location = CacheLocation(name="node_modules", base_paths=["~"], name_pattern="node_modules")

        assert scan_location(location, CUTOFF_30_DAYS).item_count == 0

    def test_deeply_nested_entry(self, home, deep_tree):
        cache = home / "cache"
        entry = cache / "bundle"
        entry.mkdir(parents=True)
        write_file(deep_tree(entry, 1200) / "leaf.bin", 4096)
        set_age(entry, 60)
        location = CacheLocation(name="Cache", base_paths=["~/cache"])

        category = scan_location(location, CUTOFF_30_DAYS)
        assert category.item_count == 1
        assert category.size_bytes == get_directory_size(entry)

    def test_skips_entries_that_cannot_be_measured(self, home):
        cache = home / "cache"
        for name in ["a", "b"]:
            set_age(write_file(cache / name, 4096), 40)
        location = CacheLocation(name="Cache", base_paths=["~/cache"])

        with patch("cachecleaner.scanner.get_directory_size", side_effect=[None, 4096]):
            category = scan_location(location, CUTOFF_30_DAYS)
        assert category.item_count == 1
        assert category.size_bytes == 4096

    def test_raises_when_cancelled(self, home):
        cache = home / "cache"
        set_age(write_file(cache / "a", 4096), 40)
        location = CacheLocation(name="Cache", base_paths=["~/cache"])
        token = CancelToken()
        token.cancel()

        with pytest.raises(OperationCancelled):
            scan_location(location, CUTOFF_30_DAYS, token)


class TestGetDiskUsage:
    def test_defaults_to_home(self, home):
        usage = get_disk_usage()
        assert usage is not None
        assert usage.mount_point == str(home)
        assert usage.total_bytes > 0
        assert 0 <= usage.free_bytes <= usage.total_bytes

    def test_explicit_path(self, tmp_path):
        usage = get_disk_usage(tmp_path)
        assert usage.mount_point == str(tmp_path)

    def test_returns_none_on_error(self, tmp_path):
        assert get_disk_usage(tmp_path / "missing") is None
