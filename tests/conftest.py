"""Shared test fixtures."""

import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0)


def set_age(path: Path, days: float, now: datetime = FIXED_NOW) -> float:
    """Set a path's mtime to ``days`` before ``now`` without following symlinks."""
    ts = (now - timedelta(days=days)).timestamp()
    os.utime(path, (ts, ts), follow_symlinks=False)
    return ts


def write_file(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


def blocks_of(path: Path) -> int:
    """Allocated size of a single file as the size probe counts it."""
    return os.lstat(path).st_blocks * 512


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point HOME and XDG_CONFIG_HOME at a temporary directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home_dir / ".config"))
    return home_dir


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def deep_tree():
    """Build a chain of nested directories ``depth`` levels below a root.

    Levels are created and removed one at a time so neither side depends on
    recursive helpers.
    """
    chains = []

    def build(root: Path, depth: int, name: str = "d") -> Path:
        levels = []
        current = root
        for _ in range(depth):
            current = current / name
            current.mkdir()
            levels.append(current)
        chains.append(levels)
        return current

    yield build

    for levels in chains:
        for directory in reversed(levels):
            if not directory.exists():
                continue
            for child in directory.iterdir():
                if child.is_dir() and not child.is_symlink():
                    child.rmdir()
                else:
                    child.unlink()
            directory.rmdir()
