"""Cleanup execution with safety checks for cachecleaner."""

import logging
import os
import stat
from pathlib import Path
from typing import Optional

from cachecleaner.cancellation import CancelToken
from cachecleaner.categories import expand_path
from cachecleaner.models import CacheLocation, CleanResult
from cachecleaner.scanner import get_directory_size
from cachecleaner.traversal import is_eligible, iter_location_entries

log = logging.getLogger(__name__)

# Paths that should NEVER be deleted
BLOCKED_PATHS = [
    "~",
    "~/Documents",
    "~/Desktop",
    "~/Downloads",
    "~/Pictures",
    "~/Music",
    "~/Movies",
    "~/Library",
    "~/Library/Caches",
    "/System",
    "/Library",
    "/Applications",
    "/usr",
    "/bin",
    "/sbin",
    "/var",
    "/private",
    "/Users",
    "/",
]


def is_path_safe(path: Path) -> bool:
    """
    Check if a path is safe to delete.

    Args:
        path: Path to check

    Returns:
        False if the path is one of the blocked locations, True otherwise
    """
    path_str = os.path.normpath(os.fspath(path))

    for blocked in BLOCKED_PATHS:
        if path_str == os.path.normpath(os.fspath(expand_path(blocked))):
            return False

    return True


def delete_path(path: Path) -> None:
    """
    Delete a file, symlink or directory tree.

    Directories are removed depth first with an explicit stack, so tree
    depth is not limited by the interpreter's recursion limit; symlinks are
    removed without touching their target.

    Raises:
        OSError: If the path could not be removed
    """
    st = os.lstat(path)
    if not stat.S_ISDIR(st.st_mode):
        os.unlink(path)
        return

    # (directory, children already queued)
    stack = [(os.fspath(path), False)]
    while stack:
        directory, expanded = stack.pop()
        if expanded:
            os.rmdir(directory)
            continue
        stack.append((directory, True))
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    stack.append((entry.path, False))
                else:
                    os.unlink(entry.path)


def clean_location(
    location: CacheLocation,
    cutoff: float,
    result: CleanResult,
    token: Optional[CancelToken] = None,
    dry_run: bool = False,
) -> None:
    """
    Delete every eligible entry of a location, tallying into ``result``.

    Each entry is measured before it is deleted and its size only counts
    once the deletion succeeded. Entries that cannot be measured are left
    alone. Raises OperationCancelled between entries if the token is
    cancelled; entries already deleted stay deleted.

    Args:
        location: Location to clean
        cutoff: POSIX timestamp; only entries modified before it are deleted
        result: Running tally updated in place
        token: Optional cancellation token
        dry_run: If True, measure and count but don't delete
    """
    for entry in iter_location_entries(location, token):
        if not is_eligible(entry, cutoff):
            continue

        if not is_path_safe(entry):
            log.warning("Refusing to delete blocked path %s", entry)
            continue

        size = get_directory_size(entry)
        if size is None:
            log.debug("Skipping %s: size unavailable", entry)
            continue

        if dry_run:
            result.record_deleted(size)
            continue

        try:
            delete_path(entry)
        except OSError as e:
            log.warning("Could not delete %s: %s", entry, e)
            result.record_failed()
            continue

        result.record_deleted(size)
