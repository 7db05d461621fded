"""Directory traversal and age filtering.

Two walks are supported:

* direct mode lists the immediate children of a base path
* pattern mode searches a base path recursively for directories with a
  given name (like node_modules or .next) and never descends into a match

Both are generators that poll a CancelToken between steps, and both skip
entries they cannot read instead of failing the whole walk.
"""

import logging
import os
from pathlib import Path
from typing import Generator, Optional

from cachecleaner.cancellation import CancelToken
from cachecleaner.categories import expand_path
from cachecleaner.models import CacheLocation

log = logging.getLogger(__name__)

# Directories never descended into during pattern search
SKIP_DIRECTORIES = frozenset(
    {
        ".git",
        ".svn",
        ".hg",
        ".Trash",
    }
)


def modified_before(mtime: float, cutoff: float) -> bool:
    """Whether a modification time is strictly older than the cutoff."""
    return mtime < cutoff


def is_eligible(path: Path, cutoff: float) -> bool:
    """
    Check if a filesystem entry is old enough to be cleaned.

    Symlinks are judged by their own mtime, not their target's.

    Args:
        path: Entry to check
        cutoff: POSIX timestamp; entries modified before it are eligible

    Returns:
        True if the entry was last modified strictly before the cutoff
    """
    try:
        mtime = os.lstat(path).st_mtime
    except OSError as e:
        log.debug("Cannot stat %s: %s", path, e)
        return False
    return modified_before(mtime, cutoff)


def iter_direct_entries(
    base: Path,
    token: Optional[CancelToken] = None,
) -> Generator[Path, None, None]:
    """
    Yield the immediate children of a base path, sorted by name.

    A missing base path yields nothing.
    """
    if not os.path.lexists(base):
        return

    try:
        with os.scandir(base) as entries:
            names = sorted(entry.name for entry in entries)
    except OSError as e:
        log.debug("Cannot list %s: %s", base, e)
        return

    for name in names:
        if token:
            token.raise_if_cancelled()
        yield base / name


def find_matching_directories(
    root: Path,
    pattern: str,
    token: Optional[CancelToken] = None,
    max_depth: Optional[int] = None,
) -> Generator[Path, None, None]:
    """
    Find directories named ``pattern`` under ``root``, pruning at each match.

    A node_modules inside another node_modules is never reported: once a
    directory matches, the search does not look inside it. Symlinks are not
    followed, so link cycles cannot trap the walk. Matches are yielded in
    depth-first order with siblings sorted by name.

    Args:
        root: Directory to start searching from
        pattern: Exact directory name to match
        token: Optional cancellation token polled at every directory
        max_depth: Maximum depth to search below root, or None for no limit

    Yields:
        Paths to matching directories
    """
    if not os.path.isdir(root) or os.path.islink(root):
        return

    # The root itself can be the match
    if root.name == pattern:
        if token:
            token.raise_if_cancelled()
        yield root
        return

    # (path, depth, is_match); an explicit stack keeps deep trees off the call stack
    stack: list[tuple[Path, int, bool]] = [(root, 0, False)]

    while stack:
        directory, depth, is_match = stack.pop()

        if token:
            token.raise_if_cancelled()

        if is_match:
            yield directory
            continue

        if max_depth is not None and depth >= max_depth:
            continue

        try:
            with os.scandir(directory) as it:
                subdirs = []
                for entry in it:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            subdirs.append(entry.name)
                    except OSError:
                        continue
        except OSError as e:
            log.debug("Skipping unreadable directory %s: %s", directory, e)
            continue

        for name in sorted(subdirs, reverse=True):
            if name == pattern:
                stack.append((directory / name, depth + 1, True))
            elif name not in SKIP_DIRECTORIES:
                stack.append((directory / name, depth + 1, False))


def iter_location_entries(
    location: CacheLocation,
    token: Optional[CancelToken] = None,
) -> Generator[Path, None, None]:
    """
    Yield every candidate entry of a location, across all its base paths.

    Direct-mode locations yield the children of each base path; pattern-mode
    locations yield every matching directory beneath each base path.
    """
    for template in location.base_paths:
        if token:
            token.raise_if_cancelled()

        base = expand_path(template)
        if location.name_pattern:
            yield from find_matching_directories(base, location.name_pattern, token)
        else:
            yield from iter_direct_entries(base, token)
