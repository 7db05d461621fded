"""Disk usage measurement and per-location scanning for cachecleaner."""

import logging
import os
import shutil
import stat
import subprocess
from pathlib import Path
from typing import Optional

from cachecleaner.cancellation import CancelToken
from cachecleaner.models import CacheCategory, CacheLocation, DiskUsage
from cachecleaner.traversal import is_eligible, iter_location_entries

log = logging.getLogger(__name__)

# st_blocks is always counted in 512-byte units, whatever the filesystem block size
STAT_BLOCK_SIZE = 512

DU_TIMEOUT = 300


def get_directory_size(path: Path) -> Optional[int]:
    """
    Calculate the real disk usage of a file or directory tree.

    Sums allocated blocks rather than logical file sizes, so sparse files
    and block rounding are reflected the way ``du`` reports them. Symlinks
    are not followed and hard-linked files are counted once. Subtrees that
    cannot be read contribute nothing.

    Args:
        path: File or directory to measure

    Returns:
        Size in bytes, or None if the path itself could not be measured
    """
    try:
        root_stat = os.lstat(path)
    except OSError as e:
        log.debug("Cannot stat %s: %s", path, e)
        return None

    if not hasattr(root_stat, "st_blocks"):
        return _du_size(path)

    total_size = root_stat.st_blocks * STAT_BLOCK_SIZE
    if not stat.S_ISDIR(root_stat.st_mode):
        return total_size

    seen_inodes: set[tuple[int, int]] = set()
    # Explicit stack so arbitrarily deep trees cannot exhaust the call stack
    pending = [os.fspath(path)]

    while pending:
        p = pending.pop()
        try:
            with os.scandir(p) as entries:
                for entry in entries:
                    try:
                        st = entry.stat(follow_symlinks=False)
                    except OSError:
                        continue
                    if st.st_nlink > 1 and not stat.S_ISDIR(st.st_mode):
                        key = (st.st_dev, st.st_ino)
                        if key in seen_inodes:
                            continue
                        seen_inodes.add(key)
                    total_size += st.st_blocks * STAT_BLOCK_SIZE
                    if stat.S_ISDIR(st.st_mode):
                        pending.append(entry.path)
        except OSError as e:
            log.debug("Cannot read %s: %s", p, e)

    return total_size


def _du_size(path: Path) -> Optional[int]:
    """Measure disk usage with the ``du`` utility, for platforms without st_blocks."""
    try:
        result = subprocess.run(
            ["du", "-sk", os.fspath(path)],
            capture_output=True,
            text=True,
            timeout=DU_TIMEOUT,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("du failed for %s: %s", path, e)
        return None

    try:
        size_kb = int(result.stdout.split("\t", 1)[0])
    except ValueError:
        log.debug("Unexpected du output for %s: %r", path, result.stdout)
        return None
    return size_kb * 1024


def scan_location(
    location: CacheLocation,
    cutoff: float,
    token: Optional[CancelToken] = None,
) -> CacheCategory:
    """
    Measure every eligible entry of a location.

    Entries whose size cannot be measured are skipped. Raises
    OperationCancelled if the token is cancelled part way through, so a
    half-measured category never reaches a report.

    Args:
        location: Location to scan
        cutoff: POSIX timestamp; only entries modified before it count
        token: Optional cancellation token

    Returns:
        CacheCategory with the total size and count of eligible entries
    """
    size_bytes = 0
    item_count = 0

    for entry in iter_location_entries(location, token):
        if not is_eligible(entry, cutoff):
            continue

        size = get_directory_size(entry)
        if size is None:
            log.debug("Skipping %s: size unavailable", entry)
            continue

        size_bytes += size
        item_count += 1

    return CacheCategory(name=location.name, size_bytes=size_bytes, item_count=item_count)


def get_disk_usage(path: Optional[Path] = None) -> Optional[DiskUsage]:
    """
    Get total and free space of the volume holding ``path``.

    Args:
        path: Any path on the volume (default: the home directory)

    Returns:
        DiskUsage, or None if the volume could not be queried
    """
    target = path or Path.home()
    try:
        usage = shutil.disk_usage(target)
    except OSError as e:
        log.debug("Cannot query disk usage for %s: %s", target, e)
        return None

    return DiskUsage(
        total_bytes=usage.total,
        used_bytes=usage.used,
        free_bytes=usage.free,
        mount_point=str(target),
    )
