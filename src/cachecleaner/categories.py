"""Cache location registry for cachecleaner."""

import os
from pathlib import Path
from typing import Iterable, Optional

from cachecleaner.models import CacheLocation

# Suggested age thresholds, in days
DAY_CHOICES = (7, 14, 21, 30, 60, 90)

# Registry order is the scan/clean order and therefore the progress order.
# Homebrew, CocoaPods and the pip half of Python sit inside ~/Library/Caches,
# so System Caches already counts them as single entries when they are stale.
LOCATIONS: tuple[CacheLocation, ...] = (
    CacheLocation(
        name="System Caches",
        base_paths=["~/Library/Caches"],
        description="Per-application caches under ~/Library/Caches",
    ),
    CacheLocation(
        name="Xcode",
        base_paths=[
            "~/Library/Developer/Xcode/DerivedData",
            "~/Library/Developer/Xcode/Archives",
        ],
        description="Xcode build artifacts, indexes and archived builds",
    ),
    CacheLocation(
        name="npm/bun/pnpm",
        base_paths=["~/.npm/_cacache", "~/.bun/install/cache", "~/.pnpm-store"],
        description="JavaScript package manager download caches",
    ),
    CacheLocation(
        name="node_modules",
        base_paths=["~"],
        name_pattern="node_modules",
        description="Node.js dependency trees anywhere under the home directory",
    ),
    CacheLocation(
        name=".next builds",
        base_paths=["~"],
        name_pattern=".next",
        description="Next.js build output directories anywhere under the home directory",
    ),
    CacheLocation(
        name="Claude/AI Tools",
        base_paths=["~/.claude/debug", "~/.cursor", "~/.continue"],
        description="Debug logs and caches of AI coding assistants",
    ),
    CacheLocation(
        name="Docker",
        base_paths=["~/Library/Containers/com.docker.docker/Data/vms"],
        description="Docker Desktop virtual machine data",
    ),
    CacheLocation(
        name="Homebrew",
        base_paths=["~/Library/Caches/Homebrew"],
        description="Downloaded Homebrew bottles and casks",
    ),
    CacheLocation(
        name="CocoaPods",
        base_paths=["~/Library/Caches/CocoaPods"],
        description="CocoaPods dependency cache",
    ),
    CacheLocation(
        name="Gradle/Maven",
        base_paths=["~/.gradle/caches", "~/.m2/repository"],
        description="JVM build tool caches",
    ),
    CacheLocation(
        name="Python",
        base_paths=["~/.cache/pip", "~/Library/Caches/pip"],
        description="Cached pip downloads and wheels",
    ),
    CacheLocation(
        name="Logs",
        base_paths=["~/Library/Logs"],
        description="Application log files",
    ),
)


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


def get_all_locations(
    extra: Optional[Iterable[CacheLocation]] = None,
) -> list[CacheLocation]:
    """Get the built-in locations followed by any extra ones, in order."""
    locations = list(LOCATIONS)
    if extra:
        locations.extend(extra)
    return locations

