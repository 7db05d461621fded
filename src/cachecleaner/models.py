"""Data models for cachecleaner."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (decimal units like macOS)."""
    if size_bytes >= 1000**3:
        return f"{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{size_bytes / 1000:.1f} KB"
    else:
        return f"{size_bytes} B"


class EngineStatus(str, Enum):
    """Lifecycle of a scan or clean invocation."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CacheLocation(BaseModel):
    """A named cache category and where to find it on disk."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Human-readable category name")
    base_paths: list[str] = Field(
        default_factory=list, description="Base paths to scan (supports ~ expansion)"
    )
    name_pattern: Optional[str] = Field(
        None,
        description="Directory name to search for recursively under base_paths (e.g. 'node_modules')",
    )
    description: str = Field("", description="What this category contains")

    @property
    def is_recursive(self) -> bool:
        """Whether this location uses pattern (recursive) search."""
        return self.name_pattern is not None


class CacheCategory(BaseModel):
    """One line of a scan report."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Category name")
    size_bytes: int = Field(..., ge=0, description="Real disk usage of eligible items")
    item_count: int = Field(0, ge=0, description="Number of eligible items")

    @property
    def size_human(self) -> str:
        """Human-readable size string."""
        return format_size(self.size_bytes)


class ScanReport(BaseModel):
    """Result of a full scan, sorted largest category first."""

    model_config = ConfigDict(frozen=True)

    categories: list[CacheCategory] = Field(default_factory=list)
    total_size_bytes: int = Field(0, ge=0, description="Sum of category sizes")
    total_item_count: int = Field(0, ge=0, description="Sum of category item counts")
    days: int = Field(0, ge=0, description="Age threshold the scan used")
    cancelled: bool = Field(False, description="Whether the scan stopped early")

    @model_validator(mode="after")
    def _check_totals(self) -> "ScanReport":
        if self.total_size_bytes != sum(c.size_bytes for c in self.categories):
            raise ValueError("total_size_bytes does not match categories")
        if self.total_item_count != sum(c.item_count for c in self.categories):
            raise ValueError("total_item_count does not match categories")
        sizes = [c.size_bytes for c in self.categories]
        if any(a < b for a, b in zip(sizes, sizes[1:])):
            raise ValueError("categories must be sorted by size, largest first")
        return self

    @classmethod
    def from_categories(
        cls,
        categories: list[CacheCategory],
        days: int = 0,
        cancelled: bool = False,
    ) -> "ScanReport":
        """Build a report, dropping empty categories and sorting by size.

        The sort is stable, so categories of equal size keep registry order.
        """
        kept = [c for c in categories if c.size_bytes > 0]
        kept.sort(key=lambda c: c.size_bytes, reverse=True)
        return cls(
            categories=kept,
            total_size_bytes=sum(c.size_bytes for c in kept),
            total_item_count=sum(c.item_count for c in kept),
            days=days,
            cancelled=cancelled,
        )

    @property
    def size_human(self) -> str:
        """Human-readable total size."""
        return format_size(self.total_size_bytes)

    @property
    def is_empty(self) -> bool:
        return not self.categories


class CleanResult(BaseModel):
    """Running tally of a clean pass."""

    freed_bytes: int = Field(0, ge=0, description="Bytes freed by successful deletions")
    items_deleted: int = Field(0, ge=0, description="Number of items deleted")
    items_failed: int = Field(0, ge=0, description="Number of items that could not be deleted")
    days: int = Field(0, ge=0, description="Age threshold the clean used")
    cancelled: bool = Field(False, description="Whether the clean stopped early")
    dry_run: bool = Field(False, description="Whether this was a dry run")

    def record_deleted(self, size_bytes: int) -> None:
        self.freed_bytes += size_bytes
        self.items_deleted += 1

    def record_failed(self) -> None:
        self.items_failed += 1

    @property
    def size_human(self) -> str:
        """Human-readable freed size."""
        return format_size(self.freed_bytes)


class DiskUsage(BaseModel):
    """Overall disk usage information."""

    total_bytes: int = Field(..., description="Total disk size in bytes")
    used_bytes: int = Field(..., description="Used space in bytes")
    free_bytes: int = Field(..., description="Free space in bytes")
    mount_point: str = Field("/", description="Path the usage was queried for")

    @property
    def total_gb(self) -> float:
        """Total size in GB (decimal, like macOS)."""
        return self.total_bytes / (1000**3)

    @property
    def used_gb(self) -> float:
        """Used space in GB (decimal, like macOS)."""
        return self.used_bytes / (1000**3)

    @property
    def free_gb(self) -> float:
        """Free space in GB (decimal, like macOS)."""
        return self.free_bytes / (1000**3)

    @property
    def used_percent(self) -> float:
        """Percentage of disk used."""
        return (self.used_bytes / self.total_bytes) * 100 if self.total_bytes > 0 else 0

    def projected_free_bytes(self, report: ScanReport) -> int:
        """Free space expected after cleaning everything in ``report``."""
        return min(self.free_bytes + report.total_size_bytes, self.total_bytes)
