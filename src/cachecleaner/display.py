"""Rich terminal display for cachecleaner."""

from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from cachecleaner.models import (
    CacheLocation,
    CleanResult,
    DiskUsage,
    ScanReport,
    format_size,
)

console = Console()


def scan_notification(report: ScanReport, days: int) -> tuple[str, str]:
    """Title and body announcing a finished scan."""
    if report.total_size_bytes > 0:
        body = f"Found {report.size_human} of cache older than {days} days"
    else:
        body = "No old cache found"
    return "Scan Complete", body


def clean_notification(result: CleanResult) -> tuple[str, str]:
    """Title and body announcing a finished clean."""
    return "Cache Cleaned!", f"Freed {result.size_human} of disk space"


def disk_header(disk_usage: Optional[DiskUsage], report: Optional[ScanReport] = None) -> str:
    """One-line free space summary, with the projected figure after a clean."""
    if disk_usage is None:
        return "Disk space unavailable"
    free = format_size(disk_usage.free_bytes)
    if report is not None and report.total_size_bytes > 0:
        after = format_size(disk_usage.projected_free_bytes(report))
        return f"{free} free → {after} after clean"
    return f"{free} free of {format_size(disk_usage.total_bytes)}"


def show_report(report: ScanReport, disk_usage: Optional[DiskUsage] = None) -> None:
    """Display scan results."""
    console.print(f"[bold]{disk_header(disk_usage, report)}[/bold]")
    console.print()

    if report.cancelled:
        console.print("[yellow]Scan cancelled - results are partial[/yellow]")

    if report.is_empty:
        console.print("[green]No old cache found[/green]")
        return

    table = Table(title=f"Cache older than {report.days} days", show_header=True, header_style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Items", justify="right")

    for category in report.categories:
        table.add_row(category.name, category.size_human, str(category.item_count))

    console.print(table)
    console.print(
        f"[bold]Total: {report.size_human} ({report.total_item_count} items)[/bold]"
    )


def show_clean_result(
    result: CleanResult,
    disk_before: Optional[DiskUsage] = None,
    disk_after: Optional[DiskUsage] = None,
) -> None:
    """Display a clean summary."""
    if result.dry_run:
        console.print("[yellow]DRY RUN - nothing was deleted[/yellow]")
    elif result.cancelled:
        console.print("[yellow]Clean cancelled - earlier deletions were kept[/yellow]")

    table = Table(show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    label = "Would free" if result.dry_run else "Space freed"
    table.add_row(label, f"[bold green]{result.size_human}[/bold green]")
    table.add_row("Items", str(result.items_deleted))
    if result.items_failed > 0:
        table.add_row("[red]Failed[/red]", str(result.items_failed))
    if disk_before is not None:
        table.add_row("Free space before", format_size(disk_before.free_bytes))
    if disk_after is not None:
        table.add_row("Free space after", format_size(disk_after.free_bytes))

    console.print(table)


def show_status(disk_usage: DiskUsage) -> None:
    """Display quick status."""
    used_percent = disk_usage.used_percent

    if used_percent >= 90:
        status = "[red]CRITICAL[/red]"
    elif used_percent >= 75:
        status = "[yellow]WARNING[/yellow]"
    else:
        status = "[green]OK[/green]"

    console.print(f"Disk Status: {status}")
    console.print(f"  Total: {disk_usage.total_gb:.0f} GB")
    console.print(f"  Used:  {disk_usage.used_gb:.0f} GB ({used_percent:.0f}%)")
    console.print(f"  Free:  {disk_usage.free_gb:.0f} GB")


def show_locations(locations: list[CacheLocation]) -> None:
    """Display the location registry."""
    table = Table(title="Cache Locations", show_header=True, header_style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Mode")
    table.add_column("Paths")

    for location in locations:
        if location.is_recursive:
            mode = f"[magenta]find {location.name_pattern}[/magenta]"
        else:
            mode = "direct"
        table.add_row(location.name, mode, "\n".join(location.base_paths))

    console.print(table)


def show_scanning_progress() -> Progress:
    """Create progress display for a scan or clean."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    )


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message, console=console)
