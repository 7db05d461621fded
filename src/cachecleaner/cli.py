"""CLI interface for cachecleaner."""

import logging
from concurrent.futures import Future
from typing import Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.logging import RichHandler

from cachecleaner import __version__
from cachecleaner.categories import DAY_CHOICES, get_all_locations
from cachecleaner.config import load_settings, save_settings, settings_path
from cachecleaner.display import (
    clean_notification,
    confirm_action,
    console,
    scan_notification,
    show_clean_result,
    show_locations,
    show_report,
    show_scanning_progress,
    show_status,
)
from cachecleaner.engine import CacheEngine
from cachecleaner.models import format_size
from cachecleaner.scanner import get_disk_usage

T = TypeVar("T")

# Create Typer app
app = typer.Typer(
    name="cachecleaner",
    help="Find and remove stale developer caches",
    add_completion=False,
)

DAYS_HELP = f"Only touch cache older than this many days (e.g. {', '.join(map(str, DAY_CHOICES))})"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"cachecleaner version {__version__}")
        raise typer.Exit()


def setup_logging(level: str) -> None:
    """Route package logs through Rich on the shared console."""
    logger = logging.getLogger("cachecleaner")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.addHandler(RichHandler(console=console, show_path=False))
    logger.setLevel(level)


def _wait(engine: CacheEngine, future: "Future[T]") -> T:
    """Wait for a background operation; Ctrl-C cancels it and keeps partial results."""
    try:
        return future.result()
    except KeyboardInterrupt:
        engine.cancel()
        console.print("[yellow]Cancelling...[/yellow]")
        return future.result()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    """cachecleaner - find and remove stale developer caches."""
    settings = load_settings()
    setup_logging("DEBUG" if verbose else settings.log_level)

    if ctx.invoked_subcommand is None:
        ctx.invoke(status)


@app.command()
def scan(
    days: Optional[int] = typer.Option(None, "--days", "-d", min=0, help=DAYS_HELP),
) -> None:
    """Scan cache locations and report how much space old cache uses."""
    settings = load_settings()
    if days is None:
        days = settings.days
    locations = get_all_locations(settings.extra_locations)

    console.print(f"[bold blue]Scanning for cache older than {days} days...[/bold blue]\n")

    with CacheEngine(locations) as engine, show_scanning_progress() as progress:
        task = progress.add_task("Scanning...", total=len(locations))
        started = 0

        def on_category_start(name: str) -> None:
            nonlocal started
            progress.update(task, completed=started, description=f"Scanning {name}...")
            started += 1

        report = _wait(engine, engine.start_scan(days, on_category_start=on_category_start))
        progress.update(task, completed=started, description="Done")

    console.print()
    show_report(report, get_disk_usage())

    _, body = scan_notification(report, days)
    console.print()
    console.print(f"[dim]{body}[/dim]")
    if report.total_size_bytes > 0:
        console.print(f"[dim]Run [bold]cachecleaner clean --days {days}[/bold] to remove it[/dim]")


@app.command()
def clean(
    days: Optional[int] = typer.Option(None, "--days", "-d", min=0, help=DAYS_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without deleting"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
) -> None:
    """Delete cache older than the age threshold."""
    settings = load_settings()
    if days is None:
        days = settings.days
    locations = get_all_locations(settings.extra_locations)

    if not yes and not dry_run:
        if not confirm_action(f"Permanently delete cache older than {days} days?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    disk_before = get_disk_usage()
    verb = "Measuring" if dry_run else "Cleaning"

    with CacheEngine(locations) as engine, show_scanning_progress() as progress:
        task = progress.add_task(f"{verb}...", total=len(locations))
        started = 0

        def on_category_start(name: str, freed: int) -> None:
            nonlocal started
            progress.update(
                task,
                completed=started,
                description=f"{verb} {name}... ({format_size(freed)} freed)",
            )
            started += 1

        future = engine.start_clean(days, on_category_start=on_category_start, dry_run=dry_run)
        result = _wait(engine, future)
        progress.update(task, completed=started, description="Done")

    disk_after = None if dry_run else get_disk_usage()
    console.print()
    show_clean_result(result, disk_before, disk_after)

    if not dry_run:
        _, body = clean_notification(result)
        console.print()
        console.print(f"[green]{body}[/green]")


@app.command()
def status() -> None:
    """Show free space on the home volume."""
    disk_usage = get_disk_usage()
    if disk_usage is None:
        console.print("[red]Could not read disk space[/red]")
        raise typer.Exit(1)
    show_status(disk_usage)


@app.command(name="list")
def list_locations() -> None:
    """List all cache locations."""
    settings = load_settings()
    show_locations(get_all_locations(settings.extra_locations))
    console.print("[dim]Run [bold]cachecleaner scan[/bold] to measure them[/dim]")


@app.command()
def config(
    days: Optional[int] = typer.Option(None, "--days", "-d", min=0, help="Set the default age threshold"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Set the default log level"),
) -> None:
    """Show or update configuration."""
    settings = load_settings()
    updates = {}
    if days is not None:
        updates["days"] = days
    if log_level is not None:
        updates["log_level"] = log_level

    if updates:
        try:
            settings = settings.model_validate({**settings.model_dump(), **updates})
        except ValidationError as e:
            console.print(f"[red]Invalid configuration: {e.errors()[0]['msg']}[/red]")
            raise typer.Exit(1)
        try:
            path = save_settings(settings)
        except OSError as e:
            console.print(f"[red]Could not save configuration: {e}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]Saved {path}[/green]")

    console.print(f"[bold]Configuration[/bold] ({settings_path()})")
    console.print(f"  days:            {settings.days}")
    console.print(f"  log_level:       {settings.log_level}")
    console.print(f"  extra_locations: {len(settings.extra_locations)}")


if __name__ == "__main__":
    app()
