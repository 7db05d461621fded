"""Scan and clean orchestration engine."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from cachecleaner.cancellation import CancelToken, OperationCancelled
from cachecleaner.categories import get_all_locations
from cachecleaner.cleaner import clean_location
from cachecleaner.models import (
    CacheCategory,
    CacheLocation,
    CleanResult,
    EngineStatus,
    ScanReport,
)
from cachecleaner.scanner import scan_location

log = logging.getLogger(__name__)

ScanProgressCallback = Callable[[str], None]  # (category_name)
CleanProgressCallback = Callable[[str, int], None]  # (category_name, freed_so_far)
ScanCompleteCallback = Callable[[ScanReport], None]
CleanCompleteCallback = Callable[[CleanResult], None]
Dispatcher = Callable[[Callable[[], None]], None]


def _call_inline(fn: Callable[[], None]) -> None:
    fn()


class CacheEngine:
    """Runs at most one scan or clean at a time over a list of cache locations.

    Every invocation walks the locations sequentially, in order. ``scan`` and
    ``clean`` block the calling thread; ``start_scan`` and ``start_clean`` run
    the same work on a single background worker and return a Future. Progress
    and completion callbacks go through ``dispatch``, which by default calls
    them inline on whichever thread is doing the work.
    """

    def __init__(
        self,
        locations: Sequence[CacheLocation] | None = None,
        dispatch: Dispatcher | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.locations = list(locations) if locations is not None else get_all_locations()
        self._dispatch = dispatch or _call_inline
        self._clock = clock
        self._token = CancelToken()
        self._lock = threading.Lock()
        self._running = False
        self._status = EngineStatus.IDLE
        self._executor: ThreadPoolExecutor | None = None

    # -- state -----------------------------------------------------------

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._running

    def cancel(self) -> None:
        """Ask the running scan or clean to stop at its next checkpoint."""
        if self._running:
            log.info("Cancellation requested")
            self._token.cancel()

    def cutoff_for(self, days: int) -> float:
        """POSIX timestamp ``days`` before now; older entries are eligible."""
        if days < 0:
            raise ValueError(f"days must be non-negative, got {days}")
        return (self._clock() - timedelta(days=days)).timestamp()

    def _try_begin(self) -> bool:
        with self._lock:
            if self._running:
                return False
            self._running = True
            self._status = EngineStatus.RUNNING
            self._token.reset()
            return True

    def _finish(self, cancelled: bool) -> None:
        with self._lock:
            self._status = EngineStatus.CANCELLED if cancelled else EngineStatus.COMPLETED
            self._running = False

    def _abort(self) -> None:
        with self._lock:
            self._status = EngineStatus.IDLE
            self._running = False

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cachecleaner")
        return self._executor

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background worker, cancelling any running operation."""
        self.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def __enter__(self) -> CacheEngine:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    # -- scan ------------------------------------------------------------

    def scan(
        self,
        days: int,
        on_category_start: ScanProgressCallback | None = None,
        on_complete: ScanCompleteCallback | None = None,
    ) -> ScanReport | None:
        """Scan all locations for entries older than ``days``.

        Args:
            days: Age threshold in whole days
            on_category_start: Optional callback(category_name) before each location
            on_complete: Optional callback(report), called exactly once

        Returns:
            The report, or None if another scan or clean is already running.
        """
        cutoff = self.cutoff_for(days)
        if not self._try_begin():
            log.debug("Scan requested while busy, ignoring")
            return None
        return self._run_scan(days, cutoff, on_category_start, on_complete)

    def start_scan(
        self,
        days: int,
        on_category_start: ScanProgressCallback | None = None,
        on_complete: ScanCompleteCallback | None = None,
    ) -> Future[ScanReport] | None:
        """Start a scan on the background worker.

        Returns:
            A Future resolving to the report, or None if already running.
        """
        cutoff = self.cutoff_for(days)
        if not self._try_begin():
            log.debug("Scan requested while busy, ignoring")
            return None
        try:
            return self._get_executor().submit(
                self._run_scan, days, cutoff, on_category_start, on_complete
            )
        except RuntimeError:
            self._abort()
            raise

    def _run_scan(
        self,
        days: int,
        cutoff: float,
        on_category_start: ScanProgressCallback | None,
        on_complete: ScanCompleteCallback | None,
    ) -> ScanReport:
        categories: list[CacheCategory] = []
        cancelled = False
        try:
            for location in self.locations:
                if self._token.cancelled:
                    cancelled = True
                    break

                if on_category_start:
                    self._dispatch(lambda name=location.name: on_category_start(name))

                try:
                    category = scan_location(location, cutoff, self._token)
                except OperationCancelled:
                    log.debug("Scan cancelled during %s", location.name)
                    cancelled = True
                    break
                categories.append(category)

            report = ScanReport.from_categories(categories, days=days, cancelled=cancelled)
            log.info(
                "Scan finished: %d categories, %d bytes%s",
                len(report.categories),
                report.total_size_bytes,
                " (cancelled)" if cancelled else "",
            )
        except BaseException:
            self._abort()
            raise

        self._finish(cancelled)
        if on_complete:
            self._dispatch(lambda: on_complete(report))
        return report

    # -- clean -----------------------------------------------------------

    def clean(
        self,
        days: int,
        on_category_start: CleanProgressCallback | None = None,
        on_complete: CleanCompleteCallback | None = None,
        dry_run: bool = False,
    ) -> CleanResult | None:
        """Delete all entries older than ``days``.

        Args:
            days: Age threshold in whole days
            on_category_start: Optional callback(category_name, freed_so_far)
            on_complete: Optional callback(result), called exactly once
            dry_run: If True, count what would be deleted without deleting

        Returns:
            The result, or None if another scan or clean is already running.
        """
        cutoff = self.cutoff_for(days)
        if not self._try_begin():
            log.debug("Clean requested while busy, ignoring")
            return None
        return self._run_clean(days, cutoff, on_category_start, on_complete, dry_run)

    def start_clean(
        self,
        days: int,
        on_category_start: CleanProgressCallback | None = None,
        on_complete: CleanCompleteCallback | None = None,
        dry_run: bool = False,
    ) -> Future[CleanResult] | None:
        """Start a clean on the background worker.

        Returns:
            A Future resolving to the result, or None if already running.
        """
        cutoff = self.cutoff_for(days)
        if not self._try_begin():
            log.debug("Clean requested while busy, ignoring")
            return None
        try:
            return self._get_executor().submit(
                self._run_clean, days, cutoff, on_category_start, on_complete, dry_run
            )
        except RuntimeError:
            self._abort()
            raise

    def _run_clean(
        self,
        days: int,
        cutoff: float,
        on_category_start: CleanProgressCallback | None,
        on_complete: CleanCompleteCallback | None,
        dry_run: bool,
    ) -> CleanResult:
        result = CleanResult(days=days, dry_run=dry_run)
        try:
            for location in self.locations:
                if self._token.cancelled:
                    result.cancelled = True
                    break

                if on_category_start:
                    freed = result.freed_bytes
                    self._dispatch(
                        lambda name=location.name, freed=freed: on_category_start(name, freed)
                    )

                try:
                    clean_location(location, cutoff, result, self._token, dry_run=dry_run)
                except OperationCancelled:
                    log.debug("Clean cancelled during %s", location.name)
                    result.cancelled = True
                    break

            log.info(
                "Clean finished: %d bytes freed, %d deleted, %d failed%s",
                result.freed_bytes,
                result.items_deleted,
                result.items_failed,
                " (cancelled)" if result.cancelled else "",
            )
        except BaseException:
            self._abort()
            raise

        self._finish(result.cancelled)
        if on_complete:
            self._dispatch(lambda: on_complete(result))
        return result
