"""Cooperative cancellation for long-running scans and cleans."""

import threading


class OperationCancelled(Exception):
    """Raised inside a walk when cancellation has been requested."""


class CancelToken:
    """A thread-safe cancellation flag polled between filesystem steps."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if cancel() has been called."""
        if self._event.is_set():
            raise OperationCancelled()
