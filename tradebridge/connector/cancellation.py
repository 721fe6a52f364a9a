"""Cancellation signal with stop callbacks."""

import threading
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)


class CancellationSignal:
    """
    One-shot cancellation flag.

    Callbacks registered before cancellation run once, on the cancelling
    thread. Callbacks registered afterwards run immediately.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def register(self, callback: Callable[[], None]) -> None:
        """Run callback when the signal is cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        self._invoke(callback)

    def cancel(self) -> None:
        """Cancel the signal and run pending callbacks; idempotent."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            self._invoke(callback)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or timeout; True if cancelled."""
        return self._event.wait(timeout)

    def _invoke(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error("Cancellation callback failed", error=str(e), exc_info=True)
