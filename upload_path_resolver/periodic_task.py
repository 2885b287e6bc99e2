"""A background thread that calls a function at a fixed interval."""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs a callback every interval_seconds until stopped."""

    def __init__(
        self, name: str, interval_seconds: float, callback: Callable[[], object]
    ) -> None:
        """Initialize the task; nothing runs until start()."""
        self.name = name
        self.interval_seconds = interval_seconds
        self.callback = callback
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        """Return True while the worker thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread unless it is already running."""
        if self.interval_seconds <= 0:
            logger.debug("%s disabled (interval=%s)", self.name, self.interval_seconds)
            return
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.debug("%s started (every %.3fs)", self.name, self.interval_seconds)

    def stop(self, timeout: float = 5) -> None:
        """Signal the worker to stop and wait for it."""
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.callback()
            except Exception:
                logger.exception("%s callback failed", self.name)
