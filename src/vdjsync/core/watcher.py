"""Config watcher: keeps the endpoint in sync while sampling is off.

Runs from plugin load to unload, independent of the sampler, so edits
made in the host's variables are applied before sampling resumes.
"""

import logging
import threading
import time
from collections.abc import Callable

from vdjsync.core.config import DEFAULT_WATCH_INTERVAL_MS
from vdjsync.core.config_sync import ConfigSync

logger = logging.getLogger(__name__)

DEFAULT_WATCH_INTERVAL = DEFAULT_WATCH_INTERVAL_MS / 1000  # seconds

# Granularity of the interruptible sleep
_SLEEP_STEP = 0.05


class WatcherLoop:
    """Background thread calling ``ConfigSync.reconcile()`` periodically.

    Example:
        watcher = WatcherLoop(config_sync)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(self, config_sync: ConfigSync, interval: float = DEFAULT_WATCH_INTERVAL) -> None:
        """Initialize the watcher.

        Args:
            config_sync: Config sync to reconcile.
            interval: Seconds between reconciles.
        """
        self._config_sync = config_sync
        self._interval = interval
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        """Return the reconcile interval in seconds."""
        return self._interval

    @property
    def is_running(self) -> bool:
        """Return True between ``start()`` and ``stop()``."""
        return self._stop_event is not None

    def start(self) -> None:
        """Start the watcher thread, joining one that stopped itself."""
        with self._lock:
            if self._stop_event is not None:
                return
            previous, self._thread = self._thread, None
        if previous is not None and previous is not threading.current_thread():
            previous.join()

        with self._lock:
            if self._stop_event is not None:
                return
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self.run,
                args=(lambda: not stop_event.is_set(),),
                name="vdjsync-watcher",
                daemon=True,
            )
            self._thread.start()
        logger.info("Config watcher started (%.0f ms)", self._interval * 1000)

    def stop(self) -> None:
        """Stop the watcher and wait for its thread to exit."""
        with self._lock:
            stop_event, self._stop_event = self._stop_event, None
            if stop_event is None:
                return
            stop_event.set()
            thread = self._thread
            if thread is threading.current_thread():
                thread = None
            else:
                self._thread = None
        if thread is not None:
            thread.join()
        logger.info("Config watcher stopped")

    def run(self, should_continue: Callable[[], bool]) -> None:
        """Reconcile until ``should_continue`` returns False."""
        while should_continue():
            try:
                self._config_sync.reconcile()
            except Exception:
                logger.exception("Config reconcile failed")
            self._sleep_interruptible(self._interval, should_continue)

    @staticmethod
    def _sleep_interruptible(seconds: float, should_continue: Callable[[], bool]) -> None:
        """Sleep in small increments to allow quick shutdown."""
        end_time = time.monotonic() + seconds
        while should_continue():
            remaining = end_time - time.monotonic()
            if remaining <= 0:
                break
            time.sleep(min(_SLEEP_STEP, remaining))
