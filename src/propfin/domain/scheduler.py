"""Background accrual sweep with an explicit start/stop lifecycle."""

import logging
import os
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 24 * 60 * 60


def interval_from_env() -> float:
    """Sweep interval in seconds from PROPFIN_SWEEP_INTERVAL."""
    value = os.environ.get("PROPFIN_SWEEP_INTERVAL")
    if not value:
        return DEFAULT_INTERVAL
    try:
        interval = float(value)
    except ValueError:
        raise ValueError(f"PROPFIN_SWEEP_INTERVAL must be a number of seconds, got '{value}'")
    if interval <= 0:
        raise ValueError(f"PROPFIN_SWEEP_INTERVAL must be positive, got '{value}'")
    return interval


class AccrualScheduler:
    """Runs a sweep callable once at start and then every ``interval`` seconds.

    One instance owns at most one worker thread; calling ``start()`` while it
    is running does nothing. A sweep that raises is logged and the loop keeps
    going.
    """

    def __init__(self, sweep: Callable[[], int], interval: float = DEFAULT_INTERVAL):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.sweep = sweep
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.runs = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> Optional[int]:
        """Run one sweep now. Returns its result, or None if it failed."""
        with self._lock:
            self.runs += 1
            try:
                return self.sweep()
            except Exception:
                self.failures += 1
                logger.exception("Rent accrual sweep failed")
                return None

    def _loop(self) -> None:
        self.run_once()
        while not self._stop.wait(self.interval):
            self.run_once()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="propfin-accrual", daemon=True)
        self._thread.start()
        logger.info("Accrual scheduler started, interval %ss", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout)
        self._thread = None
        logger.info("Accrual scheduler stopped")

    def wait(self) -> None:
        """Block until ``stop()`` is called from another thread or a signal."""
        while self.running:
            self._stop.wait(1.0)
