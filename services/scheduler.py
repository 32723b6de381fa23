"""Background loop that keeps the published prices fresh."""

from __future__ import annotations

import logging
from threading import Event, Lock, Thread
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class ScrapeScheduler:
    """Runs a cycle once up front, then again after every ``interval`` seconds.

    The interval is measured from the end of one cycle to the start of the
    next, so a slow cycle pushes the following one back rather than
    overlapping it. ``stop`` is the only way to end the loop short of
    process exit.
    """

    def __init__(self, run_cycle: Callable[[], Any], interval: float) -> None:
        if interval <= 0:
            raise ValueError("Scrape interval must be positive.")
        self.run_cycle = run_cycle
        self.interval = interval
        self._stop_event = Event()
        self._thread: Optional[Thread] = None
        self._start_lock = Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        """Run the first cycle synchronously and launch the background loop."""
        with self._start_lock:
            if self._thread is not None:
                raise RuntimeError("Scheduler has already been started.")
            self._thread = Thread(target=self._loop, name="scrape-loop", daemon=True)

        self._run_once()
        logger.info(
            "scrape loop starting",
            extra={"interval_s": self.interval},
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to exit and wait up to ``timeout`` seconds for it."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread.is_alive():
            thread.join(timeout)

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            self._run_once()
        logger.info("scrape loop stopped")

    def _run_once(self) -> None:
        try:
            self.run_cycle()
        except Exception:  # noqa: BLE001 - the loop must outlive a broken cycle
            logger.exception("scrape cycle raised unexpectedly")
