"""
Scheduler loop for the zone-watch domain.

A single background thread that wakes every debounce interval, drains the
files that have been quiet long enough, and runs each through the zone
pipeline.
"""

import threading
from datetime import datetime
from typing import Iterable, List, Optional

from loguru import logger

from app.models.schemas import ProcessingOutcome, WatchedDirectory
from domains.zone_watch.pipeline import ZonePipeline
from domains.zone_watch.tracker import PendingFileTracker
from domains.zone_watch.watchers.filesystem import match_directory


class SchedulerLoop:
    """Periodic drain of the pending-file tracker."""

    def __init__(
        self,
        tracker: PendingFileTracker,
        pipeline: ZonePipeline,
        directories: Iterable[WatchedDirectory],
        interval: float,
    ):
        """
        Initialize scheduler loop.

        Args:
            tracker: Tracker to drain
            pipeline: Per-file pipeline
            directories: Enabled watched directories
            interval: Sleep between drains, in seconds (the debounce interval)
        """
        self.tracker = tracker
        self.pipeline = pipeline
        self.directories = list(directories)
        self.interval = interval

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the loop on a daemon thread."""
        if self.is_alive:
            logger.warning("Scheduler loop is already running.")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, name="motw-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Signal cancellation and wait up to ``timeout`` for the loop to exit.

        Returns:
            True if the loop exited in time
        """
        self._stop_event.set()

        if self._thread is None:
            return True

        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning(f"Scheduler loop still draining after {timeout}s, continuing shutdown")
            return False

        self._thread = None
        return True

    def run(self):
        """Loop until cancelled."""
        while not self._stop_event.is_set():
            if self._stop_event.wait(self.interval):
                break

            try:
                self.drain_once()
            except Exception as e:
                logger.error(f"Error in processing loop: {e}")

    def drain_once(self, now: Optional[datetime] = None) -> List[ProcessingOutcome]:
        """
        Process every due entry once.

        Entries leave the tracker before dispatch, so a notification arriving
        mid-pipeline is picked up on the next cycle.

        Returns:
            Outcomes emitted during this drain
        """
        outcomes = []

        for file_path in self.tracker.drain_due(now):
            directory = match_directory(file_path, self.directories)
            if directory is None:
                logger.debug(f"No watched directory owns {file_path}, dropping")
                continue

            outcome = self.pipeline.process(file_path, directory)
            if outcome is not None:
                outcomes.append(outcome)

        if outcomes:
            logger.debug(f"Drain processed {len(outcomes)} file(s)")

        return outcomes
