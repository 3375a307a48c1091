"""
Watcher service for the zone-watch domain.

Owns one watch session: the watch set, the pending-file tracker and the
scheduler loop, plus on-demand full-tree scans. Configuration changes are
applied by tearing the session down and building a new one.
"""

import threading
from datetime import timedelta
from typing import Callable, Optional

from loguru import logger

from app.models.schemas import ScanSummary, TrustZone, WatcherConfig
from app.utils.config import Settings, get_settings
from app.utils.helpers import utc_now
from domains.zone_watch.marker_store import MarkerStore
from domains.zone_watch.pipeline import ZonePipeline
from domains.zone_watch.reporting import LogNotifier, OutcomeReporter
from domains.zone_watch.scanners.tree import TreeScanner
from domains.zone_watch.scheduler import SchedulerLoop
from domains.zone_watch.statistics import StatisticsStore
from domains.zone_watch.tracker import PendingFileTracker
from domains.zone_watch.watchers.filesystem import WatchSetManager


class ScanInProgressError(RuntimeError):
    """Raised when a manual scan is requested while one is running."""


class WatcherService:
    """Start/stop/scan orchestrator."""

    def __init__(
        self,
        config: WatcherConfig,
        settings: Optional[Settings] = None,
        store: Optional[MarkerStore] = None,
        statistics: Optional[StatisticsStore] = None,
        clock: Callable = utc_now,
    ):
        """
        Initialize watcher service.

        Args:
            config: Watched directories and debounce delay
            settings: Application settings (cached settings by default)
            store: Marker store (built from settings by default)
            statistics: Statistics store subscribed to outcomes, if any
            clock: Time source for the pending-file tracker
        """
        self.settings = settings or get_settings()
        self.config = config
        self.store = store or MarkerStore(
            stream_suffix=self.settings.marker_stream_suffix,
            host_url=self.settings.default_host_url,
        )
        self.clock = clock

        self.reporter = OutcomeReporter()
        self.notifier = LogNotifier(enabled=config.notify_on_process)
        self.reporter.subscribe(self.notifier)

        self.statistics = statistics
        if statistics is not None:
            self.reporter.subscribe(statistics)

        self.pipeline = ZonePipeline(
            self.store,
            self.reporter,
            unreadable_zone_default=TrustZone(self.settings.unreadable_zone_default),
        )

        self.tracker: Optional[PendingFileTracker] = None
        self.watch_set: Optional[WatchSetManager] = None
        self.scheduler: Optional[SchedulerLoop] = None

        self._lock = threading.Lock()
        self._scan_lock = threading.Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_scanning(self) -> bool:
        return self._scan_lock.locked()

    def start(self) -> bool:
        """
        Start watching the enabled directories.

        Returns:
            False if the service was already running
        """
        with self._lock:
            if self._running:
                logger.warning("Watcher service is already running.")
                return False

            logger.info("Starting watcher service...")

            self.tracker = PendingFileTracker(
                timedelta(milliseconds=self.config.debounce_delay_ms),
                clock=self.clock,
            )
            self.watch_set = WatchSetManager(self.config, self.tracker, self.store)
            active = self.watch_set.start()

            self.scheduler = SchedulerLoop(
                self.tracker,
                self.pipeline,
                self.config.enabled_directories(),
                interval=self.config.debounce_seconds,
            )
            self.scheduler.start()

            self._running = True
            logger.success(f"Watcher service started with {active} active watchers.")
            return True

    def stop(self):
        """Stop observers first, then the scheduler loop (bounded wait)."""
        with self._lock:
            if not self._running:
                return

            logger.info("Stopping watcher service...")
            self._running = False

            if self.watch_set is not None:
                self.watch_set.stop(self.settings.shutdown_timeout)

            if self.scheduler is not None:
                self.scheduler.stop(self.settings.shutdown_timeout)

            self.watch_set = None
            self.scheduler = None
            self.tracker = None

            logger.info("Watcher service stopped.")

    def reload(self, config: WatcherConfig):
        """Swap in ``config``, restarting the session if it was running."""
        was_running = self.is_running
        if was_running:
            self.stop()

        self.config = config
        self.notifier.enabled = config.notify_on_process

        if was_running:
            self.start()
            logger.info("Watcher service restarted with new configuration.")
        else:
            logger.info("Watcher service reloaded with new configuration.")

    def run_scan(self, cancel: Optional[threading.Event] = None) -> ScanSummary:
        """
        Apply directory rules to every existing file now.

        Raises:
            ScanInProgressError: if another scan is running
        """
        if not self._scan_lock.acquire(blocking=False):
            raise ScanInProgressError("A scan is already running")

        try:
            logger.info("Manual 'Run Rules Now' triggered")
            scanner = TreeScanner(self.config.watched_directories, self.pipeline, self.store)
            return scanner.scan(cancel)
        finally:
            self._scan_lock.release()

    def status(self) -> dict:
        """Snapshot of the session state."""
        watch_set = self.watch_set
        tracker = self.tracker
        return {
            "running": self.is_running,
            "scanning": self.is_scanning,
            "watched_paths": list(watch_set.watched_paths) if watch_set else [],
            "pending_files": len(tracker) if tracker else 0,
            "debounce_delay_ms": self.config.debounce_delay_ms,
        }

    def close(self):
        self.stop()
