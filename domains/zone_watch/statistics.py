"""
Processing statistics.

Aggregates successful outcomes into a WatcherStatistics document persisted as
JSON next to the watcher configuration.
"""

import os
import threading
from datetime import timedelta
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from app.models.schemas import DailyStats, ProcessingOutcome, WatcherStatistics
from app.utils.helpers import utc_now

NO_EXTENSION = "(no extension)"


class StatisticsStore:
    """Loads, updates and saves watcher statistics."""

    def __init__(self, path: Path, history_days: int = 30):
        """
        Initialize statistics store.

        Args:
            path: JSON file holding the statistics
            history_days: Days of daily history kept on load
        """
        self.path = Path(path)
        self.history_days = history_days
        self._lock = threading.Lock()
        self.stats = self.load()

    def load(self) -> WatcherStatistics:
        """Read statistics from disk, fresh statistics if missing or unreadable."""
        try:
            if self.path.exists():
                stats = WatcherStatistics.model_validate_json(self.path.read_text(encoding="utf-8"))
                cutoff = utc_now().date() - timedelta(days=self.history_days)
                stats.daily_history = sorted(
                    (d for d in stats.daily_history if d.day >= cutoff),
                    key=lambda d: d.day,
                )
                return stats

        except (OSError, ValidationError, ValueError) as e:
            logger.error(f"Failed to load statistics: {e}")

        return WatcherStatistics()

    def save(self):
        """Write statistics atomically."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            tmp_path.write_text(self.stats.model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to save statistics: {e}")

    def record(self, file_path: str, file_size: int, zone_id: int):
        """Count one processed file."""
        now = utc_now()
        extension = os.path.splitext(file_path)[1].upper() or NO_EXTENSION

        with self._lock:
            stats = self.stats
            stats.total_files_processed += 1
            stats.total_bytes_processed += file_size
            stats.last_processed_date = now

            stats.files_by_zone_id[zone_id] = stats.files_by_zone_id.get(zone_id, 0) + 1
            stats.files_by_extension[extension] = stats.files_by_extension.get(extension, 0) + 1

            today = next((d for d in stats.daily_history if d.day == now.date()), None)
            if today is None:
                today = DailyStats(day=now.date())
                stats.daily_history.append(today)
            today.files_processed += 1
            today.bytes_processed += file_size

            self.save()

    def __call__(self, outcome: ProcessingOutcome):
        """Outcome subscriber: record successful outcomes only."""
        if not outcome.success:
            return
        zone_id = outcome.zone_id if outcome.zone_id is not None else -1
        self.record(outcome.file_path, outcome.file_size, zone_id)

    def reset(self):
        """Zero every counter and stamp the reset date."""
        with self._lock:
            first_run = self.stats.first_run_date
            self.stats = WatcherStatistics(first_run_date=first_run, last_reset_date=utc_now())
            self.save()
        logger.info("Statistics reset")

    def snapshot(self) -> WatcherStatistics:
        with self._lock:
            return self.stats.model_copy(deep=True)
