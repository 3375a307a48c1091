"""
Manual full-tree scanner for the zone-watch domain.

Applies directory rules to every existing file in the configured directories,
regardless of recent activity. Bypasses the pending-file tracker: each
matching file is evaluated exactly once per scan.
"""

import os
import threading
from typing import Iterator, List, Optional

from loguru import logger

from app.models.schemas import ScanSummary, WatchedDirectory
from app.utils.helpers import path_key
from domains.zone_watch.marker_store import MarkerStore
from domains.zone_watch.pipeline import ZonePipeline
from domains.zone_watch.watchers.filesystem import match_directory, matches_file_type


class TreeScanner:
    """Runs the zone pipeline over whole directory trees."""

    def __init__(self, directories: List[WatchedDirectory], pipeline: ZonePipeline, store: MarkerStore):
        """
        Initialize tree scanner.

        Args:
            directories: Configured watched directories
            pipeline: Per-file pipeline
            store: Marker store, used to ignore marker side channels
        """
        self.directories = [d for d in directories if d.enabled]
        self.pipeline = pipeline
        self.store = store

    def iter_files(self, directory: WatchedDirectory) -> Iterator[str]:
        """
        Yield the files of ``directory``.

        Subdirectories are only descended into when the directory includes
        them; unreadable folders are logged and skipped.
        """
        if not directory.include_subdirectories:
            try:
                with os.scandir(directory.path) as entries:
                    for entry in entries:
                        if entry.is_file():
                            yield entry.path
            except PermissionError:
                logger.warning(f"Permission denied: {directory.path}")
            except OSError as e:
                logger.warning(f"Cannot list {directory.path}: {e}")
            return

        def _on_error(error: OSError):
            logger.warning(f"Cannot list {error.filename}: {error.strerror}")

        for root, _dirs, files in os.walk(directory.path, onerror=_on_error):
            for name in files:
                yield os.path.join(root, name)

    def scan(self, cancel: Optional[threading.Event] = None) -> ScanSummary:
        """
        Scan every enabled directory.

        Args:
            cancel: Optional event; the scan stops between files once set

        Returns:
            Processed/succeeded/failed/skipped counts
        """
        summary = ScanSummary()
        seen: set[str] = set()

        logger.info("Running rules on existing files...")

        for directory in self.directories:
            if not os.path.isdir(directory.path):
                logger.warning(f"Skipping missing directory: {directory.path}")
                continue

            summary.directories += 1
            logger.info(f"Scanning {directory.path}...")

            for file_path in self.iter_files(directory):
                if cancel is not None and cancel.is_set():
                    logger.warning("Scan cancelled")
                    return summary

                if self.store.is_marker_stream(file_path):
                    continue

                key = path_key(file_path)
                if key in seen:
                    continue

                owner = match_directory(file_path, self.directories)
                if owner is None or not matches_file_type(file_path, owner):
                    continue

                seen.add(key)
                summary.processed += 1

                outcome = self.pipeline.process(file_path, owner)
                if outcome is None:
                    summary.skipped += 1
                elif outcome.success:
                    summary.succeeded += 1
                else:
                    summary.failed += 1

        logger.success(
            f"Scan complete: {summary.processed} processed, {summary.succeeded} succeeded, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return summary
