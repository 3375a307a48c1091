"""
File system watcher for the zone-watch domain.

Monitors configured directories for file creations, modifications and
renames, and queues matching files in the pending-file tracker.
Uses watchdog library for cross-platform file system event monitoring.
"""

import os
from typing import Iterable, List, Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from app.models.schemas import WatchedDirectory, WatcherConfig
from app.utils.helpers import file_extension, is_same_path, is_under, normalise_path
from domains.zone_watch.marker_store import MarkerStore
from domains.zone_watch.tracker import PendingFileTracker

WILDCARD_FILTERS = {"*", "*.*"}


def match_directory(
    file_path: str,
    directories: Iterable[WatchedDirectory],
) -> Optional[WatchedDirectory]:
    """
    Find the enabled watched directory that owns ``file_path``.

    Non-recursive directories own only their direct children; recursive ones
    own everything beneath them. Comparisons are case-insensitive.

    Args:
        file_path: File path
        directories: Configured directories, first match wins

    Returns:
        Owning directory or None
    """
    parent = os.path.dirname(normalise_path(file_path))

    for directory in directories:
        if not directory.enabled:
            continue

        if directory.include_subdirectories:
            if is_under(file_path, directory.path):
                return directory
        elif is_same_path(parent, directory.path):
            return directory

    return None


def matches_file_type(file_path: str, directory: WatchedDirectory) -> bool:
    """
    Check ``file_path`` against the directory's file-type filters.

    Filters are extensions (``.exe``, ``exe``) or ``*``-prefixed extensions
    (``*.exe``); ``*`` matches everything.
    """
    filters = [f.strip().lower() for f in directory.file_type_filters]
    if not filters or WILDCARD_FILTERS.intersection(filters):
        return True

    extension = file_extension(file_path)
    if not extension:
        return False

    return any(f in (extension, "*" + extension, extension[1:]) for f in filters)


class ZoneEventHandler(FileSystemEventHandler):
    """Routes filesystem events into the pending-file tracker."""

    def __init__(self, directories: List[WatchedDirectory], tracker: PendingFileTracker, store: MarkerStore):
        """
        Initialize event handler.

        Args:
            directories: Enabled watched directories
            tracker: Tracker receiving matching files
            store: Marker store, used to ignore marker side channels
        """
        super().__init__()
        self.directories = directories
        self.tracker = tracker
        self.store = store

    def on_created(self, event: FileSystemEvent):
        """Queue newly created files."""
        if event.is_directory:
            return
        self.queue_file(event.src_path)

    def on_modified(self, event: FileSystemEvent):
        """Queue modified files in case they were downloaded or rewritten."""
        # Skip directory modifications (too noisy)
        if event.is_directory:
            return
        self.queue_file(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Queue the destination of a rename (e.g. a finished partial download)."""
        if event.is_directory:
            return
        dest = getattr(event, "dest_path", None)
        if dest:
            self.queue_file(dest)

    def queue_file(self, raw_path) -> bool:
        """
        Queue ``raw_path`` for processing if it belongs to a watched directory.

        Returns:
            True if the file was queued
        """
        file_path = os.fsdecode(raw_path)

        if self.store.is_marker_stream(file_path):
            return False

        # Event may be stale
        if not os.path.isfile(file_path):
            return False

        directory = match_directory(file_path, self.directories)
        if directory is None:
            return False

        if not matches_file_type(file_path, directory):
            return False

        self.tracker.upsert(file_path)
        logger.info(f"Queued for processing: {os.path.basename(file_path)}")
        return True


class WatchSetManager:
    """One watchdog observer per enabled, existing watched directory."""

    def __init__(self, config: WatcherConfig, tracker: PendingFileTracker, store: MarkerStore):
        """Initialize watch set."""
        self.config = config
        self.tracker = tracker
        self.event_handler = ZoneEventHandler(config.enabled_directories(), tracker, store)
        self.observers: List[Observer] = []
        self.watched_paths: List[str] = []

    def start(self) -> int:
        """
        Start watching all enabled directories.

        Missing directories and observer failures are logged and skipped;
        they are not retried.

        Returns:
            Number of active observers
        """
        for directory in self.config.enabled_directories():
            if not os.path.isdir(directory.path):
                logger.warning(f"Watched directory does not exist: {directory.path}")
                continue

            try:
                observer = Observer()
                observer.schedule(
                    self.event_handler,
                    directory.path,
                    recursive=directory.include_subdirectories,
                )
                observer.daemon = True
                observer.start()

                self.observers.append(observer)
                self.watched_paths.append(directory.path)
                logger.info(f"Watching: {directory.path} (Subdirs: {directory.include_subdirectories})")

            except Exception as e:
                logger.error(f"Failed to create watcher for {directory.path}: {e}")

        return len(self.observers)

    def stop(self, timeout: Optional[float] = None):
        """Stop every observer; no notifications are accepted afterwards."""
        for observer in self.observers:
            observer.stop()
        for observer in self.observers:
            observer.join(timeout)

        self.observers.clear()
        self.watched_paths.clear()
