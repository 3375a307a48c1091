"""
Pending-file tracker.

Debounces bursts of filesystem notifications: every notification overwrites
the file's last-seen timestamp, and a file only becomes due once it has been
quiet for the debounce interval.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from app.utils.helpers import utc_now


class PendingFileTracker:
    """Thread-safe path -> last-seen UTC timestamp map."""

    def __init__(self, debounce: timedelta, clock: Callable[[], datetime] = utc_now):
        """
        Initialize tracker.

        Args:
            debounce: Quiet period after which an entry is due
            clock: Source of timezone-aware "now" values
        """
        self.debounce = debounce
        self.clock = clock
        self._entries: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def upsert(self, path: str, seen_at: Optional[datetime] = None):
        """Record an observation of ``path``, restarting its debounce window."""
        seen_at = seen_at or self.clock()
        with self._lock:
            self._entries[path] = seen_at

    def remove(self, path: str) -> bool:
        """Remove ``path`` if present; True when an entry was removed."""
        with self._lock:
            return self._entries.pop(path, None) is not None

    def due(self, now: Optional[datetime] = None) -> List[str]:
        """Snapshot of the paths quiet for at least the debounce interval."""
        now = now or self.clock()
        with self._lock:
            return [path for path, seen in self._entries.items() if now - seen >= self.debounce]

    def drain_due(self, now: Optional[datetime] = None) -> List[str]:
        """Select and remove every due entry in one step."""
        now = now or self.clock()
        with self._lock:
            ready = [path for path, seen in self._entries.items() if now - seen >= self.debounce]
            for path in ready:
                del self._entries[path]
        return ready

    def last_seen(self, path: str) -> Optional[datetime]:
        with self._lock:
            return self._entries.get(path)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries
