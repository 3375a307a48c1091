"""
Pydantic models for the MotW Watcher.

Shared data models across the application.
"""

from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.helpers import utc_now


# =====================================================
# Trust Zones
# =====================================================

class TrustZone(IntEnum):
    """URL security zone recorded in a file's Zone.Identifier marker.

    Lower values denote higher trust. RESTRICTED is never assigned by policy.
    """
    LOCAL = 0
    INTRANET = 1
    TRUSTED = 2
    INTERNET = 3
    RESTRICTED = 4

    @property
    def label(self) -> str:
        return ZONE_LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["TrustZone"]:
        """Convert a stored value to a zone, None if it is not one."""
        try:
            return cls(int(str(value).strip()))
        except (TypeError, ValueError):
            return None


ZONE_LABELS = {
    TrustZone.LOCAL: "Local Machine",
    TrustZone.INTRANET: "Local Intranet",
    TrustZone.TRUSTED: "Trusted Sites",
    TrustZone.INTERNET: "Internet",
    TrustZone.RESTRICTED: "Restricted Sites",
}


# =====================================================
# Watcher Configuration Models
# =====================================================

class WatchedDirectory(BaseModel):
    """A directory rule: where to watch and what to do with marked files."""
    path: str
    enabled: bool = True
    include_subdirectories: bool = False
    file_type_filters: List[str] = Field(default_factory=lambda: ["*"])
    min_zone: Optional[int] = Field(default=3, ge=0, le=4)  # None = any marked file
    target_zone: Optional[int] = Field(default=None, ge=0, le=3)  # None = remove marker
    exclude_patterns: List[str] = Field(default_factory=list)

    @field_validator("file_type_filters")
    @classmethod
    def _default_to_wildcard(cls, filters: List[str]) -> List[str]:
        cleaned = [f.strip() for f in filters if f and f.strip()]
        return cleaned or ["*"]


class WatcherConfig(BaseModel):
    """Watch session configuration."""
    auto_start: bool = False
    start_watching_on_launch: bool = False
    notify_on_process: bool = True
    debounce_delay_ms: int = Field(default=2000, gt=0)
    watched_directories: List[WatchedDirectory] = Field(default_factory=list)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_delay_ms / 1000.0

    def enabled_directories(self) -> List[WatchedDirectory]:
        return [d for d in self.watched_directories if d.enabled]


# =====================================================
# Processing Models
# =====================================================

class ProcessingAction(str, Enum):
    """What the pipeline did to a file's marker."""
    REMOVED = "removed"
    REASSIGNED = "reassigned"
    FAILED = "failed"


class ProcessingOutcome(BaseModel):
    """Result of running one file through the zone pipeline."""
    model_config = ConfigDict(frozen=True)

    file_path: str
    success: bool
    message: str
    file_size: int = 0
    zone_id: Optional[int] = None
    action: ProcessingAction = ProcessingAction.FAILED
    timestamp: datetime = Field(default_factory=utc_now)


class ScanSummary(BaseModel):
    """Counts accumulated by a manual full-tree scan."""
    directories: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


# =====================================================
# Statistics Models
# =====================================================

class DailyStats(BaseModel):
    """Per-day processing totals."""
    day: date
    files_processed: int = 0
    bytes_processed: int = 0


class WatcherStatistics(BaseModel):
    """Aggregated processing statistics."""
    total_files_processed: int = 0
    total_bytes_processed: int = 0
    first_run_date: datetime = Field(default_factory=utc_now)
    last_reset_date: datetime = Field(default_factory=utc_now)
    last_processed_date: Optional[datetime] = None
    files_by_zone_id: Dict[int, int] = Field(default_factory=dict)
    files_by_extension: Dict[str, int] = Field(default_factory=dict)
    daily_history: List[DailyStats] = Field(default_factory=list)


# =====================================================
# Response Models
# =====================================================

class OperationStatus(BaseModel):
    """Generic operation status."""
    status: str
    message: str
    details: Optional[Dict[str, Any]] = None
