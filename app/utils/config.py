"""
Configuration management for the MotW Watcher.

Uses pydantic-settings to load application settings from environment variables
and .env files. The per-directory watch rules live in a separate JSON file
(see app.utils.watcher_config) whose location is derived from these settings.
"""

import os
import sys
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_data_dir() -> Path:
    """Per-user data directory holding config, statistics and logs."""
    if sys.platform == "win32":
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / "MotW"
    return Path("~/.local/share/motw").expanduser()


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API Configuration
    api_port: int = 8000
    log_level: str = "INFO"
    api_title: str = "MotW Watcher API"
    api_version: str = "1.0.0"

    # Storage Configuration
    data_dir: Path = Field(default_factory=default_data_dir)

    # Log file rotation
    log_rotation: str = "10 MB"
    log_retention: int = 5

    # Watcher Configuration
    shutdown_timeout: float = 5.0  # seconds
    unreadable_zone_default: int = Field(default=3, ge=0, le=4)

    # Marker Configuration
    marker_stream_suffix: str = ":Zone.Identifier"
    default_host_url: str = "about:internet"

    # Statistics Configuration
    stats_history_days: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def config_file(self) -> Path:
        """Watched-directory configuration file."""
        return self.data_dir / "watcher-config.json"

    @property
    def stats_file(self) -> Path:
        """Persisted processing statistics."""
        return self.data_dir / "watcher-stats.json"

    @property
    def log_file(self) -> Path:
        """Rotating application log."""
        return self.data_dir / "motw.log"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
