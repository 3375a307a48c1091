"""
Watcher configuration persistence.

The list of watched directories and the debounce delay are stored as JSON in
the data directory. A missing file is replaced by a default configuration
watching the user's Downloads folder.
"""

from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import ValidationError

from app.models.schemas import WatchedDirectory, WatcherConfig
from app.utils.config import get_settings


def default_watcher_config(downloads: Optional[Path] = None) -> WatcherConfig:
    """
    Build the default configuration.

    Args:
        downloads: Downloads folder to watch (``~/Downloads`` by default)

    Returns:
        Configuration watching ``downloads`` for Internet-zone files, if it exists
    """
    downloads = downloads or Path.home() / "Downloads"
    config = WatcherConfig()

    if downloads.is_dir():
        config.watched_directories.append(
            WatchedDirectory(
                path=str(downloads),
                enabled=True,
                include_subdirectories=False,
                min_zone=3,  # Only process files from Internet zone
            )
        )

    return config


def load_watcher_config(path: Optional[Path] = None) -> WatcherConfig:
    """
    Load configuration from ``path``.

    A missing file is created with defaults; unreadable or invalid content is
    logged and replaced by defaults in memory.
    """
    path = Path(path or get_settings().config_file)

    try:
        if not path.exists():
            logger.info("No existing config found, creating default configuration.")
            config = default_watcher_config()
            save_watcher_config(config, path)
            return config

        config = WatcherConfig.model_validate_json(path.read_text(encoding="utf-8"))
        logger.info(f"Loaded configuration with {len(config.watched_directories)} watched directories.")
        return config

    except (OSError, ValidationError, ValueError) as e:
        logger.error(f"Failed to load config: {e}")
        return default_watcher_config()


def save_watcher_config(config: WatcherConfig, path: Optional[Path] = None) -> bool:
    """Write ``config`` to ``path``; False if it could not be written."""
    path = Path(path or get_settings().config_file)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + ".tmp")
        tmp_path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(path)
        logger.info(f"Configuration saved with {len(config.watched_directories)} watched directories.")
        return True

    except OSError as e:
        logger.error(f"Failed to save config: {e}")
        return False
