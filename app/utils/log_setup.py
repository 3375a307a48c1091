"""
Logging setup for the MotW Watcher.

Every module logs through loguru; this module only installs the sinks.
"""

import sys

from loguru import logger

from app.utils.config import Settings, get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DDTHH:mm:ss.SSSZZ} [{level}] {name}:{function} - {message}"


def sanitize_message(message: str) -> str:
    """Escape line breaks and tabs so one record stays on one line."""
    if not message:
        return ""
    return message.replace("\r", "\\r").replace("\n", "\\n").replace("\t", "\\t")


def _escape_record(record):
    record["message"] = sanitize_message(record["message"])


def configure_logging(settings: Settings = None, console: bool = True, log_file: bool = True):
    """
    Install console and rotating file sinks.

    Args:
        settings: Settings to read level and paths from (cached settings by default)
        console: Add the colourised stdout sink
        log_file: Add the rotating file sink under the data directory
    """
    settings = settings or get_settings()

    logger.remove()
    logger.configure(patcher=_escape_record)

    if console:
        logger.add(sys.stdout, format=CONSOLE_FORMAT, level=settings.log_level)

    if log_file:
        try:
            settings.data_dir.mkdir(parents=True, exist_ok=True)
            logger.add(
                settings.log_file,
                format=FILE_FORMAT,
                level=settings.log_level,
                rotation=settings.log_rotation,
                retention=settings.log_retention,
                encoding="utf-8",
                enqueue=True,
            )
        except OSError as e:
            logger.error(f"Failed to open log file {settings.log_file}: {e}")
