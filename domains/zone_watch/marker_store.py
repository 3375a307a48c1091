"""
Mark-of-the-Web marker store.

Reads and writes the ``Zone.Identifier`` side channel of a file. On NTFS the
side channel is an alternate data stream (``file.exe:Zone.Identifier``); on
other filesystems the same name resolves to an ordinary sibling file, which
keeps the contract identical: the side channel exists if and only if the file
carries a marker.

Operations never raise for per-file problems. They return a ``MarkerResult``
and log the cause, so callers decide how loud a failure should be.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from loguru import logger

from app.models.schemas import TrustZone

ZONE_TRANSFER_SECTION = "[ZoneTransfer]"
ZONE_ID_KEY = "ZoneId"
HOST_URL_KEY = "HostUrl"
DEFAULT_STREAM_SUFFIX = ":Zone.Identifier"
DEFAULT_HOST_URL = "about:internet"


class MarkerErrorKind(str, Enum):
    """Failure (and informational) conditions of marker operations."""
    EMPTY_PATH = "empty_path"
    NOT_FOUND = "not_found"
    INVALID_ZONE = "invalid_zone"
    ACCESS_DENIED = "access_denied"
    IO_ERROR = "io_error"
    RESTRICTED_ZONE_PROTECTED = "restricted_zone_protected"
    NO_MARKER_METADATA = "no_marker_metadata"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True, slots=True)
class MarkerResult:
    """Outcome of a marker operation.

    ``success`` may be true while ``kind`` is set: NO_MARKER_METADATA is an
    informational condition, not a failure.
    """

    success: bool
    kind: Optional[MarkerErrorKind] = None
    message: Optional[str] = None
    zone: Optional[TrustZone] = None

    @classmethod
    def ok(cls, zone: Optional[TrustZone] = None) -> "MarkerResult":
        return cls(success=True, zone=zone)

    @classmethod
    def fail(cls, kind: MarkerErrorKind, message: str, zone: Optional[TrustZone] = None) -> "MarkerResult":
        return cls(success=False, kind=kind, message=message, zone=zone)


RESTRICTED_ZONE_MESSAGE = (
    "Zone 4 (Restricted Sites) files cannot be reassigned - explicitly restricted by IT policy"
)
NO_MARKER_MESSAGE = "File has no MotW metadata"


def parse_zone_id(content: str) -> Optional[TrustZone]:
    """
    Extract the zone from Zone.Identifier text.

    Args:
        content: Raw side channel content

    Returns:
        Zone, or None when no ``ZoneId=`` line parses to a value in [0, 4]
    """
    for line in content.splitlines():
        line = line.strip()
        if line[:len(ZONE_ID_KEY) + 1].lower() == ZONE_ID_KEY.lower() + "=":
            return TrustZone.parse(line[len(ZONE_ID_KEY) + 1:])
    return None


def render_marker(zone: TrustZone, previous: Optional[str], host_url: str) -> str:
    """
    Build Zone.Identifier content for ``zone``.

    Origin fields (``HostUrl``, ``ReferrerUrl`` ...) of ``previous`` are kept
    verbatim; a placeholder ``HostUrl`` is written when none existed.
    """
    origin_lines: List[str] = []
    if previous:
        for line in previous.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("["):
                continue
            key = stripped.split("=", 1)[0].strip()
            if "=" in stripped and key.lower() != ZONE_ID_KEY.lower():
                origin_lines.append(stripped)

    if not any(line.split("=", 1)[0].strip().lower() == HOST_URL_KEY.lower() for line in origin_lines):
        origin_lines.append(f"{HOST_URL_KEY}={host_url}")

    lines = [ZONE_TRANSFER_SECTION, f"{ZONE_ID_KEY}={int(zone)}", *origin_lines]
    return "\r\n".join(lines) + "\r\n"


class MarkerStore:
    """Zone.Identifier reader/writer."""

    def __init__(self, stream_suffix: str = DEFAULT_STREAM_SUFFIX, host_url: str = DEFAULT_HOST_URL):
        """
        Initialize marker store.

        Args:
            stream_suffix: Suffix appended to a file path to address its marker
            host_url: Origin placeholder written with freshly created markers
        """
        self.stream_suffix = stream_suffix
        self.host_url = host_url

    def stream_path(self, path: str) -> str:
        """Path of the marker side channel for ``path``."""
        return str(path) + self.stream_suffix

    def is_marker_stream(self, path: str) -> bool:
        """Check if ``path`` addresses a marker side channel rather than a file."""
        return str(path).lower().endswith(self.stream_suffix.lower())

    def has_marker(self, path: str) -> bool:
        """
        Check whether ``path`` carries a marker.

        Never raises: access and IO errors are logged and read as "no marker".
        """
        if not path or not str(path).strip():
            return False

        try:
            if not os.path.isfile(path):
                return False
            return os.path.exists(self.stream_path(path))

        except PermissionError as e:
            logger.warning(f"Access denied checking MotW: {path} - {e}")
        except OSError as e:
            logger.warning(f"IO error checking MotW: {path} - {e}")
        except Exception as e:
            logger.error(f"Unexpected error checking MotW: {path} - {e}")

        return False

    def get_zone(self, path: str) -> Optional[TrustZone]:
        """
        Read the zone recorded in the marker of ``path``.

        Returns:
            Zone, or None if there is no marker or it cannot be read or parsed
        """
        if not path or not str(path).strip() or not os.path.isfile(path):
            return None

        content = self._read_marker(path)
        if content is None:
            return None

        zone = parse_zone_id(content)
        if zone is None:
            logger.debug(f"Marker present but zone unreadable: {path}")
        return zone

    def set_marker(self, path: str, zone: int = TrustZone.INTERNET) -> MarkerResult:
        """
        Write a marker carrying ``zone``, replacing any existing one.

        Args:
            path: File to mark
            zone: Zone to record (0-4)

        Returns:
            MarkerResult with the written zone on success
        """
        if not path or not str(path).strip():
            return MarkerResult.fail(MarkerErrorKind.EMPTY_PATH, "File path cannot be empty.")

        target = TrustZone.parse(zone) if isinstance(zone, int) and not isinstance(zone, bool) else None
        if target is None:
            logger.warning(f"Block failed - invalid zone ID {zone}: {path}")
            return MarkerResult.fail(MarkerErrorKind.INVALID_ZONE, "Invalid zone ID. Must be 0-4.")

        try:
            if not os.path.isfile(path):
                logger.warning(f"Block failed - file not found: {path}")
                return MarkerResult.fail(MarkerErrorKind.NOT_FOUND, "File does not exist.")

            stream = self.stream_path(path)
            previous = self._read_marker(path) if os.path.exists(stream) else None
            content = render_marker(target, previous, self.host_url)

            with open(stream, "w", encoding="utf-8", newline="") as f:
                f.write(content)

            logger.info(f"Successfully blocked (ZoneId={int(target)}): {path}")
            return MarkerResult.ok(target)

        except Exception as e:
            return self._failure("Block", path, e)

    def remove_marker(self, path: str) -> MarkerResult:
        """
        Remove the marker of ``path``.

        Removing an absent marker succeeds without changes.
        """
        if not path or not str(path).strip():
            return MarkerResult.fail(MarkerErrorKind.EMPTY_PATH, "File path cannot be empty.")

        try:
            if not os.path.isfile(path):
                logger.warning(f"Unblock failed - file not found: {path}")
                return MarkerResult.fail(MarkerErrorKind.NOT_FOUND, "File does not exist.")

            stream = self.stream_path(path)
            if os.path.exists(stream):
                os.remove(stream)
                logger.info(f"Successfully unblocked: {path}")
            else:
                logger.info(f"No MotW to remove: {path}")

            return MarkerResult.ok()

        except Exception as e:
            return self._failure("Unblock", path, e)

    def reassign(self, path: str, target_zone: int) -> MarkerResult:
        """
        Reassign ``path`` directly to ``target_zone``.

        This is the uncontrolled path: any zone 0-4 is accepted, including
        moving files out of (or into) Restricted Sites. The automatic
        watcher never calls it.
        """
        return self.set_marker(path, target_zone)

    def reassign_progressive(self, path: str) -> MarkerResult:
        """
        Move ``path`` down one zone: 3 -> 2 -> 1 -> 0 -> marker removed.

        Zone 4 (Restricted Sites) files are never modified. A file without a
        (readable) marker succeeds with NO_MARKER_METADATA.
        """
        if not path or not str(path).strip():
            return MarkerResult.fail(MarkerErrorKind.EMPTY_PATH, "File path cannot be empty.")

        current = self.get_zone(path)

        if current is None:
            logger.info(f"Progressive reassign skipped - file already clean: {path}")
            return MarkerResult(success=True, kind=MarkerErrorKind.NO_MARKER_METADATA, message=NO_MARKER_MESSAGE)

        if current == TrustZone.RESTRICTED:
            logger.warning(f"Progressive reassign blocked - Zone 4 (Restricted Sites) detected: {path}")
            return MarkerResult.fail(
                MarkerErrorKind.RESTRICTED_ZONE_PROTECTED, RESTRICTED_ZONE_MESSAGE, zone=current
            )

        if current == TrustZone.LOCAL:
            logger.info(f"Progressive reassign removing MotW (was Zone {int(current)}): {path}")
            return self.remove_marker(path)

        target = TrustZone(current - 1)
        logger.info(f"Progressive reassign Zone {int(current)} -> {int(target)}: {path}")
        return self.reassign(path, target)

    # Helper routines -----------------------------------------------------------------

    def _read_marker(self, path: str) -> Optional[str]:
        stream = self.stream_path(path)
        try:
            if not os.path.exists(stream):
                return None
            with open(stream, "r", encoding="utf-8-sig", errors="replace") as f:
                return f.read()
        except Exception as e:
            logger.error(f"Error reading zone ID from {path}: {e}")
            return None

    @staticmethod
    def _failure(operation: str, path: str, error: Exception) -> MarkerResult:
        if isinstance(error, PermissionError):
            logger.error(f"{operation} failed - access denied: {path} - {error}")
            return MarkerResult.fail(MarkerErrorKind.ACCESS_DENIED, f"Access denied: {error}")
        if isinstance(error, OSError):
            logger.error(f"{operation} failed - IO error: {path} - {error}")
            return MarkerResult.fail(MarkerErrorKind.IO_ERROR, f"IO error: {error}")

        logger.error(f"{operation} failed - unexpected error: {path} - {type(error).__name__}: {error}")
        return MarkerResult.fail(MarkerErrorKind.UNEXPECTED, f"Unexpected error: {error}")
