"""
Helper utilities for the MotW Watcher.

Common path, glob and formatting functions used across domains.
"""

import os
import re
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional, Pattern


def utc_now() -> datetime:
    """Get current timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Get current timestamp as ISO string."""
    return utc_now().isoformat()


def format_bytes(bytes_count: int) -> str:
    """Format bytes as human-readable string."""
    if bytes_count < 0:
        return "Invalid"
    if bytes_count == 0:
        return "0 B"

    size = float(bytes_count)
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024.0:
            return f"{size:.0f} {unit}" if unit == 'B' else f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} TB"


def normalise_path(path: str | Path) -> str:
    """
    Return an absolute, normalised path string without forcing existence.

    Trailing separators are dropped so directory comparisons line up.
    """
    text = os.path.abspath(os.path.expanduser(str(path)))
    return os.path.normpath(text)


def path_key(path: str | Path) -> str:
    """Case-insensitive comparison key for a path."""
    return normalise_path(path).casefold()


def is_same_path(left: str | Path, right: str | Path) -> bool:
    """Compare two paths case-insensitively."""
    return path_key(left) == path_key(right)


def is_under(path: str | Path, directory: str | Path) -> bool:
    """
    Check whether ``path`` lies inside ``directory`` at any depth.

    Comparison is case-insensitive and aligned on separator boundaries, so
    ``C:\\Downloads2\\a.txt`` is not under ``C:\\Downloads``.
    """
    parent = path_key(directory)
    child = path_key(path)
    if child == parent:
        return False
    prefix = parent if parent.endswith(os.sep) else parent + os.sep
    return child.startswith(prefix)


def file_extension(path: str | Path) -> str:
    """Get lower-cased file extension including the dot ('' if none)."""
    return os.path.splitext(str(path))[1].lower()


def file_size(path: str | Path) -> int:
    """Get file size in bytes, 0 if unavailable."""
    try:
        return os.path.getsize(path)
    except OSError:
        return 0


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> Pattern[str]:
    """
    Translate a simple glob into a case-insensitive regex.

    Only ``*`` (any run of characters) and ``?`` (one character) are special;
    everything else matches literally.
    """
    parts = []
    for char in pattern:
        if char == '*':
            parts.append('.*')
        elif char == '?':
            parts.append('.')
        else:
            parts.append(re.escape(char))
    return re.compile('^' + ''.join(parts) + '$', re.IGNORECASE | re.DOTALL)


def matches_any_glob(name: str, patterns: Optional[Iterable[str]]) -> bool:
    """Check if ``name`` matches any of ``patterns``."""
    if not patterns:
        return False

    for pattern in patterns:
        if pattern and compile_glob(pattern.strip()).match(name):
            return True

    return False
