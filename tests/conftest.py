from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from app.utils.config import Settings
from domains.zone_watch.marker_store import MarkerStore

ZONE_STREAM = ":Zone.Identifier"


def write_zone(path, zone_id) -> None:
    """Write a raw Zone.Identifier marker the way a browser does."""
    with open(str(path) + ZONE_STREAM, "w", encoding="utf-8") as f:
        f.write(f"[ZoneTransfer]\nZoneId={zone_id}\nHostUrl=about:internet")


def read_marker(path) -> str:
    with open(str(path) + ZONE_STREAM, "r", encoding="utf-8") as f:
        return f.read()


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def store() -> MarkerStore:
    return MarkerStore()


@pytest.fixture
def make_file(tmp_path):
    def _make(name: str = "download.exe", content: str = "Test content", zone=None) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        if zone is not None:
            write_zone(path, zone)
        return path

    return _make


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "data", shutdown_timeout=2.0)


@pytest.fixture(name="write_zone")
def write_zone_fixture():
    return write_zone


@pytest.fixture(name="read_marker")
def read_marker_fixture():
    return read_marker
