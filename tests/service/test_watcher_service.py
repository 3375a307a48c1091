"""
Service-level tests for the WatcherService.

These run the whole session with real watchdog observers and a short
debounce: a file dropped into a watched directory should come out the other
side with its marker handled and the outcome counted in the statistics.
"""

import time

import pytest

pytest.importorskip("watchdog", reason="watchdog dependency is required for service tests")

from app.models.schemas import TrustZone, WatchedDirectory, WatcherConfig
from domains.zone_watch.service import ScanInProgressError, WatcherService
from domains.zone_watch.statistics import StatisticsStore

DEBOUNCE_MS = 200
TIMEOUT = 10


def wait_for(condition, timeout=TIMEOUT):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.05)
    return condition()


@pytest.fixture
def downloads(tmp_path):
    path = tmp_path / "Downloads"
    path.mkdir()
    return path


@pytest.fixture
def service(downloads, settings):
    config = WatcherConfig(
        debounce_delay_ms=DEBOUNCE_MS,
        watched_directories=[WatchedDirectory(path=str(downloads), min_zone=3)],
    )
    statistics = StatisticsStore(settings.stats_file)
    service = WatcherService(config, settings=settings, statistics=statistics)
    yield service
    service.close()


def drop_file(directory, name, zone, write_zone):
    path = directory / name
    write_zone(path, zone)
    path.write_bytes(b"MZ" + b"\0" * 64)
    return path


def test_new_download_is_unblocked(service, downloads, store, write_zone):
    assert service.start() is True
    assert service.status()["watched_paths"] == [str(downloads)]

    path = drop_file(downloads, "setup.exe", 3, write_zone)

    assert wait_for(lambda: not store.has_marker(str(path)))
    assert wait_for(lambda: service.statistics.snapshot().total_files_processed == 1)

    stats = service.statistics.snapshot()
    assert stats.files_by_extension == {".EXE": 1}
    assert stats.files_by_zone_id == {3: 1}


def test_restricted_download_is_left_alone(service, downloads, store, write_zone):
    service.start()

    blocked = drop_file(downloads, "payload.exe", 4, write_zone)
    internet = drop_file(downloads, "setup.exe", 3, write_zone)

    assert wait_for(lambda: not store.has_marker(str(internet)))
    assert store.get_zone(str(blocked)) == TrustZone.RESTRICTED


def test_start_twice_and_stop(service):
    assert service.start() is True
    assert service.start() is False
    assert service.is_running

    service.stop()

    assert not service.is_running
    assert service.status()["watched_paths"] == []
    assert service.status()["pending_files"] == 0


def test_stopped_service_ignores_new_files(service, downloads, store, write_zone):
    service.start()
    service.stop()

    path = drop_file(downloads, "setup.exe", 3, write_zone)
    time.sleep(DEBOUNCE_MS * 3 / 1000)

    assert store.get_zone(str(path)) == TrustZone.INTERNET


def test_reload_restarts_with_new_directories(service, tmp_path, store, write_zone):
    service.start()
    other = tmp_path / "Other"
    other.mkdir()

    service.reload(
        WatcherConfig(
            debounce_delay_ms=DEBOUNCE_MS,
            watched_directories=[WatchedDirectory(path=str(other), target_zone=2)],
        )
    )

    assert service.is_running
    assert service.status()["watched_paths"] == [str(other)]

    path = drop_file(other, "tool.zip", 3, write_zone)
    assert wait_for(lambda: store.get_zone(str(path)) == TrustZone.TRUSTED)


def test_manual_scan_processes_existing_files(service, downloads, store, write_zone):
    existing = drop_file(downloads, "old.msi", 3, write_zone)
    drop_file(downloads, "trusted.msi", 2, write_zone)

    summary = service.run_scan()

    assert summary.processed == 2
    assert summary.succeeded == 1
    assert summary.skipped == 1
    assert store.has_marker(str(existing)) is False
    assert not service.is_running


def test_concurrent_scan_is_rejected(service):
    service._scan_lock.acquire()
    try:
        assert service.is_scanning
        with pytest.raises(ScanInProgressError):
            service.run_scan()
    finally:
        service._scan_lock.release()
