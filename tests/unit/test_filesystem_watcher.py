from datetime import timedelta
from pathlib import Path

import pytest

pytest.importorskip("watchdog", reason="watchdog dependency is required for handler tests")

from app.models.schemas import WatchedDirectory, WatcherConfig
from domains.zone_watch.tracker import PendingFileTracker
from domains.zone_watch.watchers.filesystem import (
    WatchSetManager,
    ZoneEventHandler,
    match_directory,
    matches_file_type,
)


class Event:
    def __init__(self, src: Path, dest: Path | None = None, is_directory: bool = False):
        self.src_path = str(src)
        self.dest_path = str(dest) if dest else None
        self.is_directory = is_directory


@pytest.fixture
def tracker(clock):
    return PendingFileTracker(timedelta(seconds=2), clock=clock)


def test_non_recursive_directory_owns_direct_children_only(tmp_path):
    directory = WatchedDirectory(path=str(tmp_path), include_subdirectories=False)

    assert match_directory(str(tmp_path / "a.exe"), [directory]) is directory
    assert match_directory(str(tmp_path / "sub" / "a.exe"), [directory]) is None


def test_recursive_directory_owns_subtree(tmp_path):
    directory = WatchedDirectory(path=str(tmp_path), include_subdirectories=True)

    assert match_directory(str(tmp_path / "sub" / "deep" / "a.exe"), [directory]) is directory


def test_directory_match_is_case_insensitive():
    flat = WatchedDirectory(path="/home/user/Downloads")
    tree = WatchedDirectory(path="/home/user/Archive", include_subdirectories=True)

    assert match_directory("/HOME/USER/DOWNLOADS/setup.exe", [flat]) is flat
    assert match_directory("/home/user/archive/2024/setup.exe", [tree]) is tree


def test_recursive_match_respects_path_boundaries():
    directory = WatchedDirectory(path="/home/user/Downloads", include_subdirectories=True)

    assert match_directory("/home/user/Downloads2/setup.exe", [directory]) is None


def test_disabled_directory_never_matches(tmp_path):
    directory = WatchedDirectory(path=str(tmp_path), enabled=False)

    assert match_directory(str(tmp_path / "a.exe"), [directory]) is None


@pytest.mark.parametrize(
    "filters,name,expected",
    [
        (["*"], "anything", True),
        (["*.*"], "setup.exe", True),
        ([".exe"], "SETUP.EXE", True),
        (["*.msi"], "setup.msi", True),
        (["zip"], "archive.ZIP", True),
        ([".exe", ".msi"], "notes.txt", False),
        ([".exe"], "Makefile", False),
    ],
)
def test_file_type_filters(filters, name, expected):
    directory = WatchedDirectory(path="/d", file_type_filters=filters)

    assert matches_file_type(f"/d/{name}", directory) is expected


def test_handler_queues_matching_files(tmp_path, tracker, store):
    directory = WatchedDirectory(path=str(tmp_path), file_type_filters=[".exe"])
    handler = ZoneEventHandler([directory], tracker, store)

    exe = tmp_path / "setup.exe"
    exe.write_text("x")
    txt = tmp_path / "notes.txt"
    txt.write_text("x")

    handler.on_created(Event(exe))
    handler.on_modified(Event(txt))

    assert str(exe) in tracker
    assert str(txt) not in tracker


def test_handler_skips_subdirectory_of_flat_directory(tmp_path, tracker, store):
    sub = tmp_path / "sub"
    sub.mkdir()
    nested = sub / "setup.exe"
    nested.write_text("x")

    flat = ZoneEventHandler([WatchedDirectory(path=str(tmp_path))], tracker, store)
    flat.on_created(Event(nested))
    assert len(tracker) == 0

    recursive = ZoneEventHandler(
        [WatchedDirectory(path=str(tmp_path), include_subdirectories=True)], tracker, store
    )
    recursive.on_created(Event(nested))
    assert str(nested) in tracker


def test_handler_ignores_stale_events_directories_and_marker_streams(tmp_path, tracker, store, write_zone):
    handler = ZoneEventHandler([WatchedDirectory(path=str(tmp_path))], tracker, store)

    handler.on_created(Event(tmp_path / "gone.exe"))
    handler.on_modified(Event(tmp_path, is_directory=True))

    exe = tmp_path / "setup.exe"
    exe.write_text("x")
    write_zone(exe, 3)
    handler.on_created(Event(str(exe) + ":Zone.Identifier"))

    assert len(tracker) == 0


def test_handler_queues_rename_destination(tmp_path, tracker, store):
    handler = ZoneEventHandler([WatchedDirectory(path=str(tmp_path))], tracker, store)
    final = tmp_path / "setup.exe"
    final.write_text("x")

    handler.on_moved(Event(tmp_path / "setup.exe.crdownload", dest=final))

    assert list(tracker.due(tracker.clock() + timedelta(seconds=5))) == [str(final)]


def test_repeated_events_keep_one_entry(tmp_path, tracker, store, clock):
    handler = ZoneEventHandler([WatchedDirectory(path=str(tmp_path))], tracker, store)
    exe = tmp_path / "setup.exe"
    exe.write_text("x")

    handler.on_created(Event(exe))
    clock.advance(1)
    handler.on_modified(Event(exe))

    assert len(tracker) == 1
    assert tracker.last_seen(str(exe)) == clock()


def test_watch_set_skips_missing_directories(tmp_path, tracker, store):
    config = WatcherConfig(
        watched_directories=[
            WatchedDirectory(path=str(tmp_path)),
            WatchedDirectory(path=str(tmp_path / "missing")),
            WatchedDirectory(path=str(tmp_path), enabled=False),
        ]
    )
    watch_set = WatchSetManager(config, tracker, store)

    try:
        assert watch_set.start() == 1
        assert watch_set.watched_paths == [str(tmp_path)]
    finally:
        watch_set.stop(timeout=2)

    assert watch_set.observers == []
