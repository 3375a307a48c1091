import threading
from datetime import timedelta

from domains.zone_watch.tracker import PendingFileTracker


def make_tracker(clock, seconds=2) -> PendingFileTracker:
    return PendingFileTracker(timedelta(seconds=seconds), clock=clock)


def test_upsert_overwrites_timestamp(clock):
    tracker = make_tracker(clock)

    tracker.upsert("/d/a.exe")
    first = tracker.last_seen("/d/a.exe")
    clock.advance(1)
    tracker.upsert("/d/a.exe")

    assert len(tracker) == 1
    assert tracker.last_seen("/d/a.exe") == first + timedelta(seconds=1)


def test_entry_is_due_only_after_quiet_period(clock):
    tracker = make_tracker(clock)
    tracker.upsert("/d/a.exe")

    clock.advance(1.5)
    assert tracker.due() == []

    clock.advance(0.5)
    assert tracker.due() == ["/d/a.exe"]


def test_burst_resets_debounce_window(clock):
    tracker = make_tracker(clock)

    for _ in range(5):
        tracker.upsert("/d/a.exe")
        clock.advance(1)

    assert tracker.drain_due() == []
    clock.advance(1)
    assert tracker.drain_due() == ["/d/a.exe"]


def test_drain_removes_each_entry_once(clock):
    tracker = make_tracker(clock)
    tracker.upsert("/d/a.exe")
    tracker.upsert("/d/b.exe")
    clock.advance(3)
    tracker.upsert("/d/c.exe")

    assert sorted(tracker.drain_due()) == ["/d/a.exe", "/d/b.exe"]
    assert tracker.drain_due() == []
    assert "/d/c.exe" in tracker
    assert "/d/a.exe" not in tracker


def test_remove_if_present(clock):
    tracker = make_tracker(clock)
    tracker.upsert("/d/a.exe")

    assert tracker.remove("/d/a.exe") is True
    assert tracker.remove("/d/a.exe") is False


def test_concurrent_upserts_collapse_per_path(clock):
    tracker = make_tracker(clock)
    paths = [f"/d/file{i}.bin" for i in range(50)]

    def writer():
        for _ in range(20):
            for path in paths:
                tracker.upsert(path)

    threads = [threading.Thread(target=writer) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    clock.advance(2)
    assert sorted(tracker.drain_due()) == sorted(paths)
    assert len(tracker) == 0
