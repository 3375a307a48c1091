#!/usr/bin/env python3
"""Command line runner for the MotW zone watcher.

Runs the directory watcher headless, triggers a one-off "run rules now" scan,
or performs single-file Mark of the Web operations. All policy lives in
``domains.zone_watch``; this module only parses arguments and wires objects.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.models.schemas import TrustZone
from app.utils.config import get_settings
from app.utils.log_setup import configure_logging
from app.utils.watcher_config import default_watcher_config, load_watcher_config, save_watcher_config
from domains.zone_watch.marker_store import MarkerErrorKind, MarkerResult, MarkerStore
from domains.zone_watch.service import WatcherService
from domains.zone_watch.statistics import StatisticsStore


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Watch directories and apply Mark of the Web zone rules.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Watcher configuration JSON (default: <data dir>/watcher-config.json).",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Only log to the console.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("watch", help="Watch configured directories until interrupted.")
    sub.add_parser("scan", help="Apply rules to every existing file once.")

    init = sub.add_parser("init-config", help="Write a default configuration file.")
    init.add_argument("--force", action="store_true", help="Overwrite an existing file.")

    status = sub.add_parser("status", help="Show the marker of a file.")
    status.add_argument("file", type=Path)

    block = sub.add_parser("block", help="Add a marker to a file.")
    block.add_argument("file", type=Path)
    block.add_argument("--zone", type=int, default=int(TrustZone.INTERNET), help="Zone id 0-4 (default: 3).")

    unblock = sub.add_parser("unblock", help="Remove the marker of a file.")
    unblock.add_argument("file", type=Path)

    reassign = sub.add_parser("reassign", help="Reassign a file directly to a zone (0-4).")
    reassign.add_argument("file", type=Path)
    reassign.add_argument("zone", type=int)

    progressive = sub.add_parser("progressive", help="Move a file down one zone.")
    progressive.add_argument("file", type=Path)

    return parser.parse_args(argv)


def _report(result: MarkerResult, store: MarkerStore, path: str) -> int:
    if not result.success:
        print(f"Failed: {result.message}", file=sys.stderr)
        return 1

    if result.kind is MarkerErrorKind.NO_MARKER_METADATA:
        print(result.message)
        return 0

    zone = store.get_zone(path)
    print(f"{path}: " + (f"Zone {int(zone)} ({zone.label})" if zone is not None else "no MotW"))
    return 0


def run_watch(service: WatcherService) -> int:
    """Watch until SIGINT/SIGTERM."""
    stop_event = threading.Event()

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, shutting down.")
        stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    service.start()
    if not service.status()["watched_paths"]:
        logger.error("No valid directories to monitor.")
        service.stop()
        return 1

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    finally:
        service.stop()

    logger.info("Zone watcher stopped.")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings, log_file=not args.no_log_file)

    config_path = args.config or settings.config_file
    store = MarkerStore(stream_suffix=settings.marker_stream_suffix, host_url=settings.default_host_url)

    if args.command == "init-config":
        if config_path.exists() and not args.force:
            logger.error(f"{config_path} already exists (use --force to overwrite)")
            return 1
        return 0 if save_watcher_config(default_watcher_config(), config_path) else 1

    if args.command in ("watch", "scan"):
        config = load_watcher_config(config_path)
        statistics = StatisticsStore(settings.stats_file, history_days=settings.stats_history_days)
        service = WatcherService(config, settings=settings, store=store, statistics=statistics)

        if args.command == "watch":
            return run_watch(service)

        summary = service.run_scan()
        print(
            f"Processed {summary.processed} files: {summary.succeeded} succeeded, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return 0 if summary.failed == 0 else 1

    path = str(args.file)

    if args.command == "status":
        zone = store.get_zone(path)
        if zone is None:
            print(f"{path}: " + ("MotW present, zone unreadable" if store.has_marker(path) else "no MotW"))
        else:
            print(f"{path}: Zone {int(zone)} ({zone.label})")
        return 0

    if args.command == "block":
        return _report(store.set_marker(path, args.zone), store, path)
    if args.command == "unblock":
        return _report(store.remove_marker(path), store, path)
    if args.command == "reassign":
        return _report(store.reassign(path, args.zone), store, path)
    return _report(store.reassign_progressive(path), store, path)


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
