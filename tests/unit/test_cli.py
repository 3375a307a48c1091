import sys

import pytest
from loguru import logger

pytest.importorskip("watchdog", reason="watchdog dependency is required for the CLI")

from app.models.schemas import WatchedDirectory, WatcherConfig
from app.utils.config import get_settings
from app.utils.watcher_config import save_watcher_config
from scripts.motw_watcher import main


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    logger.remove()
    logger.add(sys.stderr)


def run(*args):
    return main(["--no-log-file", *[str(a) for a in args]])


def test_status_reports_clean_file(make_file, capsys):
    path = make_file()

    assert run("status", path) == 0
    assert f"{path}: no MotW" in capsys.readouterr().out


def test_block_then_status(make_file, capsys):
    path = make_file()

    assert run("block", path) == 0
    assert run("status", path) == 0
    assert "Zone 3 (Internet)" in capsys.readouterr().out


def test_block_with_zone(make_file, store):
    path = make_file()

    assert run("block", path, "--zone", "1") == 0
    assert store.get_zone(str(path)) == 1


def test_unblock_removes_marker(make_file, store):
    path = make_file(zone=3)

    assert run("unblock", path) == 0
    assert store.has_marker(str(path)) is False


def test_reassign_into_restricted_then_progressive_refuses(make_file, store, capsys):
    path = make_file(zone=3)

    assert run("reassign", path, 4) == 0
    assert run("progressive", path) == 1

    assert "Zone 4 (Restricted Sites)" in capsys.readouterr().err
    assert store.get_zone(str(path)) == 4


def test_progressive_on_clean_file(make_file, capsys):
    assert run("progressive", make_file()) == 0
    assert "File has no MotW metadata" in capsys.readouterr().out


def test_missing_file_fails(tmp_path, capsys):
    assert run("block", tmp_path / "missing.exe") == 1
    assert "does not exist" in capsys.readouterr().err


def test_init_config_refuses_to_overwrite(tmp_path):
    config_path = tmp_path / "config.json"

    assert run("--config", config_path, "init-config") == 0
    assert config_path.exists()
    assert run("--config", config_path, "init-config") == 1
    assert run("--config", config_path, "init-config", "--force") == 0


def test_scan_applies_rules(tmp_path, make_file, store, capsys):
    path = make_file("setup.exe", zone=3)
    config_path = tmp_path / "config.json"
    save_watcher_config(
        WatcherConfig(watched_directories=[WatchedDirectory(path=str(tmp_path), target_zone=2, file_type_filters=[".exe"])]),
        config_path,
    )

    assert run("--config", config_path, "scan") == 0

    assert store.get_zone(str(path)) == 2
    assert "Processed 1 files: 1 succeeded" in capsys.readouterr().out
    assert get_settings().stats_file.exists()
