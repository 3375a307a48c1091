import os

import pytest

from app.utils.helpers import (
    file_extension,
    file_size,
    format_bytes,
    is_same_path,
    is_under,
    matches_any_glob,
)
from app.utils.log_setup import sanitize_message


@pytest.mark.parametrize(
    "count,expected",
    [(-1, "Invalid"), (0, "0 B"), (512, "512 B"), (2048, "2.00 KB"), (5 * 1024 ** 3, "5.00 GB")],
)
def test_format_bytes(count, expected):
    assert format_bytes(count) == expected


def test_is_under_is_case_insensitive_and_boundary_aware(tmp_path):
    root = str(tmp_path / "Downloads")

    assert is_under(os.path.join(root, "a", "b.exe"), root)
    assert is_under(os.path.join(root.upper(), "b.exe"), root)
    assert not is_under(root + "2" + os.sep + "b.exe", root)
    assert not is_under(root, root)


def test_is_same_path_ignores_case_and_trailing_separator(tmp_path):
    root = str(tmp_path / "Downloads")

    assert is_same_path(root + os.sep, root.lower())


def test_file_extension_and_size(tmp_path):
    path = tmp_path / "Setup.EXE"
    path.write_bytes(b"12345")

    assert file_extension(path) == ".exe"
    assert file_extension(tmp_path / "Makefile") == ""
    assert file_size(path) == 5
    assert file_size(tmp_path / "missing") == 0


def test_matches_any_glob():
    assert matches_any_glob("Setup.exe", ["*.EXE"])
    assert matches_any_glob("a.b", ["?.?"])
    assert not matches_any_glob("setup.exe", ["*.msi"])
    assert not matches_any_glob("setup.exe", [])
    assert not matches_any_glob("setup.exe", None)


def test_sanitize_message_escapes_control_characters():
    assert sanitize_message("a\r\nb\tc") == "a\\r\\nb\\tc"
    assert sanitize_message("") == ""
