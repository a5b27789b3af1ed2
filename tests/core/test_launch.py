"""Tests for launching apps and opening folders."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from launchkit.core import launch as launch_module
from launchkit.core.launch import launch_app, open_folder
from launchkit.domain.models import InstalledAppRecord
from launchkit.exceptions import LaunchError


def record_for(path: Path) -> InstalledAppRecord:
    """Build a record pointing at ``path``."""
    return InstalledAppRecord(
        id="demo",
        name="Demo",
        version="1.0",
        installed_at="2026-01-01T00:00:00+00:00",
        path=str(path),
    )


@pytest.fixture
def popen(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Capture process starts."""
    popen = MagicMock()
    monkeypatch.setattr(launch_module.subprocess, "Popen", popen)
    return popen


def test_missing_path_raises(tmp_path: Path, popen) -> None:
    """A vanished install asks the user to repair."""
    with pytest.raises(LaunchError, match="try repairing"):
        launch_app(record_for(tmp_path / "gone.exe"))
    popen.assert_not_called()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX exec bit")
def test_executable_started_in_its_folder(tmp_path: Path, popen) -> None:
    """Executable files are started directly from their directory."""
    executable = tmp_path / "demo"
    executable.write_text("#!/bin/sh\n")
    executable.chmod(0o755)

    assert launch_app(record_for(executable)) == executable

    args, kwargs = popen.call_args
    assert args[0] == [str(executable)]
    assert kwargs["cwd"] == tmp_path
    assert kwargs["start_new_session"] is True


@pytest.mark.skipif(sys.platform != "linux", reason="xdg-open handler")
def test_non_executable_goes_to_desktop_handler(
    tmp_path: Path, popen
) -> None:
    """Other files are handed to the desktop opener."""
    document = tmp_path / "Demo.exe"
    document.write_bytes(b"MZ")

    launch_app(record_for(document))

    assert popen.call_args.args[0] == ["xdg-open", str(document)]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX exec bit")
def test_os_error_becomes_launch_error(tmp_path: Path, popen) -> None:
    """Failures to start are reported as LaunchError."""
    executable = tmp_path / "demo"
    executable.write_text("#!/bin/sh\n")
    executable.chmod(0o755)
    popen.side_effect = PermissionError("denied")

    with pytest.raises(LaunchError, match="denied"):
        launch_app(record_for(executable))


@pytest.mark.skipif(sys.platform != "linux", reason="xdg-open handler")
def test_open_folder_uses_parent_of_file(tmp_path: Path, popen) -> None:
    """Opening a file's folder opens its directory."""
    file_path = tmp_path / "Demo.exe"
    file_path.write_bytes(b"")

    assert open_folder(file_path) == tmp_path
    assert popen.call_args.args[0] == ["xdg-open", str(tmp_path)]


def test_open_missing_folder(tmp_path: Path, popen) -> None:
    """Missing folders raise LaunchError."""
    with pytest.raises(LaunchError, match="does not exist"):
        open_folder(tmp_path / "nope" / "Demo.exe")
