"""Open installed apps and their folders with the platform's handler."""

import os
import subprocess
import sys
from pathlib import Path

from launchkit.domain.models import InstalledAppRecord
from launchkit.exceptions import LaunchError
from launchkit.logger import get_logger

logger = get_logger(__name__)


def _open_with_desktop(path: Path) -> None:
    if sys.platform == "win32":
        os.startfile(path)  # noqa: S606
    elif sys.platform == "darwin":
        subprocess.Popen(["open", str(path)])  # noqa: S603, S607
    else:
        subprocess.Popen(  # noqa: S603
            ["xdg-open", str(path)],  # noqa: S607
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )


def launch_app(record: InstalledAppRecord) -> Path:
    """Start an installed app.

    Executable files are started directly (detached, working directory
    set to their folder); anything else, including an install root that
    has no discovered executable, goes to the desktop handler.

    Returns:
        The path that was opened

    Raises:
        LaunchError: If the recorded path is missing or cannot be opened

    """
    path = Path(record.path)
    if not path.exists():
        msg = f"{path} does not exist; try repairing the app"
        raise LaunchError(msg, record.id)

    try:
        if (
            sys.platform != "win32"
            and path.is_file()
            and os.access(path, os.X_OK)
        ):
            subprocess.Popen(  # noqa: S603
                [str(path)],
                cwd=path.parent,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        else:
            _open_with_desktop(path)
    except OSError as e:
        raise LaunchError(str(e), record.id) from e

    logger.info("Launched %s (%s)", record.name, path)
    return path


def open_folder(path: Path) -> Path:
    """Open a directory (or a file's directory) in the file manager.

    Raises:
        LaunchError: If the directory does not exist or cannot be opened

    """
    folder = path if path.is_dir() else path.parent
    if not folder.is_dir():
        msg = f"{folder} does not exist"
        raise LaunchError(msg, str(path))

    try:
        _open_with_desktop(folder)
    except OSError as e:
        raise LaunchError(str(e), str(folder)) from e
    return folder
