"""Path constants and utilities for launchkit configuration.

Centralizes every on-disk location so tests can redirect the whole tree
with ``LAUNCHKIT_CONFIG_DIR``.
"""

import os
import sys
from pathlib import Path

from launchkit.constants import (
    APP_DIR_NAME,
    CATALOG_CACHE_FILE_NAME,
    DEFAULT_DOWNLOAD_DIR_NAME,
    ENV_CONFIG_DIR,
    LEDGER_FILE_NAME,
    LOCK_FILE_NAME,
    SETTINGS_FILE_NAME,
)


class Paths:
    """Application paths and directory structure."""

    # Catalog directory (bundled with package)
    PACKAGE_DIR = Path(__file__).parent.parent
    CATALOG_DIR = PACKAGE_DIR / "catalog"
    BUNDLED_CATALOG_FILE = CATALOG_DIR / "default.json"

    @classmethod
    def config_dir(cls) -> Path:
        """Return the user configuration directory.

        ``%APPDATA%/launchkit`` on Windows, ``~/.config/launchkit``
        elsewhere; ``LAUNCHKIT_CONFIG_DIR`` overrides both.
        """
        override = os.getenv(ENV_CONFIG_DIR)
        if override:
            return Path(override).expanduser()

        if sys.platform == "win32":
            appdata = os.getenv("APPDATA")
            base = (
                Path(appdata)
                if appdata
                else Path.home() / "AppData" / "Roaming"
            )
            return base / APP_DIR_NAME

        return Path.home() / ".config" / APP_DIR_NAME

    @classmethod
    def logs_dir(cls) -> Path:
        """Return the log directory."""
        return cls.config_dir() / "logs"

    @classmethod
    def settings_file(cls) -> Path:
        """Return the settings.json path."""
        return cls.config_dir() / SETTINGS_FILE_NAME

    @classmethod
    def ledger_file(cls) -> Path:
        """Return the installed-apps.json path."""
        return cls.config_dir() / LEDGER_FILE_NAME

    @classmethod
    def catalog_cache_file(cls) -> Path:
        """Return the last-known-good catalog path."""
        return cls.config_dir() / "cache" / CATALOG_CACHE_FILE_NAME

    @classmethod
    def lock_file(cls) -> Path:
        """Return the single-instance lock file path."""
        return cls.config_dir() / LOCK_FILE_NAME

    @classmethod
    def default_download_root(cls) -> Path:
        """Return the default root under which apps are installed."""
        return Path.home() / "Downloads" / DEFAULT_DOWNLOAD_DIR_NAME

    @classmethod
    def expand_path(cls, path_str: str) -> Path:
        """Expand and resolve path with ~ and relative path support.

        Example:
            >>> Paths.expand_path("~/Apps")
            Path('/home/user/Apps')

        """
        return Path(path_str).expanduser().resolve(strict=False)

    @classmethod
    def ensure_directories(cls) -> None:
        """Create the config, cache and log directories if missing."""
        for directory in (
            cls.config_dir(),
            cls.catalog_cache_file().parent,
            cls.logs_dir(),
        ):
            directory.mkdir(parents=True, exist_ok=True)
