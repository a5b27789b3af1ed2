"""User settings persisted in settings.json."""

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson

from launchkit.config.paths import Paths
from launchkit.config.storage import read_json, write_json_atomic
from launchkit.constants import (
    DEFAULT_CATALOG_URL,
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LOG_LEVEL,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_THEME,
    DEFAULT_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
VALID_THEMES = frozenset({"dark", "light"})


@dataclass(slots=True, frozen=True)
class NetworkSettings:
    """Network tuning for downloads and API calls."""

    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NetworkSettings":
        """Create from the camelCase ``network`` object."""
        return cls(
            retry_attempts=_positive_int(
                data.get("retryAttempts"), DEFAULT_RETRY_ATTEMPTS
            ),
            timeout_seconds=_positive_int(
                data.get("timeoutSeconds"), DEFAULT_TIMEOUT_SECONDS
            ),
        )

    def to_dict(self) -> dict[str, int]:
        """Convert to the camelCase ``network`` object."""
        return {
            "retryAttempts": self.retry_attempts,
            "timeoutSeconds": self.timeout_seconds,
        }


@dataclass(slots=True, frozen=True)
class LauncherSettings:
    """Launcher settings.

    Attributes:
        download_root: Directory under which each app gets its own folder
        auto_start: Start the launcher with the desktop session
        minimize_to_tray: Hide to the tray instead of quitting
        theme: UI theme name
        catalog_url: Remote catalog location
        log_level: File log level
        console_log_level: Console log level
        network: Retry and timeout settings

    """

    download_root: Path = field(default_factory=Paths.default_download_root)
    auto_start: bool = False
    minimize_to_tray: bool = True
    theme: str = DEFAULT_THEME
    catalog_url: str = DEFAULT_CATALOG_URL
    log_level: str = DEFAULT_LOG_LEVEL
    console_log_level: str = DEFAULT_CONSOLE_LOG_LEVEL
    network: NetworkSettings = field(default_factory=NetworkSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LauncherSettings":
        """Create settings from the persisted camelCase form.

        Unknown keys are ignored and invalid values fall back to defaults,
        so a hand-edited file never prevents startup.
        """
        defaults = cls()
        download_root = data.get("downloadRootPath")
        network = data.get("network")

        return cls(
            download_root=(
                Paths.expand_path(download_root)
                if isinstance(download_root, str) and download_root
                else defaults.download_root
            ),
            auto_start=_as_bool(data.get("autoStart"), defaults.auto_start),
            minimize_to_tray=_as_bool(
                data.get("minimizeToTray"), defaults.minimize_to_tray
            ),
            theme=_choice(data.get("theme"), VALID_THEMES, defaults.theme),
            catalog_url=str(data.get("catalogUrl") or defaults.catalog_url),
            log_level=_level(data.get("logLevel"), defaults.log_level),
            console_log_level=_level(
                data.get("consoleLogLevel"), defaults.console_log_level
            ),
            network=(
                NetworkSettings.from_dict(network)
                if isinstance(network, dict)
                else defaults.network
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted camelCase form."""
        return {
            "downloadRootPath": str(self.download_root),
            "autoStart": self.auto_start,
            "minimizeToTray": self.minimize_to_tray,
            "theme": self.theme,
            "catalogUrl": self.catalog_url,
            "logLevel": self.log_level,
            "consoleLogLevel": self.console_log_level,
            "network": self.network.to_dict(),
        }


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _as_bool(value: Any, default: bool) -> bool:  # noqa: FBT001
    return value if isinstance(value, bool) else default


def _choice(value: Any, choices: frozenset[str], default: str) -> str:
    return value if isinstance(value, str) and value in choices else default


def _level(value: Any, default: str) -> str:
    if not isinstance(value, str):
        return default
    return _choice(value.upper(), VALID_LOG_LEVELS, default)


class SettingsManager:
    """Loads and saves settings.json."""

    def __init__(self, settings_file: Path | None = None) -> None:
        """Initialize settings manager.

        Args:
            settings_file: Settings file path (defaults to
                Paths.settings_file())

        """
        self.settings_file = settings_file or Paths.settings_file()

    def load(self) -> LauncherSettings:
        """Load settings, merging the file over the defaults.

        A missing file yields defaults. A corrupt file also yields defaults
        and logs a warning; it is left in place for inspection.
        """
        if not self.settings_file.exists():
            return LauncherSettings()

        try:
            data = read_json(self.settings_file)
        except (orjson.JSONDecodeError, OSError) as e:
            logger.warning(
                "Ignoring unreadable settings file %s: %s",
                self.settings_file,
                e,
            )
            return LauncherSettings()

        if not isinstance(data, dict):
            logger.warning(
                "Ignoring settings file %s: expected a JSON object",
                self.settings_file,
            )
            return LauncherSettings()

        return LauncherSettings.from_dict(data)

    def save(self, settings: LauncherSettings) -> None:
        """Persist settings atomically.

        Raises:
            OSError: If the file cannot be written

        """
        write_json_atomic(self.settings_file, settings.to_dict())

    def update(self, **changes: Any) -> LauncherSettings:
        """Apply field changes, save and return the new settings.

        Example:
            >>> SettingsManager().update(theme="light", auto_start=True)

        Raises:
            ValueError: If a field name is unknown or a value is invalid

        """
        current = self.load()
        known = {f.name for f in dataclasses.fields(LauncherSettings)}
        unknown = set(changes) - known
        if unknown:
            msg = f"Unknown settings: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        if "theme" in changes and changes["theme"] not in VALID_THEMES:
            msg = (
                f"Invalid theme {changes['theme']!r}; "
                f"expected one of {', '.join(sorted(VALID_THEMES))}"
            )
            raise ValueError(msg)
        if "download_root" in changes:
            changes["download_root"] = Paths.expand_path(
                str(changes["download_root"])
            )

        updated = dataclasses.replace(current, **changes)
        self.save(updated)
        logger.info("Settings updated: %s", ", ".join(sorted(changes)))
        return updated
