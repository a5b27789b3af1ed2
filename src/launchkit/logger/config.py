"""Settings-driven configuration for the logging system.

Bootstrap values are used while modules import; once settings are
available ``update_logger_from_config`` adjusts handler levels. Imports
of the config package are deferred to avoid a cycle (config modules log
through ``logging.getLogger`` for the same reason).
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from launchkit.constants import (
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LOG_LEVEL,
    ENV_LOG_DIR,
    LOG_FILE_NAME,
)

if TYPE_CHECKING:
    from launchkit.logger.state import LoggerState


def load_log_settings() -> tuple[str, str, Path]:
    """Return bootstrap console level, file level and log file path.

    ``LAUNCHKIT_LOG_DIR`` overrides the log directory; the test suite
    sets it so runs never write into the user's config directory.

    Returns:
        Tuple of (console_level, file_level, log_path)

    """
    env_log_dir = os.getenv(ENV_LOG_DIR)
    if env_log_dir:
        log_path = Path(env_log_dir).expanduser() / LOG_FILE_NAME
    else:
        from launchkit.config.paths import Paths  # noqa: PLC0415

        log_path = Paths.logs_dir() / LOG_FILE_NAME

    return DEFAULT_CONSOLE_LOG_LEVEL, DEFAULT_LOG_LEVEL, log_path


def update_logger_from_config(state: "LoggerState") -> None:
    """Apply log levels from settings.json to the running handlers.

    Only handler levels change; handlers are never added or removed.
    Errors while reading settings leave the bootstrap levels in place.

    Args:
        state: Logger state singleton

    """
    try:
        from launchkit.config import SettingsManager  # noqa: PLC0415

        settings = SettingsManager().load()
    except (ImportError, OSError, ValueError):
        return

    console_level = getattr(logging, settings.console_log_level, logging.INFO)
    file_level = getattr(logging, settings.log_level, logging.INFO)

    if state.queue_listener is not None:
        for handler in state.queue_listener.handlers:
            if isinstance(handler, RotatingFileHandler):
                handler.setLevel(file_level)
            elif isinstance(handler, logging.StreamHandler):
                handler.setLevel(console_level)

    state.config_applied = True
