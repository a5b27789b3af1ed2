"""Logging utilities for launchkit.

Application → QueueHandler → Queue → QueueListener thread →
console (hybrid, colored) + rotating file handlers.

Usage:
    >>> from launchkit.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Downloading %s", app_id)  # %-style, never f-strings

Rules:
    1. Always use ``get_logger(__name__)`` (config modules use
       ``logging.getLogger`` to avoid an import cycle)
    2. Never call ``logging.basicConfig()``
    3. Handlers live only on the ``launchkit`` root via the listener

Environment Variables:
    LAUNCHKIT_LOG_DIR: Redirect the log file directory (used by tests)
"""

from launchkit.logger.config import (
    update_logger_from_config as _update_config,
)
from launchkit.logger.formatters import (
    ColoredConsoleFormatter,
    HybridConsoleFormatter,
    SimpleConsoleFormatter,
)
from launchkit.logger.handlers import ConfigurationError
from launchkit.logger.logger import (
    clear_logger_state,
    flush_all_handlers,
    get_logger,
    setup_logging,
    temporary_console_level,
)
from launchkit.logger.state import get_state

__all__ = [
    "ColoredConsoleFormatter",
    "ConfigurationError",
    "HybridConsoleFormatter",
    "SimpleConsoleFormatter",
    "clear_logger_state",
    "flush_all_handlers",
    "get_logger",
    "get_state",
    "setup_logging",
    "temporary_console_level",
    "update_logger_from_config",
]


def update_logger_from_config() -> None:
    """Apply settings.json log levels to the running handlers."""
    _update_config(get_state())
