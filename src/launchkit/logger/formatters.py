"""Console formatters for the launchkit logger.

- ColoredConsoleFormatter: ANSI-colored level names
- SimpleConsoleFormatter: message only
- HybridConsoleFormatter: message only for INFO, colored structure otherwise

INFO is what the CLI uses for user-facing lines, so it stays uncluttered.
"""

import logging

from launchkit.constants import LOG_COLORS


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that colors the level name for terminal output."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the record with a colored level name.

        The record's levelname is restored afterwards because the same
        record is handed to the file handler too.

        Args:
            record: The log record to format

        Returns:
            Formatted message

        """
        color = LOG_COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        original_levelname = record.levelname
        record.levelname = f"{color}{original_levelname}{LOG_COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class SimpleConsoleFormatter(logging.Formatter):
    """Formatter that emits only the rendered message."""

    def format(self, record: logging.LogRecord) -> str:
        """Return the record's message without metadata."""
        return record.getMessage()


class HybridConsoleFormatter(logging.Formatter):
    """Plain messages for INFO, colored structured lines for other levels.

    Example Output:
        INFO:     "Installed demo 1.2.0"
        WARNING:  "12:30:45 - launchkit.core.catalog - WARNING - Using cache"
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
    ) -> None:
        """Initialize with the structured format used above INFO.

        Args:
            fmt: Format string for structured messages
            datefmt: Date format string for timestamps

        """
        super().__init__(fmt, datefmt)
        self._simple_formatter = SimpleConsoleFormatter()
        self._colored_formatter = ColoredConsoleFormatter(fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        """Pick the simple or structured format by level."""
        if record.levelno == logging.INFO:
            return self._simple_formatter.format(record)
        return self._colored_formatter.format(record)
