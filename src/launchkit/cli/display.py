"""Console rendering of lifecycle events.

``ConsoleProgressRenderer`` is registered as an EventChannel listener. It
redraws one progress line per app (throttled) and reports every terminal
event through the logger, which prints INFO messages without decoration.
"""

from __future__ import annotations

import sys
import time
from typing import TextIO

from launchkit.constants import (
    PROGRESS_BAR_WIDTH,
    PROGRESS_RENDER_INTERVAL_SECONDS,
)
from launchkit.domain.events import (
    CancelledEvent,
    CompleteEvent,
    ErrorEvent,
    LauncherEvent,
    Phase,
    ProgressEvent,
    UninstalledEvent,
)
from launchkit.logger import get_logger
from launchkit.utils.formatting import (
    format_bytes,
    format_duration,
    format_speed,
)

logger = get_logger(__name__)


def render_bar(percent: int, width: int = PROGRESS_BAR_WIDTH) -> str:
    """Return an ASCII bar such as ``[######----]``."""
    percent = max(0, min(100, percent))
    filled = round(width * percent / 100)
    return f"[{'#' * filled}{'-' * (width - filled)}]"


def format_progress_line(name: str, event: ProgressEvent) -> str:
    """Build the single-line progress summary for one app."""
    if event.phase is Phase.DOWNLOADING:
        if event.bytes_total:
            amount = (
                f"{format_bytes(event.bytes_downloaded)}"
                f"/{format_bytes(event.bytes_total)}"
            )
        else:
            amount = format_bytes(event.bytes_downloaded)
        return (
            f"{name} {render_bar(event.percent)} {event.percent:3d}% "
            f"{amount} {format_speed(event.speed_bytes_per_sec)} "
            f"{format_duration(event.elapsed_seconds)}"
        )
    return (
        f"{name} {render_bar(event.percent)} {event.percent:3d}% {event.phase}"
    )


class ConsoleProgressRenderer:
    """Draws progress lines and logs outcomes for CLI commands."""

    def __init__(
        self,
        names: dict[str, str] | None = None,
        stream: TextIO | None = None,
        interval: float = PROGRESS_RENDER_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the renderer.

        Args:
            names: Display name per app id (ids are shown when missing)
            stream: Output stream for progress lines (stdout by default)
            interval: Minimum seconds between redraws of one app

        """
        self.names = names or {}
        self.stream = stream or sys.stdout
        self.interval = interval
        self.interactive = self.stream.isatty()
        self._last_draw: dict[str, float] = {}
        self._last_phase: dict[str, Phase] = {}
        self._line_open = False
        self.failures: list[str] = []

    def __call__(self, event: LauncherEvent) -> None:
        """Handle one event from the channel."""
        if isinstance(event, ProgressEvent):
            self._on_progress(event)
            return

        self._close_line()
        self._last_draw.pop(event.app_id, None)
        self._last_phase.pop(event.app_id, None)
        name = self.names.get(event.app_id, event.app_id)

        if isinstance(event, CompleteEvent):
            logger.info("✅ %s installed: %s", name, event.final_path)
        elif isinstance(event, UninstalledEvent):
            logger.info("✅ %s uninstalled", name)
        elif isinstance(event, CancelledEvent):
            logger.info("⏹️  %s cancelled", name)
        elif isinstance(event, ErrorEvent):
            self.failures.append(event.app_id)
            logger.error("❌ %s: %s", name, event.message)

    def _on_progress(self, event: ProgressEvent) -> None:
        now = time.monotonic()
        phase_changed = self._last_phase.get(event.app_id) is not event.phase
        last = self._last_draw.get(event.app_id, 0.0)
        due = now - last >= self.interval or event.percent >= 100

        if not (phase_changed or (self.interactive and due)):
            return

        self._last_draw[event.app_id] = now
        self._last_phase[event.app_id] = event.phase
        line = format_progress_line(
            self.names.get(event.app_id, event.app_id), event
        )
        if self.interactive:
            self.stream.write(f"\r\033[K{line}")
            self._line_open = True
        else:
            self.stream.write(f"{line}\n")
        self.stream.flush()

    def _close_line(self) -> None:
        if self._line_open:
            self.stream.write("\n")
            self.stream.flush()
            self._line_open = False
