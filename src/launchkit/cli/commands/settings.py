"""Settings command: show or change settings.json."""

from argparse import Namespace
from typing import Any

from launchkit.logger import get_logger

from .base import BaseCommandHandler

logger = get_logger(__name__)


class SettingsHandler(BaseCommandHandler):
    """Shows the current settings or applies the given changes."""

    async def execute(self, args: Namespace) -> int:
        """Execute the settings command."""
        changes: dict[str, Any] = {}
        if args.download_root is not None:
            changes["download_root"] = args.download_root
        if args.theme is not None:
            changes["theme"] = args.theme
        if args.auto_start is not None:
            changes["auto_start"] = args.auto_start
        if args.minimize_to_tray is not None:
            changes["minimize_to_tray"] = args.minimize_to_tray

        settings = (
            self.settings_manager.update(**changes)
            if changes
            else self.settings
        )
        for key, value in settings.to_dict().items():
            logger.info("%-16s %s", key, value)
        logger.info(
            "%-16s %s", "settingsFile", self.settings_manager.settings_file
        )
        return 0
