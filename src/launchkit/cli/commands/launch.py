"""Launch and open-folder commands."""

from argparse import Namespace
from pathlib import Path

from launchkit.core.launch import launch_app, open_folder
from launchkit.exceptions import NotInstalledError
from launchkit.logger import get_logger

from .base import BaseCommandHandler

logger = get_logger(__name__)


class LaunchHandler(BaseCommandHandler):
    """Starts an installed app or opens its folder."""

    async def execute(self, args: Namespace) -> int:
        """Execute the launch or open command."""
        record = self.ledger.get(args.app)
        if record is None:
            msg = "install it first"
            raise NotInstalledError(msg, args.app)

        if args.command == "launch":
            launch_app(record)
            return 0

        folder = open_folder(Path(record.install_root or record.path))
        logger.info("Opened %s", folder)
        return 0
