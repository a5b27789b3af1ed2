"""CLI runner for launchkit.

Orchestrates the execution of CLI commands by routing parsed
arguments to the appropriate command handlers.
"""

import contextlib
from argparse import Namespace
from collections.abc import Sequence

from launchkit import __version__
from launchkit.cli.commands import (
    BaseCommandHandler,
    CatalogHandler,
    InstallCommandHandler,
    LaunchHandler,
    SettingsHandler,
    UninstallHandler,
)
from launchkit.cli.parser import CLIParser
from launchkit.config import InstallationLedger, Paths, SettingsManager
from launchkit.core.locking import LockManager
from launchkit.exceptions import LauncherError
from launchkit.logger import (
    get_logger,
    temporary_console_level,
    update_logger_from_config,
)

logger = get_logger(__name__)

# Commands that change the ledger, settings or installed files
MUTATING_COMMANDS = frozenset(
    {"install", "update", "repair", "uninstall", "settings"}
)

HANDLERS: dict[str, type[BaseCommandHandler]] = {
    "catalog": CatalogHandler,
    "list": CatalogHandler,
    "install": InstallCommandHandler,
    "update": InstallCommandHandler,
    "repair": InstallCommandHandler,
    "uninstall": UninstallHandler,
    "launch": LaunchHandler,
    "open": LaunchHandler,
    "settings": SettingsHandler,
}


class CLIRunner:
    """CLI command runner and orchestrator."""

    def __init__(
        self,
        settings_manager: SettingsManager | None = None,
        ledger: InstallationLedger | None = None,
    ) -> None:
        """Initialize CLI runner with shared dependencies.

        Args:
            settings_manager: Settings persistence (default location if None)
            ledger: Installed-app records (default location if None)

        """
        self.settings_manager = settings_manager or SettingsManager()
        self.ledger = ledger or InstallationLedger()

    async def run(self, argv: Sequence[str] | None = None) -> int:
        """Parse arguments and run the selected command.

        Returns:
            Process exit code

        """
        args = CLIParser().parse_args(argv)

        if args.version:
            print(__version__)
            return 0

        if not args.command:
            print("❌ No command specified. Use --help.")
            return 1

        update_logger_from_config()
        return await self._execute_command(args)

    async def _execute_command(self, args: Namespace) -> int:
        handler = HANDLERS[args.command](self.settings_manager, self.ledger)

        level_context = (
            temporary_console_level("DEBUG")
            if getattr(args, "verbose", False)
            else contextlib.nullcontext()
        )
        try:
            with level_context:
                if args.command in MUTATING_COMMANDS:
                    async with LockManager(Paths.lock_file()):
                        return await handler.execute(args)
                return await handler.execute(args)
        except LauncherError as e:
            logger.error("❌ %s", e)
            return 1
        except ValueError as e:
            logger.error("❌ %s", e)
            return 1
