"""CLI argument parser for launchkit.

Handles parsing of command-line arguments and provides a clean
interface for defining CLI commands and their options.
"""

import argparse
from argparse import Namespace
from collections.abc import Sequence

from launchkit.config.settings import VALID_THEMES


def split_targets(values: Sequence[str]) -> list[str]:
    """Expand comma-separated app ids and drop duplicates, keeping order.

    Example:
        >>> split_targets(["a,b", "c", "a"])
        ['a', 'b', 'c']

    """
    targets: list[str] = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part and part not in targets:
                targets.append(part)
    return targets


class CLIParser:
    """Command-line argument parser for launchkit."""

    def parse_args(self, argv: Sequence[str] | None = None) -> Namespace:
        """Parse command-line arguments.

        Args:
            argv: Arguments to parse (``sys.argv[1:]`` when None)

        Returns:
            Namespace: Parsed arguments namespace.

        """
        parser = self.build()
        args = parser.parse_args(argv)
        if hasattr(args, "apps"):
            args.apps = split_targets(args.apps)
        return args

    def build(self) -> argparse.ArgumentParser:
        """Create the complete parser with every subcommand."""
        parser = self._create_main_parser()
        self._add_global_options(parser)
        self._add_subcommands(parser)
        return parser

    def _create_main_parser(self) -> argparse.ArgumentParser:
        return argparse.ArgumentParser(
            prog="launchkit",
            description="launchkit desktop app launcher",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Browse the catalog (refreshing app versions from GitHub)
  %(prog)s catalog --refresh

  # Install apps (comma-separated or space-separated)
  %(prog)s install fivem-launcher,medic-recruitment

  # Update every app with a newer catalog version
  %(prog)s update

  # Other commands
  %(prog)s list                    # Show installed apps
  %(prog)s repair medic-recruitment
  %(prog)s uninstall fivem-launcher
  %(prog)s launch fivem-launcher
  %(prog)s settings --theme light
            """,
        )

    def _add_global_options(self, parser: argparse.ArgumentParser) -> None:
        # Long form only so -v stays free for subcommands
        parser.add_argument(
            "--version",
            action="store_true",
            help="Show launchkit version and exit",
        )

    def _add_subcommands(self, parser: argparse.ArgumentParser) -> None:
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands"
        )

        self._add_catalog_command(subparsers)
        self._add_list_command(subparsers)
        self._add_install_command(subparsers)
        self._add_update_command(subparsers)
        self._add_repair_command(subparsers)
        self._add_uninstall_command(subparsers)
        self._add_launch_command(subparsers)
        self._add_open_command(subparsers)
        self._add_settings_command(subparsers)

    def _add_catalog_command(self, subparsers) -> None:
        catalog_parser = subparsers.add_parser(
            "catalog", help="Show apps available for install"
        )
        catalog_parser.add_argument(
            "--refresh",
            action="store_true",
            help="Resolve every app's latest GitHub release",
        )

    def _add_list_command(self, subparsers) -> None:
        list_parser = subparsers.add_parser(
            "list", help="Show installed apps and available updates"
        )
        list_parser.add_argument(
            "--check-updates",
            action="store_true",
            help="Resolve latest releases before comparing versions",
        )

    def _add_install_command(self, subparsers) -> None:
        install_parser = subparsers.add_parser(
            "install", help="Install apps from the catalog"
        )
        install_parser.add_argument(
            "apps", nargs="+", help="Catalog app ids (comma-separated)"
        )
        self._add_verbose_option(install_parser)

    def _add_update_command(self, subparsers) -> None:
        update_parser = subparsers.add_parser(
            "update",
            help="Update installed apps",
            epilog="""
Examples:
  %(prog)s                          # Update all apps with updates
  %(prog)s fivem-launcher           # Update a specific app
            """,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        update_parser.add_argument(
            "apps",
            nargs="*",
            help="App ids to update (all apps with updates when omitted)",
        )
        self._add_verbose_option(update_parser)

    def _add_repair_command(self, subparsers) -> None:
        repair_parser = subparsers.add_parser(
            "repair", help="Reinstall an app over its current files"
        )
        repair_parser.add_argument("apps", nargs="+", help="App ids")
        self._add_verbose_option(repair_parser)

    def _add_uninstall_command(self, subparsers) -> None:
        uninstall_parser = subparsers.add_parser(
            "uninstall", help="Stop and remove installed apps"
        )
        uninstall_parser.add_argument("apps", nargs="+", help="App ids")
        self._add_verbose_option(uninstall_parser)

    def _add_launch_command(self, subparsers) -> None:
        launch_parser = subparsers.add_parser(
            "launch", help="Start an installed app"
        )
        launch_parser.add_argument("app", help="App id")

    def _add_open_command(self, subparsers) -> None:
        open_parser = subparsers.add_parser(
            "open", help="Open an app's install folder"
        )
        open_parser.add_argument("app", help="App id")

    def _add_settings_command(self, subparsers) -> None:
        settings_parser = subparsers.add_parser(
            "settings", help="Show or change launcher settings"
        )
        settings_parser.add_argument(
            "--download-root",
            metavar="PATH",
            help="Directory apps are installed into",
        )
        settings_parser.add_argument(
            "--theme", choices=sorted(VALID_THEMES), help="UI theme"
        )
        settings_parser.add_argument(
            "--auto-start",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Start the launcher with the desktop session",
        )
        settings_parser.add_argument(
            "--minimize-to-tray",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Minimize to the tray instead of quitting",
        )

    def _add_verbose_option(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show detailed logging",
        )
