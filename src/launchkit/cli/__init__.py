"""Command-line interface for launchkit."""

from launchkit.cli.parser import CLIParser
from launchkit.cli.runner import CLIRunner

__all__ = ["CLIParser", "CLIRunner"]
