"""Command handlers for launchkit CLI.

This module contains all command handler implementations that provide
the core functionality for each CLI command.
"""

from .base import BaseCommandHandler
from .catalog import CatalogHandler
from .install import InstallCommandHandler
from .launch import LaunchHandler
from .settings import SettingsHandler
from .uninstall import UninstallHandler

__all__ = [
    "BaseCommandHandler",
    "CatalogHandler",
    "InstallCommandHandler",
    "LaunchHandler",
    "SettingsHandler",
    "UninstallHandler",
]
