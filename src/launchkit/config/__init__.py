"""Configuration management: paths, settings, ledger and catalog cache.

This package provides:
- Paths: Path constants and utilities (from paths.py)
- SettingsManager / LauncherSettings: settings.json (from settings.py)
- InstallationLedger: installed-apps.json (from ledger.py)
- CatalogCache: last-known-good catalog (from cache.py)

Modules here log through ``logging.getLogger`` because the logger package
imports ``Paths`` while configuring itself.
"""

from launchkit.config.paths import Paths
from launchkit.config.cache import CatalogCache, load_bundled_catalog
from launchkit.config.ledger import InstallationLedger
from launchkit.config.settings import (
    LauncherSettings,
    NetworkSettings,
    SettingsManager,
)

__all__ = [
    "CatalogCache",
    "InstallationLedger",
    "LauncherSettings",
    "NetworkSettings",
    "Paths",
    "SettingsManager",
    "load_bundled_catalog",
]
