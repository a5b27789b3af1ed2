"""Catalog and installed-app listing commands."""

from __future__ import annotations

from argparse import Namespace
from typing import TYPE_CHECKING

from launchkit.cli.display import ConsoleProgressRenderer
from launchkit.logger import get_logger

from .base import BaseCommandHandler

if TYPE_CHECKING:
    from launchkit.core.orchestrator import LauncherOrchestrator

logger = get_logger(__name__)

ID_WIDTH = 24
VERSION_WIDTH = 12


class CatalogHandler(BaseCommandHandler):
    """Shows the catalog (``catalog``) or installed apps (``list``)."""

    async def execute(self, args: Namespace) -> int:
        """Execute the catalog or list command."""
        async with self.engine(ConsoleProgressRenderer()) as orchestrator:
            if args.command == "catalog":
                if args.refresh:
                    changed = await orchestrator.catalog.sync_versions()
                    logger.debug("%d catalog entries changed", changed)
                self._show_catalog(orchestrator)
            else:
                if args.check_updates:
                    await orchestrator.catalog.sync_versions()
                self._show_installed(orchestrator)
        return 0

    def _show_catalog(self, orchestrator: LauncherOrchestrator) -> None:
        catalog = orchestrator.catalog
        if catalog.source != "remote":
            logger.info("⚠️  Showing %s catalog (offline)", catalog.source)

        installed = {record.id: record for record in self.ledger.all()}
        for entry in catalog.entries:
            record = installed.get(entry.id)
            if record is None:
                status = ""
            elif record.version != entry.version:
                status = f"installed {record.version}, update available"
            else:
                status = "installed"
            logger.info(
                "%-*s %-*s %s",
                ID_WIDTH,
                entry.id,
                VERSION_WIDTH,
                entry.version or "-",
                status,
            )
            if entry.description:
                logger.info("%*s%s", ID_WIDTH + 1, "", entry.description)

    def _show_installed(self, orchestrator: LauncherOrchestrator) -> None:
        records = self.ledger.all()
        if not records:
            logger.info("No apps installed")
            return

        updates = {u.app_id: u for u in orchestrator.available_updates()}
        for record in records:
            update = updates.get(record.id)
            suffix = f" -> {update.new_version}" if update else ""
            logger.info(
                "%-*s %-*s %s%s",
                ID_WIDTH,
                record.id,
                VERSION_WIDTH,
                record.version,
                record.path,
                suffix,
            )
