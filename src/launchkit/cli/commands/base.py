"""Base command handler for launchkit CLI commands.

This module provides the abstract base class that all command handlers
inherit from, ensuring consistent interface and shared functionality
across commands.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from argparse import Namespace
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from launchkit.cli.display import ConsoleProgressRenderer
from launchkit.config import InstallationLedger, SettingsManager
from launchkit.core.events import EventChannel
from launchkit.core.http_session import create_http_session
from launchkit.core.orchestrator import LauncherOrchestrator
from launchkit.exceptions import LauncherError
from launchkit.logger import get_logger

logger = get_logger(__name__)


class BaseCommandHandler(ABC):
    """Abstract base class for all command handlers.

    Usage:
        settings = SettingsManager()
        handler = ConcreteHandler(settings, InstallationLedger())
        exit_code = await handler.execute(args)

    Note:
        CLIRunner is the composition root and injects the shared
        settings manager and ledger into every handler.
    """

    def __init__(
        self,
        settings_manager: SettingsManager,
        ledger: InstallationLedger,
    ) -> None:
        """Initialize the command handler with shared dependencies.

        Args:
            settings_manager: Settings persistence
            ledger: Installed-app records

        """
        self.settings_manager = settings_manager
        self.settings = settings_manager.load()
        self.ledger = ledger

    @abstractmethod
    async def execute(self, args: Namespace) -> int:
        """Execute the command and return the process exit code."""

    @asynccontextmanager
    async def engine(
        self, renderer: ConsoleProgressRenderer | None = None
    ) -> AsyncIterator[LauncherOrchestrator]:
        """Yield an orchestrator with a loaded catalog.

        Events are rendered to the console for the lifetime of the block.
        """
        async with create_http_session(self.settings.network) as session:
            channel = EventChannel()
            renderer = renderer or ConsoleProgressRenderer()
            remove_listener = channel.add_listener(renderer)
            orchestrator = LauncherOrchestrator.create_default(
                session, self.settings, events=channel, ledger=self.ledger
            )
            try:
                await orchestrator.catalog.refresh()
                renderer.names.update(
                    {
                        entry.id: entry.name
                        for entry in orchestrator.catalog.entries
                    }
                )
                yield orchestrator
            finally:
                remove_listener()
                channel.close()

    @staticmethod
    def submit(
        request: Callable[[str], asyncio.Task[object]],
        app_ids: list[str],
    ) -> int:
        """Submit one request per app id; return how many were rejected."""
        rejected = 0
        for app_id in app_ids:
            try:
                request(app_id)
            except LauncherError as e:
                logger.error("❌ %s", e)
                rejected += 1
        return rejected

    @staticmethod
    async def wait_for(orchestrator: LauncherOrchestrator) -> None:
        """Wait for all requests; Ctrl+C cancels the active ones."""
        try:
            await orchestrator.wait_idle()
        except asyncio.CancelledError:
            cancelled = orchestrator.cancel_all()
            if cancelled:
                logger.info("Cancelling %s...", ", ".join(cancelled))
            await orchestrator.wait_idle()
            raise
