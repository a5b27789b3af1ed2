"""Uninstall command coordinator."""

from argparse import Namespace

from launchkit.cli.display import ConsoleProgressRenderer

from .base import BaseCommandHandler


class UninstallHandler(BaseCommandHandler):
    """Thin coordinator for the uninstall command."""

    async def execute(self, args: Namespace) -> int:
        """Stop and remove each requested app."""
        renderer = ConsoleProgressRenderer(
            names={record.id: record.name for record in self.ledger.all()}
        )
        async with self.engine(renderer) as orchestrator:
            rejected = self.submit(orchestrator.request_uninstall, args.apps)
            await self.wait_for(orchestrator)

        return 1 if rejected or renderer.failures else 0
