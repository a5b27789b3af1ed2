"""Install, update and repair command coordinator."""

from argparse import Namespace

from launchkit.cli.display import ConsoleProgressRenderer
from launchkit.logger import get_logger

from .base import BaseCommandHandler

logger = get_logger(__name__)


class InstallCommandHandler(BaseCommandHandler):
    """Thin coordinator for the install, update and repair commands."""

    async def execute(self, args: Namespace) -> int:
        """Submit one request per app and wait for all of them."""
        renderer = ConsoleProgressRenderer()
        async with self.engine(renderer) as orchestrator:
            targets = list(args.apps)
            if args.command == "update":
                await orchestrator.catalog.sync_versions()
                if not targets:
                    targets = [
                        update.app_id
                        for update in orchestrator.available_updates()
                    ]
                    if not targets:
                        logger.info("✅ All apps are up to date")
                        return 0

            request = {
                "install": orchestrator.request_install,
                "update": orchestrator.request_update,
                "repair": orchestrator.request_repair,
            }[args.command]

            rejected = self.submit(request, targets)
            await self.wait_for(orchestrator)

        return 1 if rejected or renderer.failures else 0
