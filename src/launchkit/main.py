"""Main CLI entry point for launchkit.

This module provides the minimal entry point for the command-line
interface, delegating all functionality to the CLI runner.
"""

import asyncio
import sys

from launchkit.cli import CLIRunner
from launchkit.logger import get_logger

if sys.platform != "win32":
    import uvloop

logger = get_logger(__name__)


async def async_main() -> int:
    """Run the CLI asynchronously and return the exit code."""
    logger.debug("CLI started")
    runner = CLIRunner()
    try:
        code = await runner.run()
        logger.debug("CLI completed with exit code %d", code)
        return code
    except Exception:
        logger.exception("CLI encountered an error")
        raise


def main() -> None:
    """Run the CLI application.

    Uses uvloop on POSIX for better async performance; Windows runs the
    default asyncio loop.

    Raises:
        SystemExit: With the command's exit code.

    """
    try:
        if sys.platform == "win32":
            code = asyncio.run(async_main())
        else:
            code = uvloop.run(async_main())
    except KeyboardInterrupt:
        logger.info("⏹️  Operation cancelled by user")
        sys.exit(130)
    except Exception:
        logger.exception("❌ Unexpected error")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
