"""HTTP session utilities for launchkit.

Creates aiohttp sessions with timeouts suited to long downloads: the
connect and per-read timeouts are bounded while the total is not, so a
slow but steady transfer is never cut off.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiohttp

from launchkit import __version__
from launchkit.config.settings import NetworkSettings

CONNECTION_LIMIT = 10
CONNECTION_LIMIT_PER_HOST = 4


def build_timeout(timeout_seconds: int) -> aiohttp.ClientTimeout:
    """Return the client timeout for a configured timeout in seconds."""
    return aiohttp.ClientTimeout(
        total=None,
        sock_connect=timeout_seconds,
        sock_read=timeout_seconds * 3,
    )


@asynccontextmanager
async def create_http_session(
    network: NetworkSettings,
) -> AsyncIterator[aiohttp.ClientSession]:
    """Create configured HTTP session.

    Args:
        network: Network settings (timeout in seconds)

    Yields:
        Configured aiohttp.ClientSession

    """
    connector = aiohttp.TCPConnector(
        limit=CONNECTION_LIMIT,
        limit_per_host=CONNECTION_LIMIT_PER_HOST,
    )

    async with aiohttp.ClientSession(
        timeout=build_timeout(network.timeout_seconds),
        connector=connector,
        headers={"User-Agent": f"launchkit/{__version__}"},
    ) as session:
        yield session
