"""Thin GitHub client resolving a repository's latest release.

Only ``/repos/{owner}/{repo}/releases/latest`` is used. A repository
without releases (404) or an unreachable API yields None so callers keep
whatever version the catalog declares.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Protocol

import aiohttp
import orjson

from launchkit.config.settings import NetworkSettings
from launchkit.constants import (
    ARCHIVE_TAR_SUFFIXES,
    ARCHIVE_ZIP_SUFFIXES,
    DEFAULT_RETRY_ATTEMPTS,
    ENV_GITHUB_TOKEN,
    EXECUTABLE_SUFFIXES,
    GITHUB_API_BASE,
    HTTP_NOT_FOUND,
)
from launchkit.domain.models import ReleaseInfo, RepoRef
from launchkit.logger import get_logger

logger = get_logger(__name__)

INSTALLABLE_SUFFIXES = (
    EXECUTABLE_SUFFIXES + ARCHIVE_ZIP_SUFFIXES + ARCHIVE_TAR_SUFFIXES
)


class ReleaseResolver(Protocol):
    """Anything that can look up the latest release of a repository."""

    async def resolve_latest_release(
        self, repo: RepoRef
    ) -> ReleaseInfo | None:
        """Return the latest release, or None when unavailable."""
        ...


def normalize_version(tag: str) -> str:
    """Strip a leading ``v``/``V`` from a release tag."""
    tag = tag.strip()
    if tag.startswith(("v", "V")):
        return tag[1:]
    return tag


def select_asset(assets: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Return the first asset that is an executable or an archive."""
    for asset in assets:
        name = str(asset.get("name") or "").lower()
        if name.endswith(INSTALLABLE_SUFFIXES):
            return asset
    return None


def parse_release(data: dict[str, Any]) -> ReleaseInfo:
    """Convert a GitHub release payload into ReleaseInfo.

    Raises:
        ValueError: If the payload has no ``tag_name``

    """
    if not isinstance(data, dict):
        msg = "Release payload must be a JSON object"
        raise ValueError(msg)

    tag = data.get("tag_name")
    if not tag:
        msg = "Release payload has no tag_name"
        raise ValueError(msg)

    asset = select_asset(data.get("assets") or [])
    return ReleaseInfo(
        version=normalize_version(str(tag)),
        download_url=asset.get("browser_download_url") if asset else None,
        asset_name=asset.get("name") if asset else None,
        published_at=data.get("published_at"),
        notes=data.get("body"),
    )


class GitHubReleaseResolver:
    """Resolves latest releases with retry and optional token auth."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        token: str | None = None,
        api_base: str = GITHUB_API_BASE,
        backoff_seconds: float = 1.0,
    ) -> None:
        """Initialize the resolver.

        Args:
            http_session: Shared aiohttp session
            retry_attempts: Attempts per lookup
            token: Optional GitHub token for higher rate limits
            api_base: API root URL
            backoff_seconds: Base delay, doubled after each failed attempt

        """
        self.http_session = http_session
        self.retry_attempts = max(1, retry_attempts)
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.backoff_seconds = backoff_seconds

    @classmethod
    def create_default(
        cls,
        http_session: aiohttp.ClientSession,
        network: NetworkSettings,
    ) -> GitHubReleaseResolver:
        """Create a resolver using settings and ``GITHUB_TOKEN``."""
        return cls(
            http_session,
            retry_attempts=network.retry_attempts,
            token=os.getenv(ENV_GITHUB_TOKEN) or None,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def resolve_latest_release(
        self, repo: RepoRef
    ) -> ReleaseInfo | None:
        """Return the latest release of ``repo``.

        Returns:
            ReleaseInfo, or None for repositories without releases and
            when every attempt fails

        """
        url = f"{self.api_base}/repos/{repo.owner}/{repo.repo}/releases/latest"

        for attempt in range(1, self.retry_attempts + 1):
            try:
                async with self.http_session.get(
                    url, headers=self._headers()
                ) as response:
                    if response.status == HTTP_NOT_FOUND:
                        logger.debug("No releases published for %s", repo)
                        return None
                    response.raise_for_status()
                    data = orjson.loads(await response.read())
                return parse_release(data)

            except (aiohttp.ClientError, TimeoutError) as e:
                logger.warning(
                    "Attempt %s/%s failed for %s: %s",
                    attempt,
                    self.retry_attempts,
                    repo,
                    e,
                )
                if attempt == self.retry_attempts:
                    logger.warning("Giving up on latest release of %s", repo)
                    return None
                await asyncio.sleep(self.backoff_seconds * 2 ** (attempt - 1))
            except ValueError as e:
                logger.warning("Invalid release data for %s: %s", repo, e)
                return None

        return None
