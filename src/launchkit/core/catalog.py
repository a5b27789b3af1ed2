"""Remote app catalog with offline fallbacks and release syncing.

The catalog is the only source of truth for "is a newer version
available": an installed app has an update whenever its recorded version
string differs from the catalog's.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import aiohttp
import orjson

from launchkit.config.cache import CatalogCache, load_bundled_catalog
from launchkit.config.schemas import (
    SchemaValidationError,
    validate_catalog,
    validate_catalog_app,
)
from launchkit.domain.models import CatalogEntry, UpdateInfo
from launchkit.exceptions import AppNotFoundError, CatalogUnavailable
from launchkit.logger import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from launchkit.config.ledger import InstallationLedger
    from launchkit.core.github import ReleaseResolver

logger = get_logger(__name__)


def parse_catalog(document: dict[str, Any]) -> list[CatalogEntry]:
    """Parse a ``{"apps": [...]}`` document.

    Malformed entries are skipped with a warning and later duplicates of
    an id are ignored.

    Raises:
        CatalogUnavailable: If the document is not a catalog at all

    """
    try:
        validate_catalog(document)
    except SchemaValidationError as e:
        raise CatalogUnavailable(str(e)) from e

    entries: list[CatalogEntry] = []
    seen: set[str] = set()
    for item in document["apps"]:
        try:
            validate_catalog_app(item)
            entry = CatalogEntry.from_dict(item)
        except (SchemaValidationError, ValueError) as e:
            logger.warning("Skipping invalid catalog entry: %s", e)
            continue
        if entry.id in seen:
            logger.warning("Skipping duplicate catalog id: %s", entry.id)
            continue
        seen.add(entry.id)
        entries.append(entry)
    return entries


class CatalogStore:
    """Holds the current catalog and keeps it in sync with releases."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        catalog_url: str,
        resolver: ReleaseResolver | None = None,
        cache: CatalogCache | None = None,
        bundled_catalog: Path | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            http_session: Shared aiohttp session
            catalog_url: Remote catalog URL
            resolver: Latest-release lookup for entries with a repo
            cache: Last-known-good catalog storage
            bundled_catalog: Override for the packaged default catalog

        """
        self.http_session = http_session
        self.catalog_url = catalog_url
        self.resolver = resolver
        self.cache = cache or CatalogCache()
        self.bundled_catalog = bundled_catalog
        self._entries: dict[str, CatalogEntry] = {}
        self.source: str | None = None

    @property
    def entries(self) -> list[CatalogEntry]:
        """Catalog entries in catalog order."""
        return list(self._entries.values())

    def get(self, app_id: str) -> CatalogEntry | None:
        """Return the entry for ``app_id`` or None."""
        return self._entries.get(app_id)

    def require(self, app_id: str) -> CatalogEntry:
        """Return the entry for ``app_id``.

        Raises:
            AppNotFoundError: If the catalog has no such id

        """
        entry = self._entries.get(app_id)
        if entry is None:
            msg = "not in the catalog"
            raise AppNotFoundError(msg, app_id)
        return entry

    def load_document(self, document: dict[str, Any]) -> list[CatalogEntry]:
        """Replace the entries with those parsed from ``document``."""
        self._entries = {entry.id: entry for entry in parse_catalog(document)}
        return self.entries

    async def refresh(self) -> list[CatalogEntry]:
        """Fetch the remote catalog, falling back when it is unavailable.

        Order: remote catalog (saved as last-known-good), then the cached
        copy, then the catalog bundled with the package.
        """
        try:
            document = await self._fetch_document()
            entries = self.load_document(document)
        except CatalogUnavailable as e:
            logger.warning("Using offline catalog: %s", e)
            return self._load_fallback()

        self.cache.save(document)
        self.source = "remote"
        logger.debug("Loaded %d catalog entries from remote", len(entries))
        return entries

    def _load_fallback(self) -> list[CatalogEntry]:
        cached = self.cache.load()
        if cached is not None:
            try:
                entries = self.load_document(cached)
            except CatalogUnavailable as e:
                logger.warning("Cached catalog unusable: %s", e)
            else:
                self.source = "cache"
                return entries

        bundled = load_bundled_catalog(self.bundled_catalog)
        entries = self.load_document(bundled)
        self.source = "bundled"
        return entries

    async def _fetch_document(self) -> dict[str, Any]:
        try:
            async with self.http_session.get(self.catalog_url) as response:
                response.raise_for_status()
                document = orjson.loads(await response.read())
        except (aiohttp.ClientError, TimeoutError) as e:
            msg = str(e) or type(e).__name__
            raise CatalogUnavailable(msg, self.catalog_url) from e
        except orjson.JSONDecodeError as e:
            msg = f"invalid JSON: {e}"
            raise CatalogUnavailable(msg, self.catalog_url) from e

        if not isinstance(document, dict):
            msg = "expected a JSON object"
            raise CatalogUnavailable(msg, self.catalog_url)
        return document

    async def sync_versions(self) -> int:
        """Apply the latest release of every entry that names a repo.

        Lookups run concurrently; a failed lookup leaves its entry as is.

        Returns:
            Number of entries whose version or download URL changed

        """
        if self.resolver is None:
            return 0

        targets = [entry for entry in self.entries if entry.repo is not None]
        results = await asyncio.gather(
            *(self._resolve(entry) for entry in targets),
            return_exceptions=True,
        )

        changed = 0
        for entry, result in zip(targets, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(
                    "Version sync failed for %s: %s", entry.id, result
                )
                continue
            if result is not None and result != entry:
                self._entries[entry.id] = result
                changed += 1
                logger.debug("Synced %s to %s", entry.id, result.version)
        return changed

    async def _resolve(self, entry: CatalogEntry) -> CatalogEntry | None:
        if self.resolver is None or entry.repo is None:
            return None
        release = await self.resolver.resolve_latest_release(entry.repo)
        if release is None:
            return None
        return entry.with_release(release)

    async def resolve_entry(self, app_id: str) -> CatalogEntry:
        """Return the entry, resolving its repo when it lacks a URL.

        Raises:
            AppNotFoundError: If the catalog has no such id

        """
        entry = self.require(app_id)
        if entry.download_url:
            return entry

        resolved = await self._resolve(entry)
        if resolved is None:
            return entry
        self._entries[app_id] = resolved
        return resolved

    def available_updates(
        self, ledger: InstallationLedger
    ) -> list[UpdateInfo]:
        """List installed apps whose catalog version differs."""
        updates: list[UpdateInfo] = []
        for record in ledger.all():
            entry = self._entries.get(record.id)
            if entry is None or not entry.version:
                continue
            if entry.version != record.version:
                updates.append(
                    UpdateInfo(
                        app_id=record.id,
                        name=entry.name,
                        current_version=record.version,
                        new_version=entry.version,
                    )
                )
        return updates
