"""Last-known-good copy of the remote catalog."""

import logging
from pathlib import Path
from typing import Any

import orjson

from launchkit.config.paths import Paths
from launchkit.config.storage import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class CatalogCache:
    """Stores the raw catalog document after every successful fetch."""

    def __init__(self, cache_file: Path | None = None) -> None:
        """Initialize the cache.

        Args:
            cache_file: Cache path (defaults to Paths.catalog_cache_file())

        """
        self.cache_file = cache_file or Paths.catalog_cache_file()

    def load(self) -> dict[str, Any] | None:
        """Return the cached document, or None when absent or unreadable."""
        if not self.cache_file.exists():
            return None

        try:
            data = read_json(self.cache_file)
        except (orjson.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring corrupted catalog cache: %s", e)
            return None

        if not isinstance(data, dict):
            logger.warning("Ignoring catalog cache: expected a JSON object")
            return None
        return data

    def save(self, document: dict[str, Any]) -> None:
        """Replace the cached document; write errors are logged only."""
        try:
            write_json_atomic(self.cache_file, document)
        except OSError as e:
            logger.warning("Failed to save catalog cache: %s", e)


def load_bundled_catalog(path: Path | None = None) -> dict[str, Any]:
    """Load the catalog shipped inside the package.

    Raises:
        FileNotFoundError: If the bundled catalog is missing (packaging
            issue)
        ValueError: If the bundled catalog is invalid

    """
    catalog_file = path or Paths.BUNDLED_CATALOG_FILE
    if not catalog_file.exists():
        msg = (
            f"Bundled catalog not found: {catalog_file}\n"
            "This indicates a packaging or installation issue."
        )
        raise FileNotFoundError(msg)

    try:
        data = read_json(catalog_file)
    except orjson.JSONDecodeError as e:
        msg = f"Invalid JSON in bundled catalog {catalog_file}: {e}"
        raise ValueError(msg) from e

    if not isinstance(data, dict):
        msg = f"Bundled catalog {catalog_file} must be a JSON object"
        raise ValueError(msg)
    return data
