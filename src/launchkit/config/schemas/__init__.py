"""JSON Schema validation package for launchkit.

This package provides JSON Schema validation for:
- The remote (and cached/bundled) app catalog
- Individual catalog entries, so one bad entry does not sink the catalog
- The installed-app ledger (installed-apps.json)

Usage:
    from launchkit.config.schemas import (
        SchemaValidationError,
        validate_catalog_app,
    )

    try:
        validate_catalog_app(entry)
    except SchemaValidationError as e:
        logger.warning("Skipping entry: %s", e)
"""

from launchkit.config.schemas.validator import (
    DocumentValidator,
    SchemaValidationError,
    validate_catalog,
    validate_catalog_app,
    validate_ledger,
)

__all__ = [
    "DocumentValidator",
    "SchemaValidationError",
    "validate_catalog",
    "validate_catalog_app",
    "validate_ledger",
]
