"""Centralized constants module for launchkit.

Single source of truth for shared constants, grouped by concern and
annotated with typing.Final.

Usage:
    from launchkit.constants import CHUNK_SIZE
"""

from typing import Final

# =============================================================================
# Configuration Constants
# =============================================================================

APP_DIR_NAME: Final[str] = "launchkit"
SETTINGS_FILE_NAME: Final[str] = "settings.json"
LEDGER_FILE_NAME: Final[str] = "installed-apps.json"
CATALOG_CACHE_FILE_NAME: Final[str] = "catalog.json"
LOCK_FILE_NAME: Final[str] = "launchkit.lock"
DEFAULT_DOWNLOAD_DIR_NAME: Final[str] = "Launchkit-Apps"

ENV_CONFIG_DIR: Final[str] = "LAUNCHKIT_CONFIG_DIR"
ENV_LOG_DIR: Final[str] = "LAUNCHKIT_LOG_DIR"
ENV_GITHUB_TOKEN: Final[str] = "GITHUB_TOKEN"

DEFAULT_CATALOG_URL: Final[str] = (
    "https://raw.githubusercontent.com/Smallzoamz/"
    "bonchon-launcher-catalog/main/app-catalog.json"
)
DEFAULT_THEME: Final[str] = "dark"
DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_CONSOLE_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_RETRY_ATTEMPTS: Final[int] = 3
DEFAULT_TIMEOUT_SECONDS: Final[int] = 10

# =============================================================================
# Transfer Constants
# =============================================================================

CHUNK_SIZE: Final[int] = 64 * 1024
MIN_FILENAME_LENGTH: Final[int] = 3
DEFAULT_ARTIFACT_EXTENSION: Final[str] = ".exe"
PARTIAL_SUFFIX: Final[str] = ".part"
MAX_REDIRECTS: Final[int] = 10
REDIRECT_STATUSES: Final[frozenset[int]] = frozenset({301, 302, 303, 307, 308})
HTTP_ERROR_THRESHOLD: Final[int] = 400

# =============================================================================
# Install Constants
# =============================================================================

ARCHIVE_ZIP_SUFFIXES: Final[tuple[str, ...]] = (".zip",)
ARCHIVE_TAR_SUFFIXES: Final[tuple[str, ...]] = (
    ".tar",
    ".tar.gz",
    ".tgz",
    ".tar.bz2",
    ".tbz2",
    ".tar.xz",
    ".txz",
)
EXECUTABLE_SUFFIXES: Final[tuple[str, ...]] = (".exe", ".msi", ".appimage")
EXECUTABLE_EXTENSION: Final[str] = ".exe"
EXECUTABLE_DECOY_MARKERS: Final[tuple[str, ...]] = (
    "uninstall",
    "uninst",
    "update",
    "helper",
    "crash",
)
DISCOVERY_MAX_DEPTH: Final[int] = 5

EXTRACTION_TICK_SECONDS: Final[float] = 0.2
EXTRACTION_PROGRESS_TARGET: Final[float] = 95.0
EXTRACTION_PROGRESS_CAP: Final[float] = 94.0
EXTRACTION_PROGRESS_FACTOR: Final[float] = 0.1

# =============================================================================
# Uninstall Constants
# =============================================================================

UNINSTALL_SETTLE_SECONDS: Final[float] = 1.0
UNINSTALL_RETRY_DELAY_SECONDS: Final[float] = 0.5
UNINSTALL_EXTRA_ATTEMPTS: Final[int] = 2
PROCESS_TERMINATE_TIMEOUT_SECONDS: Final[float] = 3.0

# =============================================================================
# GitHub Constants
# =============================================================================

GITHUB_API_BASE: Final[str] = "https://api.github.com"
HTTP_NOT_FOUND: Final[int] = 404

# =============================================================================
# Logging Constants
# =============================================================================

LOG_FILE_NAME: Final[str] = "launchkit.log"
LOG_ROTATION_THRESHOLD_BYTES: Final[int] = 1024 * 1024  # 1 MB
LOG_BACKUP_COUNT: Final[int] = 3

LOG_CONSOLE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
LOG_CONSOLE_DATE_FORMAT: Final[str] = "%H:%M:%S"
LOG_FILE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(funcName)s:%(lineno)d - %(message)s"
)
LOG_FILE_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

LOG_COLORS: Final[dict[str, str]] = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}

# =============================================================================
# Console Display Constants
# =============================================================================

PROGRESS_RENDER_INTERVAL_SECONDS: Final[float] = 0.25
PROGRESS_BAR_WIDTH: Final[int] = 30
