"""Exception classes for launchkit operations."""


class LauncherError(Exception):
    """Base exception for launchkit operations."""

    error_prefix: str = "Operation failed"

    def __init__(self, message: str, target: str | None = None) -> None:
        """Initialize error with message and optional target.

        Args:
            message: Error message describing the failure.
            target: Optional app id (or path) that the failure concerns.

        """
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.target:
            return f"{self.error_prefix} for '{self.target}': {self.message}"
        return f"{self.error_prefix}: {self.message}"


class NetworkError(LauncherError):
    """Raised when a transfer fails to start or is interrupted."""

    error_prefix = "Download failed"


class ExtractionError(LauncherError):
    """Raised when an archive is corrupt or the extraction tool fails."""

    error_prefix = "Extraction failed"


class FilesystemError(LauncherError):
    """Raised when a directory cannot be created or removed."""

    error_prefix = "Filesystem operation failed"


class UninstallError(FilesystemError):
    """Raised when an install directory survives every removal attempt."""

    error_prefix = "Uninstall failed"


class CatalogUnavailable(LauncherError):
    """Raised when the remote catalog cannot be fetched or parsed."""

    error_prefix = "Catalog unavailable"


class OperationInProgressError(LauncherError):
    """Raised when an app id already has an active operation."""

    error_prefix = "Already in progress"


class AppNotFoundError(LauncherError):
    """Raised when an app id is not present in the catalog."""

    error_prefix = "App not found"


class NotInstalledError(LauncherError):
    """Raised when an operation needs an installed app."""

    error_prefix = "Not installed"


class ValidationError(LauncherError):
    """Raised when request validation fails."""

    error_prefix = "Validation failed"


class LaunchError(LauncherError):
    """Raised when an installed app cannot be opened."""

    error_prefix = "Launch failed"


class LockError(LauncherError):
    """Raised when the single-instance lock cannot be acquired."""

    error_prefix = "Lock error"

    def __init__(
        self,
        message: str,
        target: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize lock error.

        Args:
            message: Error message describing the failure.
            target: Optional lock file path.
            cause: Underlying OS error, if any.

        """
        super().__init__(message, target)
        self.cause = cause
