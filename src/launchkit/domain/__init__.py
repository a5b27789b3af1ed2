"""Domain types shared by the engine, config and CLI layers."""

from launchkit.domain.events import (
    TERMINAL_EVENT_TYPES,
    AppState,
    CancelledEvent,
    CompleteEvent,
    ErrorEvent,
    LauncherEvent,
    Outcome,
    OutcomeStatus,
    Phase,
    ProgressEvent,
    UninstalledEvent,
    compute_percent,
)
from launchkit.domain.models import (
    CatalogEntry,
    InstalledAppRecord,
    ReleaseInfo,
    RepoRef,
    UpdateInfo,
)

__all__ = [
    "TERMINAL_EVENT_TYPES",
    "AppState",
    "CancelledEvent",
    "CatalogEntry",
    "CompleteEvent",
    "ErrorEvent",
    "InstalledAppRecord",
    "LauncherEvent",
    "Outcome",
    "OutcomeStatus",
    "Phase",
    "ProgressEvent",
    "ReleaseInfo",
    "RepoRef",
    "UninstalledEvent",
    "UpdateInfo",
    "compute_percent",
]
