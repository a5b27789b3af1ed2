"""Lifecycle events and outcomes exchanged between engine and UI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum, auto
from pathlib import Path


class Phase(StrEnum):
    """Phase reported with a progress event."""

    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    INSTALLING = "installing"


class AppState(Enum):
    """Per-app state of the orchestration state machine.

    ``COMPLETE``, ``CANCELLED`` and ``FAILED`` are terminal; ``UNINSTALLING``
    is only entered for an installed app without an active session.
    """

    IDLE = auto()
    DOWNLOADING = auto()
    EXTRACTING = auto()
    PLACING = auto()
    COMPLETE = auto()
    CANCELLED = auto()
    FAILED = auto()
    UNINSTALLING = auto()


class OutcomeStatus(Enum):
    """How a transfer or install step settled."""

    SUCCESS = auto()
    CANCELLED = auto()
    FAILED = auto()


@dataclass(slots=True, frozen=True)
class Outcome:
    """Tagged result of a TransferController or ArchiveInstaller step.

    Attributes:
        status: Success, cancelled or failed
        path: Artifact or final path on success
        bytes_written: Bytes streamed to disk (transfers only)
        error: Failure message, verbatim from the underlying error

    """

    status: OutcomeStatus
    path: Path | None = None
    bytes_written: int = 0
    error: str | None = None

    @classmethod
    def success(cls, path: Path, bytes_written: int = 0) -> Outcome:
        """Build a success outcome."""
        return cls(
            OutcomeStatus.SUCCESS, path=path, bytes_written=bytes_written
        )

    @classmethod
    def cancelled(cls) -> Outcome:
        """Build a cancelled outcome."""
        return cls(OutcomeStatus.CANCELLED)

    @classmethod
    def failed(cls, error: str) -> Outcome:
        """Build a failed outcome."""
        return cls(OutcomeStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        """Whether the step succeeded."""
        return self.status is OutcomeStatus.SUCCESS


def compute_percent(done: int, total: int) -> int:
    """Return the percentage rounded half up, or 0 for an unknown total.

    Halves round up (2.5% reports 3), not to the nearest even integer.
    """
    if total <= 0:
        return 0
    return min(100, (done * 200 + total) // (2 * total))


@dataclass(slots=True, frozen=True)
class ProgressEvent:
    """Progress of one app's download or install."""

    app_id: str
    phase: Phase
    percent: int
    bytes_downloaded: int = 0
    bytes_total: int = 0
    elapsed_seconds: float = 0.0
    speed_bytes_per_sec: float = 0.0


@dataclass(slots=True, frozen=True)
class CompleteEvent:
    """Install, update or repair finished; ``final_path`` is launchable."""

    app_id: str
    final_path: str


@dataclass(slots=True, frozen=True)
class ErrorEvent:
    """An operation failed; ``message`` is shown to the user."""

    app_id: str
    message: str


@dataclass(slots=True, frozen=True)
class CancelledEvent:
    """An operation was cancelled by the user."""

    app_id: str


@dataclass(slots=True, frozen=True)
class UninstalledEvent:
    """An app was removed from disk and from the ledger."""

    app_id: str


LauncherEvent = (
    ProgressEvent
    | CompleteEvent
    | ErrorEvent
    | CancelledEvent
    | UninstalledEvent
)

TERMINAL_EVENT_TYPES: tuple[type, ...] = (
    CompleteEvent,
    ErrorEvent,
    CancelledEvent,
    UninstalledEvent,
)
