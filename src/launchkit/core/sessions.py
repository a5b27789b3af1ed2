"""Per-app transfer sessions and the table that owns them."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field

from launchkit.domain.events import AppState
from launchkit.exceptions import OperationInProgressError


@dataclass(slots=True, eq=False)
class TransferSession:
    """Ephemeral state of one accepted request.

    Attributes:
        app_id: App the session belongs to
        state: Current position in the state machine
        handle: Task currently streaming bytes, owned by the transfer
        cancelled: Set once the user asks to cancel
        extraction_process: Extraction subprocess while it runs

    """

    app_id: str
    state: AppState = AppState.IDLE
    handle: asyncio.Task[object] | None = None
    cancelled: bool = False
    extraction_process: asyncio.subprocess.Process | None = field(
        default=None, repr=False
    )

    def cancel(self) -> None:
        """Request cooperative cancellation.

        Sets the flag, aborts the streaming task and terminates a running
        extraction. Partial files are cleaned up by whoever owns them.
        """
        self.cancelled = True
        if self.handle is not None and not self.handle.done():
            self.handle.cancel()
        process = self.extraction_process
        if process is not None and process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.terminate()


class SessionTable:
    """At most one TransferSession per app id."""

    def __init__(self) -> None:
        """Initialize an empty table."""
        self._sessions: dict[str, TransferSession] = {}

    def open(self, app_id: str) -> TransferSession:
        """Create the session for ``app_id``.

        Raises:
            OperationInProgressError: If ``app_id`` already has one

        """
        if app_id in self._sessions:
            msg = "an operation is already running"
            raise OperationInProgressError(msg, app_id)
        session = TransferSession(app_id=app_id)
        self._sessions[app_id] = session
        return session

    def get(self, app_id: str) -> TransferSession | None:
        """Return the active session for ``app_id`` or None."""
        return self._sessions.get(app_id)

    def close(self, session: TransferSession) -> None:
        """Discard ``session`` if it is still the registered one."""
        if self._sessions.get(session.app_id) is session:
            del self._sessions[session.app_id]

    def active_ids(self) -> list[str]:
        """Return app ids with an active session."""
        return list(self._sessions)

    def __contains__(self, app_id: object) -> bool:
        """Whether ``app_id`` has an active session."""
        return app_id in self._sessions

    def __len__(self) -> int:
        """Number of active sessions."""
        return len(self._sessions)
