"""Process-level locking so only one launcher instance mutates state.

Uses ``fcntl.flock`` on POSIX and ``msvcrt.locking`` on Windows, both
non-blocking so a second instance fails fast.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import (
    Path,  # noqa: TC003 - Path used at runtime for file operations
)
from typing import IO, TYPE_CHECKING, Self

from launchkit.exceptions import LockError

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

if TYPE_CHECKING:
    import types


def _lock_fd(fd: int) -> None:
    if sys.platform == "win32":
        msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
    else:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)


class LockManager:
    """Async context manager holding an exclusive lock file.

    Example:
        >>> async with LockManager(Paths.lock_file()):
        ...     await orchestrator.request_install("demo")

    """

    def __init__(self, lock_path: Path) -> None:
        """Initialize LockManager with lock file path.

        Args:
            lock_path: Path to the lock file to be created/used.

        """
        self._lock_path = lock_path
        self._lock_file: IO[str] | None = None

    @property
    def locked(self) -> bool:
        """Whether this manager currently holds the lock."""
        return self._lock_file is not None

    async def __aenter__(self) -> Self:
        """Acquire the lock.

        Raises:
            LockError: If another instance holds the lock, or if file
                operations fail.

        """

        def _acquire_lock() -> None:
            self._lock_path.parent.mkdir(parents=True, exist_ok=True)

            lock_file = None
            try:
                lock_file = self._lock_path.open("a", encoding="utf-8")
                _lock_fd(lock_file.fileno())
                self._lock_file = lock_file
            except (BlockingIOError, PermissionError) as e:
                if lock_file is not None:
                    lock_file.close()
                msg = "Another launchkit instance is already running"
                raise LockError(msg, str(self._lock_path), cause=e) from e
            except OSError as e:
                if lock_file is not None:
                    lock_file.close()
                msg = f"Failed to acquire lock: {e}"
                raise LockError(msg, str(self._lock_path), cause=e) from e

        await asyncio.to_thread(_acquire_lock)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Release the lock; safe when it was never acquired."""
        if self._lock_file is not None:
            await asyncio.to_thread(self._lock_file.close)
            self._lock_file = None
