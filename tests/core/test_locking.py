"""Tests for LockManager: single-instance process locking."""

from pathlib import Path
from unittest.mock import patch

import pytest

from launchkit.core.locking import LockManager
from launchkit.exceptions import LockError


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    """Provide a temporary lock file path."""
    return tmp_path / "lock" / "launchkit.lock"


@pytest.mark.asyncio
async def test_acquires_and_creates_parent(lock_path: Path) -> None:
    """The lock file and its directory are created on entry."""
    async with LockManager(lock_path) as lock_mgr:
        assert lock_mgr.locked
        assert lock_path.exists()


@pytest.mark.asyncio
async def test_releases_on_exit(lock_path: Path) -> None:
    """The lock is released when the block exits."""
    lock_mgr = LockManager(lock_path)
    async with lock_mgr:
        pass

    assert not lock_mgr.locked
    async with LockManager(lock_path) as again:
        assert again.locked


@pytest.mark.asyncio
async def test_releases_on_exception(lock_path: Path) -> None:
    """Errors inside the block still release the lock."""
    lock_mgr = LockManager(lock_path)

    with pytest.raises(ValueError, match="boom"):
        async with lock_mgr:
            raise ValueError("boom")

    assert not lock_mgr.locked


@pytest.mark.asyncio
async def test_second_instance_fails(lock_path: Path) -> None:
    """A held lock makes the second manager fail fast."""
    async with LockManager(lock_path):
        with pytest.raises(LockError) as exc_info:
            async with LockManager(lock_path):
                pass

    assert "already running" in str(exc_info.value)
    assert exc_info.value.target == str(lock_path)


@pytest.mark.asyncio
async def test_unexpected_os_error(lock_path: Path) -> None:
    """Other OS errors are wrapped with their cause."""
    error = OSError(5, "I/O error")
    with patch("launchkit.core.locking._lock_fd", side_effect=error):
        with pytest.raises(LockError, match="Failed to acquire lock") as info:
            async with LockManager(lock_path):
                pass

    assert info.value.cause is error
