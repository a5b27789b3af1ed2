"""Removal of an app's install directory.

Running copies of the app keep files open (and locked on Windows), so
processes whose executable lives under the install directory are stopped
first. Tree removal is retried and finally delegated to the OS.
"""

from __future__ import annotations

import asyncio
import contextlib
import shutil
import sys
from pathlib import Path

import psutil

from launchkit.constants import (
    PROCESS_TERMINATE_TIMEOUT_SECONDS,
    UNINSTALL_EXTRA_ATTEMPTS,
    UNINSTALL_RETRY_DELAY_SECONDS,
    UNINSTALL_SETTLE_SECONDS,
)
from launchkit.exceptions import UninstallError
from launchkit.logger import get_logger

logger = get_logger(__name__)


def terminate_processes_under(
    install_dir: Path,
    timeout: float = PROCESS_TERMINATE_TIMEOUT_SECONDS,
) -> int:
    """Terminate, then kill, processes whose executable is in ``install_dir``.

    Returns:
        Number of processes that were signalled

    """
    root = install_dir.resolve()
    victims: list[psutil.Process] = []
    for proc in psutil.process_iter(["pid", "name", "exe"]):
        exe = proc.info.get("exe")
        if not exe:
            continue
        try:
            if Path(exe).resolve().is_relative_to(root):
                victims.append(proc)
        except OSError:
            continue

    for proc in victims:
        logger.info(
            "Stopping %s (PID: %s)", proc.info.get("name"), proc.info["pid"]
        )
        with contextlib.suppress(psutil.NoSuchProcess, psutil.AccessDenied):
            proc.terminate()

    _, alive = psutil.wait_procs(victims, timeout=timeout)
    for proc in alive:
        logger.warning("PID %s did not terminate, killing", proc.pid)
        with contextlib.suppress(psutil.NoSuchProcess, psutil.AccessDenied):
            proc.kill()

    return len(victims)


def fallback_remove_command(install_dir: Path) -> list[str]:
    """Return the OS command that force-removes ``install_dir``."""
    if sys.platform == "win32":
        return ["cmd", "/c", "rmdir", "/s", "/q", str(install_dir)]
    return ["rm", "-rf", str(install_dir)]


class UninstallCoordinator:
    """Stops an app's processes and removes its directory."""

    def __init__(
        self,
        settle_seconds: float = UNINSTALL_SETTLE_SECONDS,
        retry_delay: float = UNINSTALL_RETRY_DELAY_SECONDS,
        extra_attempts: int = UNINSTALL_EXTRA_ATTEMPTS,
    ) -> None:
        """Initialize the coordinator.

        Args:
            settle_seconds: Wait after stopping processes
            retry_delay: Wait between removal attempts
            extra_attempts: Removal retries after the first failure

        """
        self.settle_seconds = settle_seconds
        self.retry_delay = retry_delay
        self.extra_attempts = extra_attempts

    async def uninstall(self, app_id: str, install_dir: Path) -> bool:
        """Remove ``install_dir`` and everything in it.

        A directory that is already gone counts as success.

        Returns:
            True once the directory no longer exists

        Raises:
            UninstallError: If the directory survives every attempt

        """
        if not install_dir.exists():
            logger.debug("Nothing to remove for %s: %s", app_id, install_dir)
            return True

        try:
            stopped = await asyncio.to_thread(
                terminate_processes_under, install_dir
            )
        except (psutil.Error, OSError) as e:
            logger.debug("Process scan failed for %s: %s", app_id, e)
            stopped = 0
        if stopped:
            logger.info(
                "Stopped %d running process(es) of %s", stopped, app_id
            )

        await asyncio.sleep(self.settle_seconds)

        last_error: OSError | None = None
        for attempt in range(1, self.extra_attempts + 2):
            try:
                await asyncio.to_thread(shutil.rmtree, install_dir)
            except FileNotFoundError:
                return True
            except OSError as e:
                last_error = e
                logger.warning(
                    "Removal attempt %d for %s failed: %s", attempt, app_id, e
                )
                if attempt <= self.extra_attempts:
                    await asyncio.sleep(self.retry_delay)
                continue
            return True

        await self._remove_with_os_command(app_id, install_dir)
        if not install_dir.exists():
            return True

        msg = f"could not remove {install_dir}"
        if last_error is not None:
            msg = f"{msg}: {last_error}"
        raise UninstallError(msg, app_id)

    async def _remove_with_os_command(
        self, app_id: str, install_dir: Path
    ) -> None:
        command = fallback_remove_command(install_dir)
        logger.info("Falling back to %s for %s", command[0], app_id)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await process.communicate()
        except OSError as e:
            logger.warning("Fallback removal failed for %s: %s", app_id, e)
            return

        if process.returncode != 0:
            logger.warning(
                "Fallback removal for %s exited with %s: %s",
                app_id,
                process.returncode,
                stderr.decode(errors="replace").strip(),
            )
