"""Turn a downloaded artifact into an installed, launchable app.

Archives are extracted by a child Python process (``-m zipfile`` or
``-m tarfile``) so the event loop keeps serving progress and cancellation;
a timer drives a synthetic percent while the tool runs. Direct executables
are used in place.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import stat
import sys
from collections.abc import Callable
from enum import Enum, auto
from pathlib import Path
from typing import NamedTuple

from launchkit.constants import (
    ARCHIVE_TAR_SUFFIXES,
    ARCHIVE_ZIP_SUFFIXES,
    DISCOVERY_MAX_DEPTH,
    EXECUTABLE_DECOY_MARKERS,
    EXECUTABLE_EXTENSION,
    EXECUTABLE_SUFFIXES,
    EXTRACTION_PROGRESS_CAP,
    EXTRACTION_PROGRESS_FACTOR,
    EXTRACTION_PROGRESS_TARGET,
    EXTRACTION_TICK_SECONDS,
)
from launchkit.core.sessions import TransferSession
from launchkit.domain.events import Outcome, Phase, ProgressEvent
from launchkit.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]
CancelPredicate = Callable[[], bool]


class ArtifactKind(Enum):
    """What the installer does with a downloaded file."""

    ZIP_ARCHIVE = auto()
    TAR_ARCHIVE = auto()
    EXECUTABLE = auto()
    OTHER = auto()

    @property
    def is_archive(self) -> bool:
        """Whether the artifact needs extraction."""
        return self in (ArtifactKind.ZIP_ARCHIVE, ArtifactKind.TAR_ARCHIVE)


class _DirEntry(NamedTuple):
    name: str
    is_file: bool
    is_dir: bool


def classify_artifact(path: Path) -> ArtifactKind:
    """Classify an artifact by its (case-insensitive) file name."""
    name = path.name.lower()
    if name.endswith(ARCHIVE_ZIP_SUFFIXES):
        return ArtifactKind.ZIP_ARCHIVE
    if name.endswith(ARCHIVE_TAR_SUFFIXES):
        return ArtifactKind.TAR_ARCHIVE
    if name.endswith(EXECUTABLE_SUFFIXES):
        return ArtifactKind.EXECUTABLE
    return ArtifactKind.OTHER


def extraction_command(
    kind: ArtifactKind, archive: Path, destination: Path
) -> list[str]:
    """Return the argv that extracts ``archive`` into ``destination``."""
    module = "zipfile" if kind is ArtifactKind.ZIP_ARCHIVE else "tarfile"
    return [sys.executable, "-m", module, "-e", str(archive), str(destination)]


def next_extraction_progress(current: float) -> float:
    """Advance the synthetic extraction percent by one tick.

    Approaches 95 asymptotically with a minimum step of 1 and never
    passes 94, so only real completion reports the final value.
    """
    step = max(
        1.0,
        (EXTRACTION_PROGRESS_TARGET - current) * EXTRACTION_PROGRESS_FACTOR,
    )
    return min(current + step, EXTRACTION_PROGRESS_CAP)


def is_executable_candidate(name: str) -> bool:
    """Whether ``name`` looks like an app's main executable."""
    lowered = name.lower()
    if not lowered.endswith(EXECUTABLE_EXTENSION):
        return False
    return not any(marker in lowered for marker in EXECUTABLE_DECOY_MARKERS)


def _list_dir(directory: Path) -> list[_DirEntry]:
    with os.scandir(directory) as it:
        entries = [
            _DirEntry(
                entry.name,
                entry.is_file(follow_symlinks=False),
                entry.is_dir(follow_symlinks=False),
            )
            for entry in it
        ]
    entries.sort(key=lambda entry: entry.name)
    return entries


async def find_primary_executable(
    root: Path,
    is_cancelled: CancelPredicate | None = None,
    max_depth: int = DISCOVERY_MAX_DEPTH,
) -> Path | None:
    """Locate the launchable executable under ``root``.

    Depth-first walk with an explicit stack; ``root`` is depth 0 and
    directories deeper than ``max_depth`` are not listed. Entries are
    visited in lexical order. The first candidate in a directory wins;
    only when a directory has none are its subdirectories visited.
    Between entries the walk yields to the event loop and consults
    ``is_cancelled``.

    Returns:
        Path of the executable, or None when none exists or the walk was
        cancelled

    """
    stack: list[tuple[Path, int]] = [(root, 0)]
    while stack:
        directory, depth = stack.pop()
        try:
            entries = await asyncio.to_thread(_list_dir, directory)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", directory, e)
            continue

        subdirectories: list[Path] = []
        for entry in entries:
            if is_cancelled is not None and is_cancelled():
                return None
            await asyncio.sleep(0)
            if entry.is_file and is_executable_candidate(entry.name):
                return directory / entry.name
            if entry.is_dir:
                subdirectories.append(directory / entry.name)

        if depth < max_depth:
            stack.extend((sub, depth + 1) for sub in reversed(subdirectories))

    return None


def _remove_artifact(artifact: Path) -> None:
    try:
        artifact.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove %s: %s", artifact, e)


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class ArchiveInstaller:
    """Extracts or places artifacts and discovers the entry point."""

    def __init__(
        self,
        tick_seconds: float = EXTRACTION_TICK_SECONDS,
        max_depth: int = DISCOVERY_MAX_DEPTH,
    ) -> None:
        """Initialize the installer.

        Args:
            tick_seconds: Interval of the synthetic extraction progress
            max_depth: Executable discovery depth limit

        """
        self.tick_seconds = tick_seconds
        self.max_depth = max_depth

    async def install(
        self,
        artifact: Path,
        install_root: Path,
        session: TransferSession,
        on_progress: ProgressCallback | None = None,
    ) -> Outcome:
        """Install ``artifact`` under ``install_root``.

        Returns:
            ``success(final_path)``, ``cancelled`` or ``failed(message)``

        """
        emit = on_progress or (lambda _event: None)

        if session.cancelled:
            _remove_artifact(artifact)
            return Outcome.cancelled()

        kind = classify_artifact(artifact)
        if kind.is_archive:
            return await self._install_archive(
                kind, artifact, install_root, session, emit
            )

        if kind is ArtifactKind.EXECUTABLE and os.name == "posix":
            try:
                _make_executable(artifact)
            except OSError as e:
                return Outcome.failed(
                    f"Could not mark {artifact.name} executable: {e}"
                )

        emit(ProgressEvent(session.app_id, Phase.INSTALLING, 100))
        logger.debug("Using %s directly for %s", artifact, session.app_id)
        return Outcome.success(artifact)

    async def _install_archive(
        self,
        kind: ArtifactKind,
        archive: Path,
        install_root: Path,
        session: TransferSession,
        emit: ProgressCallback,
    ) -> Outcome:
        app_id = session.app_id
        emit(ProgressEvent(app_id, Phase.EXTRACTING, 0))

        try:
            install_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            _remove_artifact(archive)
            return Outcome.failed(f"Could not create {install_root}: {e}")

        logger.info("Extracting %s", archive.name)
        animator = asyncio.create_task(self._animate(app_id, emit))
        try:
            returncode, stderr = await self._extract(
                session, kind, archive, install_root
            )
        except OSError as e:
            _remove_artifact(archive)
            return Outcome.failed(f"Could not start extraction: {e}")
        finally:
            animator.cancel()

        if session.cancelled:
            _remove_artifact(archive)
            logger.info("Extraction cancelled: %s", app_id)
            return Outcome.cancelled()

        if returncode != 0:
            _remove_artifact(archive)
            message = (
                stderr or f"Extraction tool exited with code {returncode}"
            )
            logger.warning("Extraction failed for %s: %s", app_id, message)
            return Outcome.failed(message)

        _remove_artifact(archive)

        executable = await find_primary_executable(
            install_root,
            is_cancelled=lambda: session.cancelled,
            max_depth=self.max_depth,
        )
        if session.cancelled:
            logger.info("Install cancelled after extraction: %s", app_id)
            return Outcome.cancelled()

        if executable is None:
            logger.warning(
                "No executable found for %s, recording %s",
                app_id,
                install_root,
            )
            final_path = install_root
        else:
            final_path = executable

        emit(ProgressEvent(app_id, Phase.INSTALLING, 100))
        return Outcome.success(final_path)

    async def _extract(
        self,
        session: TransferSession,
        kind: ArtifactKind,
        archive: Path,
        destination: Path,
    ) -> tuple[int, str]:
        process = await asyncio.create_subprocess_exec(
            *extraction_command(kind, archive, destination),
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        session.extraction_process = process
        if session.cancelled:
            with contextlib.suppress(ProcessLookupError):
                process.terminate()

        try:
            _, stderr = await process.communicate()
        except asyncio.CancelledError:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            raise
        finally:
            session.extraction_process = None

        returncode = (
            process.returncode if process.returncode is not None else -1
        )
        return returncode, stderr.decode(errors="replace").strip()

    async def _animate(self, app_id: str, emit: ProgressCallback) -> None:
        percent = 0.0
        while True:
            await asyncio.sleep(self.tick_seconds)
            percent = next_extraction_progress(percent)
            emit(ProgressEvent(app_id, Phase.EXTRACTING, round(percent)))
