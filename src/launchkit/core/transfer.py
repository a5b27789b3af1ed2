"""Streaming download of one artifact per app with progress and cancellation.

``TransferController.start_transfer`` never raises for network, HTTP or
disk problems: it settles into a tagged ``Outcome``. Bytes are written to
a ``.part`` staging file that replaces the final name only on success, so
an app installed under that name survives a failed or cancelled update.
The only exception that crosses its boundary is the ``CancelledError``
of a caller whose own task was cancelled.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urljoin, urlparse

import aiofiles
import aiohttp

from launchkit.constants import (
    CHUNK_SIZE,
    DEFAULT_ARTIFACT_EXTENSION,
    HTTP_ERROR_THRESHOLD,
    MAX_REDIRECTS,
    MIN_FILENAME_LENGTH,
    PARTIAL_SUFFIX,
    REDIRECT_STATUSES,
)
from launchkit.core.sessions import TransferSession
from launchkit.domain.events import (
    Outcome,
    Phase,
    ProgressEvent,
    compute_percent,
)
from launchkit.exceptions import LauncherError, NetworkError
from launchkit.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


def derive_filename(url: str, app_id: str) -> str:
    """Return the on-disk name for an artifact URL.

    The last path segment is used, percent-decoded and without the query.
    Names shorter than three characters fall back to
    ``<app_id>-setup<ext>`` with the extension taken from the URL
    (``.exe`` when there is none).

    Example:
        >>> derive_filename("https://x.test/dl/Tool%20Setup.zip?t=1", "tool")
        'Tool Setup.zip'
        >>> derive_filename("https://x.test/d/", "tool")
        'tool-setup.exe'

    """
    segment = urlparse(url).path.rsplit("/", 1)[-1]
    name = unquote(segment).replace("/", "_").replace("\\", "_")
    if len(name) >= MIN_FILENAME_LENGTH and name not in {".", ".."}:
        return name

    extension = PurePosixPath(name).suffix or DEFAULT_ARTIFACT_EXTENSION
    return f"{app_id}-setup{extension}"


def _describe(error: BaseException) -> str:
    if isinstance(error, LauncherError):
        return error.message
    if isinstance(error, TimeoutError):
        return str(error) or "Connection timed out"
    return str(error) or type(error).__name__


def staging_path(target: Path) -> Path:
    """Return the file a download of ``target`` is streamed into."""
    return target.with_name(target.name + PARTIAL_SUFFIX)


def _remove_partial(staging: Path) -> None:
    if staging.exists():
        logger.debug("Removing partial download: %s", staging)
        with contextlib.suppress(OSError):
            staging.unlink()


class TransferController:
    """Streams artifacts to disk, one transfer per TransferSession."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        timeout: aiohttp.ClientTimeout | None = None,
        max_redirects: int = MAX_REDIRECTS,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        """Initialize the controller.

        Args:
            http_session: Shared aiohttp session
            timeout: Per-request timeout (session default if None)
            max_redirects: Redirects followed before giving up
            chunk_size: Bytes read per network chunk

        """
        self.http_session = http_session
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.chunk_size = chunk_size

    async def start_transfer(
        self,
        session: TransferSession,
        url: str,
        destination_dir: Path,
        on_progress: ProgressCallback | None = None,
    ) -> Outcome:
        """Download ``url`` into ``destination_dir``.

        The streaming task is exposed as ``session.handle`` so that
        ``session.cancel()`` can abort it mid-chunk.

        Args:
            session: Session of the requesting app
            url: Artifact URL
            destination_dir: Directory to write into (created if missing)
            on_progress: Called once per received chunk

        Returns:
            ``success(path, bytes_written)``, ``cancelled`` or
            ``failed(message)``

        """
        target = destination_dir / derive_filename(url, session.app_id)
        staging = staging_path(target)
        logger.debug("Transfer %s: %s -> %s", session.app_id, url, target)

        stream = asyncio.create_task(
            self._stream(session, url, staging, on_progress)
        )
        session.handle = stream
        if session.cancelled:
            stream.cancel()

        try:
            bytes_written = await stream
        except asyncio.CancelledError:
            _remove_partial(staging)
            current = asyncio.current_task()
            if session.cancelled and (
                current is None or not current.cancelling()
            ):
                logger.info("Download cancelled: %s", session.app_id)
                return Outcome.cancelled()
            stream.cancel()
            raise
        except (aiohttp.ClientError, TimeoutError, OSError, NetworkError) as e:
            _remove_partial(staging)
            return self._failed(session, _describe(e))
        finally:
            session.handle = None

        if session.cancelled:
            _remove_partial(staging)
            logger.info("Download cancelled: %s", session.app_id)
            return Outcome.cancelled()

        try:
            os.replace(staging, target)
        except OSError as e:
            _remove_partial(staging)
            return self._failed(session, f"Could not replace {target}: {e}")

        logger.debug(
            "Transfer %s complete: %s bytes", session.app_id, bytes_written
        )
        return Outcome.success(target, bytes_written)

    def _failed(self, session: TransferSession, message: str) -> Outcome:
        logger.warning("Download failed for %s: %s", session.app_id, message)
        return Outcome.failed(message)

    async def _stream(
        self,
        session: TransferSession,
        url: str,
        staging: Path,
        on_progress: ProgressCallback | None,
    ) -> int:
        """Follow redirects and stream the final response to ``staging``."""
        staging.parent.mkdir(parents=True, exist_ok=True)

        current_url = url
        for _ in range(self.max_redirects + 1):
            async with self.http_session.get(
                current_url, allow_redirects=False, timeout=self.timeout
            ) as response:
                if response.status in REDIRECT_STATUSES:
                    location = response.headers.get("Location")
                    if not location:
                        msg = (
                            f"HTTP {response.status} redirect without Location"
                        )
                        raise NetworkError(msg, session.app_id)
                    current_url = urljoin(current_url, location)
                    logger.debug(
                        "Redirect %s for %s -> %s",
                        response.status,
                        session.app_id,
                        current_url,
                    )
                    continue

                if response.status >= HTTP_ERROR_THRESHOLD:
                    reason = response.reason or ""
                    msg = f"HTTP {response.status} {reason}".strip()
                    raise NetworkError(msg, session.app_id)

                return await self._write_body(
                    session, response, staging, on_progress
                )

        msg = f"Too many redirects (more than {self.max_redirects})"
        raise NetworkError(msg, session.app_id)

    async def _write_body(
        self,
        session: TransferSession,
        response: aiohttp.ClientResponse,
        staging: Path,
        on_progress: ProgressCallback | None,
    ) -> int:
        total = int(response.headers.get("Content-Length", 0) or 0)
        downloaded = 0
        started = time.monotonic()
        last_chunk_at = started

        async with aiofiles.open(staging, mode="wb") as f:
            async for chunk in response.content.iter_chunked(self.chunk_size):
                if session.cancelled:
                    raise asyncio.CancelledError
                if not chunk:
                    continue

                await f.write(chunk)
                downloaded += len(chunk)

                now = time.monotonic()
                interval = now - last_chunk_at
                last_chunk_at = now
                if on_progress is not None:
                    on_progress(
                        ProgressEvent(
                            app_id=session.app_id,
                            phase=Phase.DOWNLOADING,
                            percent=compute_percent(downloaded, total),
                            bytes_downloaded=downloaded,
                            bytes_total=total,
                            elapsed_seconds=now - started,
                            speed_bytes_per_sec=(
                                len(chunk) / interval if interval > 0 else 0.0
                            ),
                        )
                    )

        return downloaded
