"""Per-app install/update/repair/uninstall state machine.

Requests are accepted synchronously (validation errors raise immediately)
and run as asyncio tasks. Every accepted request ends in exactly one
terminal event on the event sink, and the ledger only changes when an
install completes or an uninstall removes the app.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from launchkit.config.cache import CatalogCache
from launchkit.config.ledger import InstallationLedger
from launchkit.core.catalog import CatalogStore
from launchkit.core.events import EventSink, NullEventSink
from launchkit.core.github import GitHubReleaseResolver
from launchkit.core.http_session import build_timeout
from launchkit.core.installer import ArchiveInstaller, classify_artifact
from launchkit.core.sessions import SessionTable, TransferSession
from launchkit.core.transfer import TransferController
from launchkit.core.uninstall import UninstallCoordinator
from launchkit.domain.events import (
    AppState,
    CancelledEvent,
    CompleteEvent,
    ErrorEvent,
    LauncherEvent,
    OutcomeStatus,
    ProgressEvent,
    UninstalledEvent,
)
from launchkit.domain.models import (
    CatalogEntry,
    InstalledAppRecord,
    UpdateInfo,
)
from launchkit.exceptions import (
    LauncherError,
    NotInstalledError,
    UninstallError,
    ValidationError,
)
from launchkit.logger import get_logger
from launchkit.utils.datetime_utils import get_current_datetime_local_iso

if TYPE_CHECKING:
    import aiohttp

    from launchkit.config.settings import LauncherSettings

logger = get_logger(__name__)

T = TypeVar("T")


class LauncherOrchestrator:
    """Drives transfers, installs and uninstalls for each app id."""

    def __init__(
        self,
        catalog: CatalogStore,
        ledger: InstallationLedger,
        transfer: TransferController,
        installer: ArchiveInstaller,
        uninstaller: UninstallCoordinator,
        download_root: Path,
        events: EventSink | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            catalog: Catalog of installable apps
            ledger: Installed-app records
            transfer: Download engine
            installer: Extraction and placement engine
            uninstaller: Removal engine
            download_root: Each app installs into ``download_root/<id>``
            events: Receiver of lifecycle events

        """
        self.catalog = catalog
        self.ledger = ledger
        self.transfer = transfer
        self.installer = installer
        self.uninstaller = uninstaller
        self.download_root = download_root
        self.events = events or NullEventSink()
        self.sessions = SessionTable()
        self._last_state: dict[str, AppState] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    @classmethod
    def create_default(
        cls,
        http_session: aiohttp.ClientSession,
        settings: LauncherSettings,
        events: EventSink | None = None,
        ledger: InstallationLedger | None = None,
    ) -> LauncherOrchestrator:
        """Wire the default engine from settings.

        Args:
            http_session: Shared aiohttp session
            settings: Loaded launcher settings
            events: Receiver of lifecycle events
            ledger: Installed-app records (default location if None)

        Returns:
            Ready orchestrator (call ``catalog.refresh()`` before use)

        """
        resolver = GitHubReleaseResolver.create_default(
            http_session, settings.network
        )
        return cls(
            catalog=CatalogStore(
                http_session,
                settings.catalog_url,
                resolver=resolver,
                cache=CatalogCache(),
            ),
            ledger=ledger or InstallationLedger(),
            transfer=TransferController(
                http_session,
                timeout=build_timeout(settings.network.timeout_seconds),
            ),
            installer=ArchiveInstaller(),
            uninstaller=UninstallCoordinator(),
            download_root=settings.download_root,
            events=events,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def state(self, app_id: str) -> AppState:
        """Return the current (or last settled) state of ``app_id``."""
        session = self.sessions.get(app_id)
        if session is not None:
            return session.state
        return self._last_state.get(app_id, AppState.IDLE)

    def active_app_ids(self) -> list[str]:
        """Return app ids with an operation in flight."""
        return self.sessions.active_ids()

    def available_updates(self) -> list[UpdateInfo]:
        """List installed apps whose catalog version differs."""
        return self.catalog.available_updates(self.ledger)

    def install_dir_for(self, app_id: str) -> Path:
        """Return the directory an app is installed into."""
        return self.download_root / app_id

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def request_install(self, app_id: str) -> asyncio.Task[AppState]:
        """Accept an install request.

        Raises:
            AppNotFoundError: If ``app_id`` is not in the catalog
            OperationInProgressError: If ``app_id`` is already busy

        """
        entry = self.catalog.require(app_id)
        session = self.sessions.open(app_id)
        logger.info("Installing %s", entry.name)
        return self._spawn(session, self._run_install(session))

    def request_update(self, app_id: str) -> asyncio.Task[AppState]:
        """Accept an update request for an installed app.

        Raises:
            AppNotFoundError: If ``app_id`` is not in the catalog
            NotInstalledError: If ``app_id`` has no ledger record
            ValidationError: If the installed version is the catalog's
            OperationInProgressError: If ``app_id`` is already busy

        """
        entry = self.catalog.require(app_id)
        record = self._require_installed(app_id)
        if entry.version == record.version:
            msg = f"already at the latest version ({record.version})"
            raise ValidationError(msg, app_id)

        session = self.sessions.open(app_id)
        logger.info(
            "Updating %s %s -> %s", entry.name, record.version, entry.version
        )
        return self._spawn(session, self._run_install(session))

    def request_repair(self, app_id: str) -> asyncio.Task[AppState]:
        """Accept a repair (reinstall) request for an installed app.

        Raises:
            AppNotFoundError: If ``app_id`` is not in the catalog
            NotInstalledError: If ``app_id`` has no ledger record
            OperationInProgressError: If ``app_id`` is already busy

        """
        entry = self.catalog.require(app_id)
        self._require_installed(app_id)
        session = self.sessions.open(app_id)
        logger.info("Repairing %s", entry.name)
        return self._spawn(session, self._run_install(session))

    def request_uninstall(self, app_id: str) -> asyncio.Task[bool]:
        """Accept an uninstall request.

        Raises:
            NotInstalledError: If ``app_id`` has no ledger record
            OperationInProgressError: If ``app_id`` is already busy

        """
        record = self._require_installed(app_id)
        session = self.sessions.open(app_id)
        session.state = AppState.UNINSTALLING
        logger.info("Uninstalling %s", record.name)
        return self._spawn(session, self._run_uninstall(session, record))

    def request_cancel(self, app_id: str) -> bool:
        """Cancel the active download/install of ``app_id``.

        Returns:
            True if a cancellation was requested, False when there is
            nothing cancellable (no session, an uninstall, or already
            cancelling)

        """
        session = self.sessions.get(app_id)
        if (
            session is None
            or session.cancelled
            or session.state is AppState.UNINSTALLING
        ):
            return False
        logger.info("Cancelling %s", app_id)
        session.cancel()
        return True

    def cancel_all(self) -> list[str]:
        """Cancel every cancellable session; return the affected ids."""
        return [
            app_id
            for app_id in self.sessions.active_ids()
            if self.request_cancel(app_id)
        ]

    async def wait_idle(self) -> None:
        """Wait until every accepted request has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def _spawn(
        self, session: TransferSession, flow: Coroutine[Any, Any, T]
    ) -> asyncio.Task[T]:
        self.events.open(session.app_id)
        task = asyncio.create_task(flow, name=f"launchkit:{session.app_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _require_installed(self, app_id: str) -> InstalledAppRecord:
        record = self.ledger.get(app_id)
        if record is None:
            msg = "install it first"
            raise NotInstalledError(msg, app_id)
        return record

    def _publish_progress(self, event: ProgressEvent) -> None:
        self.events.publish(event)

    def _settle(
        self,
        session: TransferSession,
        state: AppState,
        event: LauncherEvent,
    ) -> AppState:
        session.state = state
        self._last_state[session.app_id] = state
        self.events.publish(event)
        return state

    def _fail(self, session: TransferSession, message: str) -> AppState:
        logger.error("%s: %s", session.app_id, message)
        return self._settle(
            session, AppState.FAILED, ErrorEvent(session.app_id, message)
        )

    def _cancelled(self, session: TransferSession) -> AppState:
        return self._settle(
            session, AppState.CANCELLED, CancelledEvent(session.app_id)
        )

    async def _run_install(self, session: TransferSession) -> AppState:
        app_id = session.app_id
        try:
            return await self._install_flow(session)
        except asyncio.CancelledError:
            self._cancelled(session)
            raise
        except LauncherError as e:
            return self._fail(session, str(e))
        except OSError as e:
            return self._fail(session, f"Filesystem error: {e}")
        except Exception as e:
            logger.exception("Unexpected failure while installing %s", app_id)
            return self._fail(session, f"Unexpected error: {e}")
        finally:
            self.sessions.close(session)

    async def _install_flow(self, session: TransferSession) -> AppState:
        app_id = session.app_id
        session.state = AppState.DOWNLOADING

        entry: CatalogEntry = await self.catalog.resolve_entry(app_id)
        if session.cancelled:
            return self._cancelled(session)
        if not entry.download_url:
            return self._fail(session, "No download URL available")

        install_root = self.install_dir_for(app_id)
        transferred = await self.transfer.start_transfer(
            session,
            entry.download_url,
            install_root,
            on_progress=self._publish_progress,
        )
        if transferred.status is OutcomeStatus.CANCELLED:
            return self._cancelled(session)
        if (
            transferred.status is OutcomeStatus.FAILED
            or transferred.path is None
        ):
            return self._fail(
                session, f"Download failed: {transferred.error}"
            )

        artifact = transferred.path
        session.state = (
            AppState.EXTRACTING
            if classify_artifact(artifact).is_archive
            else AppState.PLACING
        )
        installed = await self.installer.install(
            artifact, install_root, session, self._publish_progress
        )
        if installed.status is OutcomeStatus.CANCELLED or session.cancelled:
            return self._cancelled(session)
        if installed.status is OutcomeStatus.FAILED or installed.path is None:
            return self._fail(
                session, f"Installation failed: {installed.error}"
            )

        stored = self.ledger.upsert(
            InstalledAppRecord(
                id=app_id,
                name=entry.name,
                version=entry.version,
                installed_at=get_current_datetime_local_iso(),
                path=str(installed.path),
                install_root=str(install_root),
            )
        )
        logger.info(
            "%s %s installed at %s", entry.name, entry.version, stored.path
        )
        return self._settle(
            session, AppState.COMPLETE, CompleteEvent(app_id, stored.path)
        )

    def _resolve_install_dir(self, record: InstalledAppRecord) -> Path:
        if record.install_root:
            return Path(record.install_root)
        path = Path(record.path)
        if path.is_dir():
            return path
        if path.parent.exists():
            return path.parent
        return self.install_dir_for(record.id)

    async def _run_uninstall(
        self, session: TransferSession, record: InstalledAppRecord
    ) -> bool:
        app_id = session.app_id
        try:
            install_dir = self._resolve_install_dir(record)
            if install_dir.resolve() in {
                self.download_root.resolve(),
                *self.download_root.resolve().parents,
            }:
                msg = f"refusing to remove {install_dir}"
                raise UninstallError(msg, app_id)

            await self.uninstaller.uninstall(app_id, install_dir)
            self.ledger.remove(app_id)
        except asyncio.CancelledError:
            self._settle(
                session,
                AppState.FAILED,
                ErrorEvent(app_id, "Uninstall interrupted"),
            )
            raise
        except LauncherError as e:
            self._fail(session, str(e))
            return False
        except OSError as e:
            self._fail(session, f"Filesystem error: {e}")
            return False
        except Exception as e:
            logger.exception(
                "Unexpected failure while uninstalling %s", app_id
            )
            self._fail(session, f"Unexpected error: {e}")
            return False
        finally:
            self.sessions.close(session)

        logger.info("Uninstalled %s", record.name)
        self._settle(session, AppState.IDLE, UninstalledEvent(app_id))
        return True
