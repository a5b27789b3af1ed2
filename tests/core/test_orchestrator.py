"""Tests for LauncherOrchestrator flows and per-app state."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from launchkit.config.cache import CatalogCache
from launchkit.config.ledger import InstallationLedger
from launchkit.config.settings import LauncherSettings
from launchkit.core.catalog import CatalogStore
from launchkit.core.events import EventChannel
from launchkit.core.installer import ArchiveInstaller
from launchkit.core.orchestrator import LauncherOrchestrator
from launchkit.core.transfer import TransferController
from launchkit.domain.events import (
    AppState,
    CancelledEvent,
    CompleteEvent,
    ErrorEvent,
    Outcome,
    Phase,
    ProgressEvent,
    UninstalledEvent,
)
from launchkit.domain.models import InstalledAppRecord
from launchkit.exceptions import (
    AppNotFoundError,
    NotInstalledError,
    OperationInProgressError,
    UninstallError,
    ValidationError,
)

CATALOG = {
    "apps": [
        {
            "id": "demo",
            "name": "Demo",
            "version": "2.0.0",
            "downloadUrl": "https://cdn.test/Demo.zip",
        },
        {"id": "nourl", "name": "No URL", "version": "1.0.0"},
    ]
}


class FakeTransfer:
    """Writes a small artifact, optionally holding until released."""

    def __init__(self, outcome: Outcome | None = None) -> None:
        self.outcome = outcome
        self.hold = False
        self.started = asyncio.Event()
        self.urls: list[str] = []

    async def start_transfer(
        self, session, url, destination_dir, on_progress=None
    ) -> Outcome:
        self.urls.append(url)
        on_progress(ProgressEvent(session.app_id, Phase.DOWNLOADING, 0))
        on_progress(ProgressEvent(session.app_id, Phase.DOWNLOADING, 50))
        self.started.set()
        while self.hold and not session.cancelled:
            await asyncio.sleep(0.001)
        if session.cancelled:
            return Outcome.cancelled()
        if self.outcome is not None:
            return self.outcome

        on_progress(ProgressEvent(session.app_id, Phase.DOWNLOADING, 100))
        destination_dir.mkdir(parents=True, exist_ok=True)
        artifact = destination_dir / "Demo.zip"
        artifact.write_bytes(b"PK")
        return Outcome.success(artifact, 2)


class FakeInstaller:
    """Places ``Demo.exe`` next to the artifact."""

    def __init__(self, outcome: Outcome | None = None) -> None:
        self.outcome = outcome

    async def install(self, artifact, install_root, session, on_progress):
        if self.outcome is not None:
            return self.outcome
        on_progress(ProgressEvent(session.app_id, Phase.EXTRACTING, 0))
        artifact.unlink()
        executable = install_root / "Demo.exe"
        executable.write_bytes(b"MZ")
        on_progress(ProgressEvent(session.app_id, Phase.INSTALLING, 100))
        return Outcome.success(executable)


@pytest.fixture
def ledger(tmp_path: Path) -> InstallationLedger:
    """Provide an empty ledger."""
    return InstallationLedger(tmp_path / "installed-apps.json")


@pytest.fixture
def events() -> list:
    """Collect published events."""
    return []


@pytest.fixture
def transfer() -> FakeTransfer:
    """Provide the fake transfer engine."""
    return FakeTransfer()


@pytest.fixture
def uninstaller() -> MagicMock:
    """Provide an uninstaller that always succeeds."""
    uninstaller = MagicMock()
    uninstaller.uninstall = AsyncMock(return_value=True)
    return uninstaller


def build(
    tmp_path: Path,
    ledger: InstallationLedger,
    events: list,
    transfer: FakeTransfer,
    uninstaller: MagicMock,
    installer: FakeInstaller | None = None,
) -> LauncherOrchestrator:
    """Wire an orchestrator around fakes."""
    catalog = CatalogStore(
        MagicMock(),
        "https://catalog.test/apps.json",
        cache=CatalogCache(tmp_path / "cache.json"),
    )
    catalog.load_document(CATALOG)
    channel = EventChannel()
    channel.add_listener(events.append)
    return LauncherOrchestrator(
        catalog=catalog,
        ledger=ledger,
        transfer=transfer,
        installer=installer or FakeInstaller(),
        uninstaller=uninstaller,
        download_root=tmp_path / "apps",
        events=channel,
    )


@pytest.fixture
def orchestrator(
    tmp_path, ledger, events, transfer, uninstaller
) -> LauncherOrchestrator:
    """Provide an orchestrator over the default fakes."""
    return build(tmp_path, ledger, events, transfer, uninstaller)


def installed_record(
    tmp_path: Path, version: str = "1.0.0"
) -> InstalledAppRecord:
    """Build a ledger record for an installed demo app."""
    root = tmp_path / "apps" / "demo"
    root.mkdir(parents=True, exist_ok=True)
    return InstalledAppRecord(
        id="demo",
        name="Demo",
        version=version,
        installed_at="2026-01-01T00:00:00+00:00",
        path=str(root / "Demo.exe"),
        install_root=str(root),
    )


def terminal_events(events: list) -> list:
    """Return the non-progress events."""
    return [e for e in events if not isinstance(e, ProgressEvent)]


@pytest.mark.asyncio
async def test_install_completes_and_records(
    orchestrator, ledger, events, tmp_path: Path
) -> None:
    """A successful install ends in Complete and a ledger record."""
    result = await orchestrator.request_install("demo")

    executable = tmp_path / "apps" / "demo" / "Demo.exe"
    assert result is AppState.COMPLETE
    assert orchestrator.state("demo") is AppState.COMPLETE
    assert terminal_events(events) == [CompleteEvent("demo", str(executable))]

    record = ledger.get("demo")
    assert record.version == "2.0.0"
    assert record.path == str(executable)
    assert record.install_root == str(tmp_path / "apps" / "demo")
    assert orchestrator.active_app_ids() == []


@pytest.mark.asyncio
async def test_second_request_for_busy_app_is_rejected(
    orchestrator, transfer, events
) -> None:
    """Only one operation per app id may be in flight."""
    transfer.hold = True
    first = orchestrator.request_install("demo")
    await transfer.started.wait()

    with pytest.raises(OperationInProgressError):
        orchestrator.request_install("demo")
    assert orchestrator.state("demo") is AppState.DOWNLOADING

    transfer.hold = False
    assert await first is AppState.COMPLETE
    assert len(terminal_events(events)) == 1


@pytest.mark.asyncio
async def test_cancel_mid_download(
    orchestrator, transfer, ledger, events
) -> None:
    """Cancellation yields one Cancelled event and no ledger change."""
    transfer.hold = True
    task = orchestrator.request_install("demo")
    await transfer.started.wait()

    assert orchestrator.request_cancel("demo") is True
    assert orchestrator.request_cancel("demo") is False
    assert await task is AppState.CANCELLED

    assert terminal_events(events) == [CancelledEvent("demo")]
    assert isinstance(events[-1], CancelledEvent)
    assert ledger.get("demo") is None
    assert orchestrator.active_app_ids() == []


@pytest.mark.asyncio
async def test_cancelling_the_task_still_settles(
    orchestrator, transfer, events
) -> None:
    """Cancelling the request task itself publishes Cancelled."""
    transfer.hold = True
    task = orchestrator.request_install("demo")
    await transfer.started.wait()

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert terminal_events(events) == [CancelledEvent("demo")]
    assert "demo" not in orchestrator.sessions


@pytest.mark.asyncio
async def test_download_failure(
    tmp_path, ledger, events, uninstaller
) -> None:
    """Transfer failures surface with a download prefix."""
    orchestrator = build(
        tmp_path,
        ledger,
        events,
        FakeTransfer(Outcome.failed("HTTP 404 Not Found")),
        uninstaller,
    )

    assert await orchestrator.request_install("demo") is AppState.FAILED
    assert terminal_events(events) == [
        ErrorEvent("demo", "Download failed: HTTP 404 Not Found")
    ]
    assert ledger.get("demo") is None


@pytest.mark.asyncio
async def test_install_failure(
    tmp_path, ledger, events, transfer, uninstaller
) -> None:
    """Extraction failures surface verbatim with an install prefix."""
    orchestrator = build(
        tmp_path,
        ledger,
        events,
        transfer,
        uninstaller,
        installer=FakeInstaller(Outcome.failed("File is not a zip file")),
    )

    assert await orchestrator.request_install("demo") is AppState.FAILED
    assert terminal_events(events) == [
        ErrorEvent("demo", "Installation failed: File is not a zip file")
    ]


@pytest.mark.asyncio
async def test_missing_download_url(orchestrator, transfer, events) -> None:
    """Entries without any download source fail before transferring."""
    assert await orchestrator.request_install("nourl") is AppState.FAILED
    assert terminal_events(events) == [
        ErrorEvent("nourl", "No download URL available")
    ]
    assert transfer.urls == []


def test_unknown_app_is_rejected(orchestrator) -> None:
    """Requests for ids outside the catalog raise immediately."""
    with pytest.raises(AppNotFoundError):
        orchestrator.request_install("ghost")


def test_update_and_repair_require_install(orchestrator) -> None:
    """Update and repair only apply to installed apps."""
    with pytest.raises(NotInstalledError):
        orchestrator.request_update("demo")
    with pytest.raises(NotInstalledError):
        orchestrator.request_repair("demo")
    with pytest.raises(NotInstalledError):
        orchestrator.request_uninstall("demo")


def test_update_rejects_current_version(
    orchestrator, ledger, tmp_path
) -> None:
    """Updating to the installed version is a validation error."""
    ledger.upsert(installed_record(tmp_path, version="2.0.0"))

    with pytest.raises(ValidationError, match="already at the latest"):
        orchestrator.request_update("demo")


@pytest.mark.asyncio
async def test_update_preserves_installed_at(
    orchestrator, ledger, tmp_path
) -> None:
    """Updates refresh version and path but keep installedAt."""
    ledger.upsert(installed_record(tmp_path))
    assert [u.app_id for u in orchestrator.available_updates()] == ["demo"]

    assert await orchestrator.request_update("demo") is AppState.COMPLETE

    record = ledger.get("demo")
    assert record.version == "2.0.0"
    assert record.installed_at == "2026-01-01T00:00:00+00:00"
    assert record.updated_at is not None
    assert orchestrator.available_updates() == []


@pytest.mark.asyncio
async def test_repair_reinstalls_same_version(
    orchestrator, ledger, tmp_path
) -> None:
    """Repair runs the full install flow for an installed app."""
    ledger.upsert(installed_record(tmp_path, version="2.0.0"))

    assert await orchestrator.request_repair("demo") is AppState.COMPLETE
    assert len(ledger.all()) == 1


@pytest.mark.asyncio
async def test_uninstall(
    orchestrator, ledger, uninstaller, events, tmp_path
) -> None:
    """Uninstall removes the directory and the ledger record."""
    record = installed_record(tmp_path)
    ledger.upsert(record)

    task = orchestrator.request_uninstall("demo")
    assert orchestrator.state("demo") is AppState.UNINSTALLING
    assert orchestrator.request_cancel("demo") is False
    with pytest.raises(OperationInProgressError):
        orchestrator.request_install("demo")

    assert await task is True
    uninstaller.uninstall.assert_awaited_once_with(
        "demo", Path(record.install_root)
    )
    assert ledger.get("demo") is None
    assert terminal_events(events) == [UninstalledEvent("demo")]
    assert orchestrator.state("demo") is AppState.IDLE


@pytest.mark.asyncio
async def test_uninstall_failure_keeps_record(
    orchestrator, ledger, uninstaller, events, tmp_path
) -> None:
    """A directory that cannot be removed leaves the app installed."""
    ledger.upsert(installed_record(tmp_path))
    uninstaller.uninstall.side_effect = UninstallError(
        "could not remove", "demo"
    )

    assert await orchestrator.request_uninstall("demo") is False

    assert ledger.get("demo") is not None
    assert len(terminal_events(events)) == 1
    assert isinstance(events[-1], ErrorEvent)
    assert orchestrator.state("demo") is AppState.FAILED


@pytest.mark.asyncio
async def test_uninstall_refuses_download_root(
    orchestrator, ledger, uninstaller, tmp_path
) -> None:
    """A record pointing at the shared root is never deleted."""
    root = tmp_path / "apps"
    root.mkdir()
    ledger.upsert(
        InstalledAppRecord(
            id="demo",
            name="Demo",
            version="1.0.0",
            installed_at="2026-01-01T00:00:00+00:00",
            path=str(root),
            install_root=str(root),
        )
    )

    assert await orchestrator.request_uninstall("demo") is False
    uninstaller.uninstall.assert_not_awaited()
    assert ledger.get("demo") is not None


@pytest.mark.asyncio
async def test_cancel_all_and_wait_idle(orchestrator, transfer) -> None:
    """cancel_all stops every cancellable session."""
    transfer.hold = True
    orchestrator.request_install("demo")
    await transfer.started.wait()

    assert orchestrator.cancel_all() == ["demo"]
    await orchestrator.wait_idle()

    assert orchestrator.state("demo") is AppState.CANCELLED
    assert orchestrator.request_cancel("demo") is False


def test_create_default_wires_engine(tmp_path: Path, ledger) -> None:
    """The default wiring uses the real engine components."""
    settings = LauncherSettings(download_root=tmp_path / "apps")

    orchestrator = LauncherOrchestrator.create_default(
        MagicMock(), settings, ledger=ledger
    )

    assert isinstance(orchestrator.transfer, TransferController)
    assert isinstance(orchestrator.installer, ArchiveInstaller)
    assert orchestrator.ledger is ledger
    assert orchestrator.install_dir_for("demo") == tmp_path / "apps" / "demo"


EXE_CATALOG = {
    "apps": [
        {
            "id": "demo",
            "name": "Demo",
            "version": "2.0.0",
            "downloadUrl": "https://cdn.test/Demo.exe",
        }
    ]
}
OLD_BINARY = b"MZ-1.0.0"


@pytest.fixture
def exe_orchestrator(
    tmp_path: Path, ledger, events, uninstaller, http_session
) -> LauncherOrchestrator:
    """Orchestrator over the real engine for a direct-executable app.

    The ledger already holds demo 1.0.0 at ``apps/demo/Demo.exe``, the
    same name the catalog's 2.0.0 download resolves to.
    """
    catalog = CatalogStore(
        MagicMock(),
        "https://catalog.test/apps.json",
        cache=CatalogCache(tmp_path / "cache.json"),
    )
    catalog.load_document(EXE_CATALOG)
    channel = EventChannel()
    channel.add_listener(events.append)

    record = installed_record(tmp_path)
    Path(record.path).write_bytes(OLD_BINARY)
    ledger.upsert(record)

    return LauncherOrchestrator(
        catalog=catalog,
        ledger=ledger,
        transfer=TransferController(http_session),
        installer=ArchiveInstaller(),
        uninstaller=uninstaller,
        download_root=tmp_path / "apps",
        events=channel,
    )


def assert_previous_install_intact(tmp_path: Path, ledger) -> None:
    """The 1.0.0 binary and its record are exactly as before."""
    install_root = tmp_path / "apps" / "demo"
    executable = install_root / "Demo.exe"
    assert executable.read_bytes() == OLD_BINARY
    assert sorted(p.name for p in install_root.iterdir()) == ["Demo.exe"]

    record = ledger.get("demo")
    assert record.version == "1.0.0"
    assert record.path == str(executable)


@pytest.mark.asyncio
async def test_failed_update_keeps_installed_executable(
    exe_orchestrator, ledger, events, http_session, make_response, tmp_path
) -> None:
    """An HTTP error during update leaves the old binary in place."""
    http_session.get.return_value = make_response(
        status=404, reason="Not Found"
    )

    result = await exe_orchestrator.request_update("demo")

    assert result is AppState.FAILED
    assert terminal_events(events) == [
        ErrorEvent("demo", "Download failed: HTTP 404 Not Found")
    ]
    assert_previous_install_intact(tmp_path, ledger)


@pytest.mark.asyncio
async def test_cancelled_repair_keeps_installed_executable(
    exe_orchestrator, ledger, events, http_session, make_response, tmp_path
) -> None:
    """Cancelling a repair mid-download leaves the old binary in place."""
    http_session.get.return_value = make_response(
        chunks=[b"n" * 100] * 10, headers={"Content-Length": "1000"}
    )

    def cancel_at_40(event) -> None:
        if isinstance(event, ProgressEvent) and event.percent >= 40:
            exe_orchestrator.request_cancel("demo")

    exe_orchestrator.events.add_listener(cancel_at_40)

    result = await exe_orchestrator.request_repair("demo")

    assert result is AppState.CANCELLED
    assert terminal_events(events) == [CancelledEvent("demo")]
    assert_previous_install_intact(tmp_path, ledger)


@pytest.mark.asyncio
async def test_successful_update_replaces_installed_executable(
    exe_orchestrator, ledger, http_session, make_response, tmp_path
) -> None:
    """A completed update swaps in the new binary and records it."""
    http_session.get.return_value = make_response(
        chunks=[b"MZ-2.0.0"], headers={"Content-Length": "8"}
    )

    result = await exe_orchestrator.request_update("demo")

    install_root = tmp_path / "apps" / "demo"
    assert result is AppState.COMPLETE
    assert (install_root / "Demo.exe").read_bytes() == b"MZ-2.0.0"
    assert sorted(p.name for p in install_root.iterdir()) == ["Demo.exe"]
    assert ledger.get("demo").version == "2.0.0"
