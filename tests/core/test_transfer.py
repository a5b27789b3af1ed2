"""Tests for TransferController."""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import aiohttp
import pytest

from launchkit.core.sessions import TransferSession
from launchkit.core.transfer import (
    TransferController,
    derive_filename,
    staging_path,
)
from launchkit.domain.events import OutcomeStatus, Phase, ProgressEvent

URL = "https://cdn.test/releases/Demo-Setup.zip"
CHUNK = b"x" * 100


@pytest.fixture
def controller(http_session: MagicMock) -> TransferController:
    """Provide a controller over the mocked HTTP session."""
    return TransferController(http_session)


class TestDeriveFilename:
    """Tests for derive_filename."""

    def test_uses_last_segment_without_query(self) -> None:
        """Query strings are ignored and names percent-decoded."""
        url = "https://x.test/dl/Tool%20Setup.zip?token=abc"
        assert derive_filename(url, "tool") == "Tool Setup.zip"

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://x.test/d/", "tool-setup.exe"),
            ("https://x.test/a", "tool-setup.exe"),
            ("https://x.test/..", "tool-setup.exe"),
        ],
    )
    def test_short_names_fall_back(self, url: str, expected: str) -> None:
        """Names under three characters become <id>-setup.exe."""
        assert derive_filename(url, "tool") == expected

    def test_encoded_separators_are_neutralized(self) -> None:
        """Decoded slashes cannot escape the destination directory."""
        url = "https://x.test/d/..%2F..%2Fevil.exe"
        assert derive_filename(url, "tool") == ".._.._evil.exe"


@pytest.mark.asyncio
async def test_successful_transfer(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """Bytes land in the destination and progress is monotonic."""
    http_session.get.return_value = make_response(
        chunks=[CHUNK] * 10, headers={"Content-Length": "1000"}
    )
    events: list[ProgressEvent] = []

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path / "demo", events.append
    )

    assert outcome.status is OutcomeStatus.SUCCESS
    assert outcome.path == tmp_path / "demo" / "Demo-Setup.zip"
    assert outcome.bytes_written == 1000
    assert outcome.path.read_bytes() == CHUNK * 10

    percents = [event.percent for event in events]
    assert percents == sorted(percents)
    assert percents[-1] == 100
    assert {event.phase for event in events} == {Phase.DOWNLOADING}
    assert events[-1].bytes_downloaded == events[-1].bytes_total == 1000


@pytest.mark.asyncio
async def test_unknown_length_reports_zero_percent(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """Without Content-Length only byte counts advance."""
    http_session.get.return_value = make_response(chunks=[CHUNK] * 3)
    events: list[ProgressEvent] = []

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path, events.append
    )

    assert outcome.ok
    assert [event.percent for event in events] == [0, 0, 0]
    assert [event.bytes_downloaded for event in events] == [100, 200, 300]


@pytest.mark.asyncio
async def test_cancel_mid_transfer_removes_partial_file(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """Cancelling at 40% yields cancelled and leaves no file behind."""
    http_session.get.return_value = make_response(
        chunks=[CHUNK] * 10, headers={"Content-Length": "1000"}
    )
    session = TransferSession("demo")
    events: list[ProgressEvent] = []

    def on_progress(event: ProgressEvent) -> None:
        events.append(event)
        if event.percent >= 40:
            session.cancel()

    outcome = await controller.start_transfer(
        session, URL, tmp_path, on_progress
    )

    assert outcome.status is OutcomeStatus.CANCELLED
    assert max(event.percent for event in events) == 40
    assert not (tmp_path / "Demo-Setup.zip").exists()
    assert session.handle is None


@pytest.mark.asyncio
async def test_cancelled_before_start(
    controller, http_session, tmp_path: Path
) -> None:
    """A session cancelled up front never touches the network."""
    session = TransferSession("demo")
    session.cancelled = True

    outcome = await controller.start_transfer(session, URL, tmp_path)

    assert outcome.status is OutcomeStatus.CANCELLED
    http_session.get.assert_not_called()


@pytest.mark.asyncio
async def test_follows_relative_redirect(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """Location headers are resolved against the current URL."""
    http_session.get.side_effect = [
        make_response(status=302, headers={"Location": "/mirror/demo.zip"}),
        make_response(chunks=[CHUNK]),
    ]

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path
    )

    assert outcome.ok
    second_url = http_session.get.call_args_list[1].args[0]
    assert second_url == "https://cdn.test/mirror/demo.zip"
    assert outcome.path.name == "Demo-Setup.zip"


@pytest.mark.asyncio
async def test_too_many_redirects(
    http_session, make_response, tmp_path: Path
) -> None:
    """Redirect loops end in a failed outcome."""
    controller = TransferController(http_session, max_redirects=2)
    http_session.get.side_effect = lambda *args, **kwargs: make_response(
        status=301, headers={"Location": "https://cdn.test/loop"}
    )

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path
    )

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error == "Too many redirects (more than 2)"
    assert http_session.get.call_count == 3


@pytest.mark.asyncio
async def test_http_error_status(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """4xx/5xx responses fail with the status line."""
    http_session.get.return_value = make_response(
        status=404, reason="Not Found"
    )

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path
    )

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error == "HTTP 404 Not Found"
    assert not (tmp_path / "Demo-Setup.zip").exists()


@pytest.mark.asyncio
async def test_network_error_mid_stream_removes_partial(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """A dropped connection fails the transfer and cleans up."""
    response = make_response(headers={"Content-Length": "1000"})

    async def broken_chunks(size):
        yield CHUNK
        raise aiohttp.ClientPayloadError("connection reset")

    response.content.iter_chunked = broken_chunks
    http_session.get.return_value = response

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path
    )

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error == "connection reset"
    assert not (tmp_path / "Demo-Setup.zip").exists()


@pytest.mark.asyncio
async def test_timeout(controller, http_session, tmp_path: Path) -> None:
    """Timeouts settle as failures with a readable message."""
    http_session.get.side_effect = TimeoutError()

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path
    )

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error == "Connection timed out"


@pytest.mark.asyncio
async def test_caller_cancellation_propagates(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """Cancelling the awaiting task re-raises instead of settling."""
    response = make_response()
    stalled = asyncio.Event()

    async def slow_chunks(size):
        yield CHUNK
        stalled.set()
        await asyncio.Event().wait()
        yield CHUNK

    response.content.iter_chunked = slow_chunks
    http_session.get.return_value = response

    task = asyncio.create_task(
        controller.start_transfer(TransferSession("demo"), URL, tmp_path)
    )
    await stalled.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert not (tmp_path / "Demo-Setup.zip").exists()


def test_staging_path_appends_part_suffix(tmp_path: Path) -> None:
    """Downloads stream into a sibling ``.part`` file."""
    target = tmp_path / "Demo.exe"
    assert staging_path(target) == tmp_path / "Demo.exe.part"


@pytest.mark.asyncio
async def test_success_leaves_no_staging_file(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """The staging file is renamed over the final name."""
    http_session.get.return_value = make_response(chunks=[CHUNK])

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path
    )

    assert outcome.ok
    assert sorted(p.name for p in tmp_path.iterdir()) == ["Demo-Setup.zip"]


@pytest.mark.asyncio
async def test_success_replaces_existing_file(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """A finished download overwrites a file already at the target."""
    (tmp_path / "Demo-Setup.zip").write_bytes(b"old")
    http_session.get.return_value = make_response(chunks=[CHUNK])

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path
    )

    assert outcome.ok
    assert outcome.path.read_bytes() == CHUNK


@pytest.mark.asyncio
async def test_http_error_keeps_existing_file(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """A file that predates the request survives a failed download."""
    existing = tmp_path / "Demo-Setup.zip"
    existing.write_bytes(b"installed")
    http_session.get.return_value = make_response(
        status=404, reason="Not Found"
    )

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path
    )

    assert outcome.status is OutcomeStatus.FAILED
    assert existing.read_bytes() == b"installed"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["Demo-Setup.zip"]


@pytest.mark.asyncio
async def test_cancel_keeps_existing_file(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """Cancelling mid-stream removes only the staging file."""
    existing = tmp_path / "Demo-Setup.zip"
    existing.write_bytes(b"installed")
    http_session.get.return_value = make_response(
        chunks=[CHUNK] * 10, headers={"Content-Length": "1000"}
    )
    session = TransferSession("demo")

    def on_progress(event: ProgressEvent) -> None:
        if event.percent >= 40:
            session.cancel()

    outcome = await controller.start_transfer(
        session, URL, tmp_path, on_progress
    )

    assert outcome.status is OutcomeStatus.CANCELLED
    assert existing.read_bytes() == b"installed"
    assert not staging_path(existing).exists()


@pytest.mark.asyncio
async def test_mid_stream_failure_keeps_existing_file(
    controller, http_session, make_response, tmp_path: Path
) -> None:
    """A dropped connection after some bytes leaves the old file."""
    existing = tmp_path / "Demo-Setup.zip"
    existing.write_bytes(b"installed")
    response = make_response(headers={"Content-Length": "1000"})

    async def broken_chunks(size):
        yield CHUNK
        raise aiohttp.ClientPayloadError("connection reset")

    response.content.iter_chunked = broken_chunks
    http_session.get.return_value = response

    outcome = await controller.start_transfer(
        TransferSession("demo"), URL, tmp_path
    )

    assert outcome.status is OutcomeStatus.FAILED
    assert existing.read_bytes() == b"installed"
    assert not staging_path(existing).exists()
