"""Fixtures for core tests: mocked aiohttp responses and sessions."""

from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest


async def async_chunk_gen(
    chunks: Iterable[bytes],
) -> AsyncIterator[bytes]:
    """Yield chunks the way ``StreamReader.iter_chunked`` does."""
    for chunk in chunks:
        yield chunk


def build_response(
    status: int = 200,
    chunks: Iterable[bytes] = (),
    headers: dict[str, str] | None = None,
    reason: str = "OK",
    json_body: Any = None,
) -> MagicMock:
    """Build an aiohttp response usable as ``async with session.get()``.

    Args:
        status: HTTP status code
        chunks: Body chunks returned by ``content.iter_chunked``
        headers: Response headers
        reason: HTTP reason phrase
        json_body: Object returned (serialized) by ``read()``

    """
    chunks = list(chunks)
    response = MagicMock()
    response.status = status
    response.reason = reason
    response.headers = headers or {}
    response.content.iter_chunked = lambda size: async_chunk_gen(chunks)
    response.raise_for_status = MagicMock()
    response.read = AsyncMock(
        return_value=orjson.dumps(json_body)
        if json_body is not None
        else b"".join(chunks)
    )
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=False)
    return response


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Provide the mocked response factory."""
    return build_response


@pytest.fixture
def http_session() -> MagicMock:
    """Provide a mocked aiohttp.ClientSession.

    Tests set ``http_session.get.return_value`` or ``side_effect`` to
    responses built with ``make_response``.
    """
    return MagicMock()
