"""
Tests for transport backends.

This module tests:
- Timeouts while reading a streamed body surface as ExchangeTimeoutError
- The requests backend releases a response whose exchange was abandoned
"""

import asyncio
import threading

import httpx
import pytest
import requests
from urllib3.exceptions import ReadTimeoutError

from restclient_sdk.client import RestClient
from restclient_sdk.entity import Entity
from restclient_sdk.exceptions import ExchangeTimeoutError
from restclient_sdk.exceptions import TransportError
from restclient_sdk.transport.base import Request
from restclient_sdk.transport.base import UnifiedResponse
from restclient_sdk.transport.requests import RequestsTransport
from tests.fakes import mock_http_transport
from tests.fakes import settings_for


class TimingOutBody(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"partial"
        raise httpx.ReadTimeout("read timed out")


class FakeStreamedResponse:
    """Just enough of requests.Response for RequestsTransport."""

    status_code = 200
    reason = "OK"

    def __init__(self, chunks=(b"ok",), error: Exception | None = None):
        self.headers = {"Content-Type": "text/plain"}
        self._chunks = chunks
        self._error = error
        self.closed = threading.Event()

    def iter_content(self, chunk_size):
        yield from self._chunks
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed.set()


class FakeSession:
    def __init__(self, response: FakeStreamedResponse, release: threading.Event | None = None):
        self.response = response
        self.release = release

    def request(self, **kwargs):
        if self.release is not None:
            self.release.wait(5)
        return self.response

    def close(self):
        pass


@pytest.mark.asyncio
async def test_httpx_body_read_timeout_is_exchange_timeout():
    """
    GIVEN: a server that sends part of the body and then stalls past the read timeout
    WHEN: the body is read into a response entity
    THEN: the exchange fails with ExchangeTimeoutError, not TransportError
    """

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=TimingOutBody())

    client = RestClient(settings_for(), transport=mock_http_transport(handler))

    with pytest.raises(ExchangeTimeoutError) as exc_info:
        await client.exchange("GET", "/slow-body", response_entity=Entity.raw(b""))

    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_unified_response_maps_builtin_timeout():
    async def chunks():
        yield b"partial"
        raise TimeoutError("socket read timed out")

    response = UnifiedResponse(200, chunks=chunks())

    with pytest.raises(ExchangeTimeoutError):
        await response.aread()


@pytest.mark.asyncio
async def test_unified_response_wraps_other_read_errors():
    async def chunks():
        yield b"partial"
        raise ConnectionResetError("peer reset")

    response = UnifiedResponse(200, chunks=chunks())

    with pytest.raises(TransportError, match="failed to read response body"):
        await response.aread()


@pytest.mark.asyncio
async def test_requests_body_read_timeout_is_exchange_timeout():
    read_timeout = requests.ConnectionError(
        ReadTimeoutError(None, "https://api.test/slow", "Read timed out.")
    )
    session = FakeSession(FakeStreamedResponse(chunks=(b"partial",), error=read_timeout))
    transport = RequestsTransport(session=session)

    response = await transport.send(Request("GET", "https://api.test/slow"))

    with pytest.raises(ExchangeTimeoutError):
        await response.aread()
    await response.aclose()
    assert session.response.closed.is_set()


@pytest.mark.asyncio
async def test_requests_response_released_when_send_is_cancelled():
    """
    GIVEN: a requests send still running in its worker thread
    WHEN: the awaiting exchange is cancelled
    THEN: the response the thread eventually returns is closed
    """
    release = threading.Event()
    session = FakeSession(FakeStreamedResponse(), release=release)
    transport = RequestsTransport(session=session)

    send = asyncio.create_task(transport.send(Request("GET", "https://api.test/slow")))
    await asyncio.sleep(0.05)
    send.cancel()
    with pytest.raises(asyncio.CancelledError):
        await send

    release.set()
    assert await asyncio.to_thread(session.response.closed.wait, 5)


@pytest.mark.asyncio
async def test_requests_transport_leaves_injected_session_open():
    closed: list[bool] = []

    class TrackingSession(FakeSession):
        def close(self):
            closed.append(True)

    transport = RequestsTransport(session=TrackingSession(FakeStreamedResponse()))

    await transport.close()

    assert closed == []
