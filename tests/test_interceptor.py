"""
Tests for the interceptor chain.

This module tests:
- Registration order on the way in, reverse order on the way out
- Short-circuiting without a network call
- Replacing requests and responses
- Concurrent use of one chain
- Built-in interceptors (basic auth, logging)
"""

import asyncio
import base64
import logging

import pytest

from restclient_sdk.exceptions import RestClientError
from restclient_sdk.interceptor import InterceptorChain
from restclient_sdk.interceptor import basic_auth
from restclient_sdk.logging_interceptor import LoggingInterceptor
from restclient_sdk.transport.base import Request
from restclient_sdk.transport.base import UnifiedResponse
from tests.fakes import FakeTransport
from tests.fakes import make_response


def recording_interceptor(name: str, events: list[str]):
    async def intercept(request, next):
        events.append(f"in:{name}")
        request.headers["x-order"] = request.headers.get("x-order", "") + name
        response = await next(request)
        events.append(f"out:{name}")
        return response

    return intercept


def new_request() -> Request:
    return Request(method="GET", url="https://api.test/ping")


@pytest.mark.asyncio
async def test_empty_chain_sends_directly():
    transport = FakeTransport()
    response = await InterceptorChain([], transport).invoke(new_request())

    assert transport.request_count == 1
    assert response is transport.responses[0]


@pytest.mark.asyncio
async def test_nested_call_ordering():
    """
    GIVEN: interceptors i1, i2, i3 registered in that order
    WHEN: the chain is invoked
    THEN: they mutate the request in order i1, i2, i3 before the transport call
          and see the response in order i3, i2, i1
    """
    events: list[str] = []

    def handler(request):
        events.append("send")
        return make_response()

    transport = FakeTransport(handler)
    chain = InterceptorChain(
        [recording_interceptor(name, events) for name in ("1", "2", "3")], transport
    )

    await chain.invoke(new_request())

    assert transport.requests[0].headers["x-order"] == "123"
    assert events == ["in:1", "in:2", "in:3", "send", "out:3", "out:2", "out:1"]


@pytest.mark.asyncio
async def test_short_circuit_error_skips_transport():
    transport = FakeTransport()
    later_events: list[str] = []

    async def refuse(request, next):
        raise RestClientError("refused")

    chain = InterceptorChain([refuse, recording_interceptor("late", later_events)], transport)

    with pytest.raises(RestClientError, match="refused"):
        await chain.invoke(new_request())

    assert transport.request_count == 0
    assert later_events == []


@pytest.mark.asyncio
async def test_short_circuit_with_synthesized_response():
    transport = FakeTransport()

    async def cached(request, next):
        return UnifiedResponse.from_content(200, b"cached")

    response = await InterceptorChain([cached], transport).invoke(new_request())

    assert transport.request_count == 0
    assert await response.aread() == b"cached"
    assert response.status_line == "200 OK"


@pytest.mark.asyncio
async def test_interceptor_can_replace_request_and_response():
    transport = FakeTransport()

    async def reroute(request, next):
        response = await next(Request(method="DELETE", url="https://other.test/x"))
        return UnifiedResponse.from_content(204)

    response = await InterceptorChain([reroute], transport).invoke(new_request())

    assert transport.requests[0].method == "DELETE"
    assert transport.requests[0].url == "https://other.test/x"
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_interceptor_returning_none_is_an_error():
    async def broken(request, next):
        await next(request)

    with pytest.raises(RestClientError, match="returned no response"):
        await InterceptorChain([broken], FakeTransport()).invoke(new_request())


@pytest.mark.asyncio
async def test_transport_errors_pass_through_unchanged():
    failure = RestClientError("boom")

    def handler(request):
        raise failure

    with pytest.raises(RestClientError) as exc_info:
        await InterceptorChain([recording_interceptor("a", [])], FakeTransport(handler)).invoke(new_request())

    assert exc_info.value is failure


@pytest.mark.asyncio
async def test_chain_is_reentrant():
    """
    GIVEN: one chain shared by many concurrent invocations
    WHEN: they run interleaved
    THEN: each request keeps its own headers
    """

    async def tag(request, next):
        request.headers["x-tag"] = request.url.rsplit("/", 1)[-1]
        await asyncio.sleep(0)
        return await next(request)

    async def handler(request):
        await asyncio.sleep(0)
        return make_response(content=request.headers["x-tag"].encode())

    chain = InterceptorChain([tag], FakeTransport(handler))
    responses = await asyncio.gather(
        *(chain.invoke(Request("GET", f"https://api.test/{i}")) for i in range(20))
    )

    assert [await r.aread() for r in responses] == [str(i).encode() for i in range(20)]


@pytest.mark.asyncio
async def test_basic_auth_sets_header():
    transport = FakeTransport()
    await InterceptorChain([basic_auth("user", "secret")], transport).invoke(new_request())

    expected = base64.b64encode(b"user:secret").decode()
    assert transport.requests[0].headers["Authorization"] == f"Basic {expected}"


@pytest.mark.asyncio
async def test_logging_interceptor_logs(caplog: pytest.LogCaptureFixture):
    """
    Test that LoggingInterceptor logs requests and responses.

    Expected behavior:
    - Request method and URL are logged, secrets redacted
    - Response status line and timing are logged
    """
    caplog.set_level(logging.INFO, logger="restclient_sdk.interceptors.logging")
    transport = FakeTransport(lambda request: make_response(201))
    request = new_request()
    request.headers["x-auth-token"] = "secret-token"

    await InterceptorChain([LoggingInterceptor()], transport).invoke(request)

    logs = caplog.text
    assert "Request: GET https://api.test/ping" in logs
    assert "secret-token" not in logs
    assert "Response: 201 Created" in logs
    assert "elapsed=" in logs


@pytest.mark.asyncio
async def test_logging_interceptor_logs_failures(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.INFO, logger="restclient_sdk.interceptors.logging")

    def handler(request):
        raise RestClientError("connection refused")

    with pytest.raises(RestClientError):
        await InterceptorChain([LoggingInterceptor()], FakeTransport(handler)).invoke(new_request())

    assert "Request failed: GET https://api.test/ping | error=connection refused" in caplog.text
