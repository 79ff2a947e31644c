from collections.abc import AsyncIterator
from typing import Any

import httpx

from restclient_sdk.exceptions import ExchangeTimeoutError
from restclient_sdk.exceptions import TransportError

from .base import BaseTransport
from .base import Request
from .base import UnifiedResponse

STREAM_CHUNK_SIZE = 64 * 1024


async def _read_stream(handle: Any) -> AsyncIterator[bytes]:
    while chunk := handle.read(STREAM_CHUNK_SIZE):
        yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk


async def _read_body(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.TimeoutException as e:
        raise ExchangeTimeoutError(f"response body read timed out: {e}") from e


class HttpxTransport(BaseTransport):
    """
    Async transport implementation using httpx.AsyncClient.

    An existing client can be passed in (e.g. one mounted on
    ``httpx.MockTransport``); the transport then leaves closing it to the caller.
    """

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    async def send(self, request: Request) -> UnifiedResponse:
        body = request.body
        if body is not None and not isinstance(body, (bytes, bytearray)):
            body = _read_stream(body)
        try:
            http_request = self._client.build_request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                content=body,
            )
            response = await self._client.send(http_request, stream=True)
        except httpx.TimeoutException as e:
            raise ExchangeTimeoutError(f"request timed out: {e}") from e
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            raise TransportError(f"failed to send request: {e}") from e

        return UnifiedResponse(
            response.status_code,
            headers=response.headers,
            reason=response.reason_phrase,
            chunks=_read_body(response),
            close=response.aclose,
        )

    async def close(self):
        if self._owns_client:
            await self._client.aclose()
