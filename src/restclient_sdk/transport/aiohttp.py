"""
Aiohttp transport implementation for the REST client SDK.

This module provides AiohttpTransport, an alternative async HTTP client for the SDK.
Aiohttp is a mature async HTTP client with its own connection pooling and
timeout handling.
"""

from collections.abc import AsyncIterator

import aiohttp

from restclient_sdk.exceptions import ExchangeTimeoutError
from restclient_sdk.exceptions import TransportError

from .base import BaseTransport
from .base import Request
from .base import UnifiedResponse

STREAM_CHUNK_SIZE = 64 * 1024


class AiohttpTransport(BaseTransport):
    """
    Async transport implementation using aiohttp.ClientSession.
    """

    def __init__(self, timeout: float = 30.0):
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def send(self, request: Request) -> UnifiedResponse:
        # Create session if not exists
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )

        try:
            response = await self._session.request(
                method=request.method,
                url=request.url,
                headers=dict(request.headers.items()),
                data=request.body,
            )
        except TimeoutError as e:
            raise ExchangeTimeoutError(f"request timed out: {e}") from e
        except (aiohttp.ClientError, ValueError, OSError) as e:
            raise TransportError(f"failed to send request: {e}") from e

        async def chunks() -> AsyncIterator[bytes]:
            try:
                async for chunk in response.content.iter_chunked(STREAM_CHUNK_SIZE):
                    yield chunk
            except TimeoutError as e:
                # ClientTimeout(total=...) also bounds the body read
                raise ExchangeTimeoutError(f"response body read timed out: {e}") from e

        async def close() -> None:
            response.close()

        return UnifiedResponse(
            response.status,
            headers=list(response.headers.items()),
            reason=response.reason,
            chunks=chunks(),
            close=close,
        )

    async def close(self):
        if self._session:
            await self._session.close()
