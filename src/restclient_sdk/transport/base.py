from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

import httpx

from restclient_sdk.exceptions import ExchangeTimeoutError
from restclient_sdk.exceptions import RestClientError
from restclient_sdk.exceptions import TransportError


@dataclass
class Request:
    """
    In-flight request handed to interceptors and finally to the transport.

    Interceptors may mutate it in place (typically ``headers``) or pass a
    different instance to ``next``.
    """

    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Any = None


async def _no_body() -> AsyncIterator[bytes]:
    return
    yield


async def _noop_close() -> None:
    return None


class UnifiedResponse:
    """
    Unified response wrapper that handles differences between HTTP clients.
    Provides consistent async interface regardless of the underlying transport.

    The body is streamed; whoever receives the response owns it and must call
    `aclose()` once done. Closing is idempotent.
    """

    def __init__(
        self,
        status_code: int,
        headers: Any = None,
        reason: str | None = None,
        chunks: AsyncIterator[bytes] | None = None,
        close: Callable[[], Awaitable[None]] | None = None,
    ):
        self.status_code = status_code
        self.headers = httpx.Headers(headers or {})
        self.reason = reason if reason is not None else _reason_phrase(status_code)
        self._chunks = chunks if chunks is not None else _no_body()
        self._close = close or _noop_close
        self._content: bytes | None = None
        self._consumed = False
        self.is_closed = False

    @classmethod
    def from_content(
        cls,
        status_code: int,
        content: bytes = b"",
        headers: Any = None,
        reason: str | None = None,
    ) -> "UnifiedResponse":
        """Build an in-memory response, e.g. for an interceptor that short-circuits."""

        async def chunks() -> AsyncIterator[bytes]:
            if content:
                yield content

        return cls(status_code, headers=headers, reason=reason, chunks=chunks())

    @property
    def status_line(self) -> str:
        return f"{self.status_code} {self.reason}".rstrip()

    @property
    def content_type(self) -> str | None:
        return self.headers.get("Content-Type")

    @property
    def charset(self) -> str | None:
        content_type = self.content_type or ""
        for param in content_type.split(";")[1:]:
            key, _, value = param.partition("=")
            if key.strip().lower() == "charset":
                return value.strip().strip('"') or None
        return None

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        if self._content is not None:
            yield self._content
            return
        if self._consumed:
            raise TransportError("response body was already consumed")
        self._consumed = True
        try:
            async for chunk in self._chunks:
                if chunk:
                    yield chunk
        except RestClientError:
            raise
        except TimeoutError as e:
            raise ExchangeTimeoutError(f"response body read timed out: {e}") from e
        except Exception as e:
            raise TransportError(f"failed to read response body: {e}") from e

    async def aread(self) -> bytes:
        if self._content is None:
            self._content = b"".join([chunk async for chunk in self.aiter_bytes()])
        return self._content

    async def aclose(self) -> None:
        if self.is_closed:
            return
        self.is_closed = True
        await self._close()

    def __repr__(self) -> str:
        return f"<UnifiedResponse [{self.status_line}]>"


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


class BaseTransport:
    """
    Abstract transport layer interface for the REST client SDK.
    All HTTP client backends should inherit from this class.

    Supported transports:
    - httpx: Native async HTTP client
    - aiohttp: Native async HTTP client
    - requests: Sync HTTP client wrapped in async interface
    """

    async def send(self, request: Request) -> UnifiedResponse:
        """
        Send the request and return the response with its body still unread.

        Implementations raise ExchangeTimeoutError for timeouts and
        TransportError for any other network failure.
        """
        raise NotImplementedError(
            "Transport implementations must override this method."
        )

    async def close(self):
        pass
