"""
Async-first REST client.

This module provides the RestClient class, which turns a (method, URL, query,
request entity, response entity) tuple into a completed HTTP exchange.
Features include:

- Relative URL building against a client-wide base URL
- Canonical query string encoding
- JSON encoding of the request entity and JSON decoding of the response entity
- Timeout management, plus caller-driven cancellation
- Interceptors around the transport call (auth tokens, logging, ...)
- Conversion of non-2xx responses into FailedResponseError with the response body
- Auto-closing of the response body on every path
- Multiple HTTP transport backends (httpx, aiohttp, requests)

Example usage:
    from restclient_sdk import RestClient, json_entity

    async with RestClient() as client:
        client.set_base_url("https://api.example.com")

        reply = json_entity(dict)
        await client.exchange("POST", "/ping", request_entity=json_entity({"Msg": "hello"}),
                              response_entity=reply)
        print(reply.content["Msg"])
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

import httpx

from restclient_sdk.config import RestClientSettings
from restclient_sdk.entity import Entity
from restclient_sdk.exceptions import CancellationError
from restclient_sdk.exceptions import ExchangeTimeoutError
from restclient_sdk.exchange import QueryParams
from restclient_sdk.exchange import build_request
from restclient_sdk.exchange import parse_url
from restclient_sdk.interceptor import Interceptor
from restclient_sdk.interceptor import InterceptorChain
from restclient_sdk.response import process_response
from restclient_sdk.transport import get_transport
from restclient_sdk.transport.base import BaseTransport
from restclient_sdk.transport.base import Request

logger = logging.getLogger("restclient_sdk.client")

T = TypeVar("T")


class RestClient:
    """
    Async REST client with interceptor support.

    The client is meant to be created once and reused for many exchanges.
    Interceptors may be appended between exchanges; adding one while exchanges
    are in flight is not supported (in-flight exchanges keep the list they
    started with).

    Args:
        settings (RestClientSettings | None): base URL, timeout and transport name.
            Defaults to RestClientSettings() (environment variables / .env).
        transport (BaseTransport | None): Transport to send requests with. When
            omitted, one is created from settings.transport and closed by aclose().
        interceptors (list[Interceptor] | None): Initial interceptors, in order.

    Example:
        from restclient_sdk import RestClient, RestClientSettings, basic_auth

        client = RestClient(RestClientSettings(base_url="https://api.example.com"))
        client.add_interceptor(basic_auth("user", "secret"))
        await client.exchange("GET", "/health")
        await client.aclose()
    """

    def __init__(
        self,
        settings: RestClientSettings | None = None,
        transport: BaseTransport | None = None,
        interceptors: list[Interceptor] | None = None,
    ):
        self.settings = settings or RestClientSettings()
        self.base_url: httpx.URL | None = None
        if self.settings.base_url:
            self.set_base_url(self.settings.base_url)

        self._owns_transport = transport is None
        self.transport = transport or get_transport(
            self.settings.transport, timeout=self.effective_timeout
        )
        self.interceptors: list[Interceptor] = list(interceptors or [])

    @property
    def effective_timeout(self) -> float:
        return self.settings.effective_timeout

    def add_interceptor(self, interceptor: Interceptor) -> None:
        """Append an interceptor; it runs after all previously added ones."""
        self.interceptors.append(interceptor)

    def set_base_url(self, raw_url: str) -> None:
        """
        Set the URL that request URLs are resolved against.

        Raises:
            UrlError: If the URL cannot be parsed.
        """
        self.base_url = parse_url(raw_url)

    async def exchange(
        self,
        method: str,
        url: str,
        query: QueryParams | None = None,
        request_entity: Entity | None = None,
        response_entity: Entity | None = None,
    ) -> None:
        """
        Perform one request/response exchange.

        `url` is resolved relative to the base URL when one is configured, and
        `query` (if given) is encoded into the final URL with sorted keys.

        The request entity's content can be str, bytes, a readable stream or,
        for JSON entities, a value that is JSON encoded. The response entity's
        content can be str or bytes placeholders, a writable sink, or, for
        JSON entities, a type the body is decoded into; after the exchange the
        received value is stored in `response_entity.content`.

        Raises:
            UrlError: Malformed URL.
            UnsupportedEntityError: Entity content cannot be sent or received.
            TransportError: Network failure.
            ExchangeTimeoutError: The configured timeout elapsed.
            FailedResponseError: Status code >= 300; carries the response body.
            DecodeError: The response body could not be decoded.
        """
        await self.exchange_with_context(
            None, method, url, query, request_entity, response_entity
        )

    async def exchange_with_context(
        self,
        cancel: asyncio.Event | None,
        method: str,
        url: str,
        query: QueryParams | None = None,
        request_entity: Entity | None = None,
        response_entity: Entity | None = None,
    ) -> None:
        """
        Same as `exchange`, but aborts with CancellationError as soon as
        `cancel` is set. The timeout still applies; whichever fires first wins.
        """
        request = build_request(
            method, url, query, request_entity, response_entity, self.base_url
        )
        if cancel is not None and cancel.is_set():
            raise CancellationError("exchange was cancelled before it started")

        chain = InterceptorChain(self.interceptors, self.transport)
        timeout = self.effective_timeout
        logger.debug(
            f"Exchange: {request.method} {request.url} | interceptors={len(chain)} | timeout={timeout}s"
        )
        try:
            async with asyncio.timeout(timeout):
                await _run_cancellable(
                    self._perform(chain, request, response_entity), cancel
                )
        except ExchangeTimeoutError:
            raise
        except TimeoutError as e:
            raise ExchangeTimeoutError(
                f"exchange {request.method} {request.url} timed out after {timeout}s"
            ) from e

    async def _perform(
        self, chain: InterceptorChain, request: Request, response_entity: Entity | None
    ) -> None:
        response = await chain.invoke(request)
        await process_response(response, response_entity)

    async def aclose(self):
        """
        Close the transport if this client created it.

        Example:
            async with RestClient(settings) as client:
                await client.exchange("GET", "/ping")
        """
        if self._owns_transport:
            await self.transport.close()

    async def __aenter__(self) -> "RestClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


async def _run_cancellable(work: Awaitable[T], cancel: asyncio.Event | None) -> T:
    if cancel is None:
        return await work

    work_task = asyncio.ensure_future(work)
    cancel_waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait(
            {work_task, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        cancel_waiter.cancel()
        if not work_task.done():
            work_task.cancel()
            # let the work unwind so the response body gets released
            await asyncio.wait({work_task})

    if work_task.cancelled():
        raise CancellationError("exchange was cancelled")
    return work_task.result()
