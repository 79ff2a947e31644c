"""
Interceptor interface for RestClient.

This module defines the `Interceptor` protocol used by the SDK and the chain
that runs registered interceptors around the transport call.

An interceptor receives the in-flight request and a `next` callback standing
for "the rest of the chain". It may change the request, then it must await
`next(request)` to continue, and it may inspect or replace the response that
comes back. Interceptors run in registration order on the way in and in
reverse order on the way out, exactly like nested function calls.

An interceptor may also short-circuit: raising an exception (or returning a
synthesized response) without calling `next` means no network call is made.

Current implementations:
- Logging (see: LoggingInterceptor) - logs requests/responses with timing
- Basic auth (see: basic_auth) - sets the Authorization header
- Identity v2 tokens (see: IdentityV2Authenticator) - injects x-auth-token
"""

import base64
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol

from restclient_sdk.exceptions import RestClientError
from restclient_sdk.transport.base import BaseTransport
from restclient_sdk.transport.base import Request
from restclient_sdk.transport.base import UnifiedResponse

NextCallback = Callable[[Request], Awaitable[UnifiedResponse]]


class Interceptor(Protocol):
    async def __call__(self, request: Request, next: NextCallback) -> UnifiedResponse:
        """
        Called for every exchange performed by the client.

        This can be used to:
        - Add or modify headers (auth tokens, trace IDs)
        - Log request details and timing
        - Inspect or replace the response after `next` returns
        - Abort the exchange (by raising before calling `next`)

        Args:
            request (Request): The outgoing request (modifiable)
            next (NextCallback): Continues with the remaining interceptors and
                finally the transport

        Returns:
            UnifiedResponse: Normally the value returned by `next`
        """


class InterceptorChain:
    """
    Ordered interceptors terminated by a transport send.

    The chain keeps no per-call state, so one instance can serve any number of
    concurrent exchanges. The interceptor sequence is copied on construction;
    later registrations on the client do not affect a chain already built.
    """

    def __init__(self, interceptors: Sequence[Interceptor], transport: BaseTransport):
        self._interceptors = tuple(interceptors)
        self._transport = transport

    def __len__(self) -> int:
        return len(self._interceptors)

    async def invoke(self, request: Request) -> UnifiedResponse:
        return await self._invoke_at(request, 0)

    async def _invoke_at(self, request: Request, position: int) -> UnifiedResponse:
        if position >= len(self._interceptors):
            return await self._transport.send(request)

        interceptor = self._interceptors[position]

        async def next_callback(next_request: Request) -> UnifiedResponse:
            return await self._invoke_at(next_request, position + 1)

        response = await interceptor(request, next_callback)
        if response is None:
            raise RestClientError(
                f"interceptor {interceptor!r} returned no response"
            )
        return response


def basic_auth(username: str, password: str) -> Interceptor:
    """Interceptor that sends HTTP basic credentials with every request."""
    credentials = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode(
        "ascii"
    )

    async def intercept(request: Request, next: NextCallback) -> UnifiedResponse:
        request.headers["Authorization"] = f"Basic {credentials}"
        return await next(request)

    return intercept
