import asyncio
from collections.abc import AsyncIterator

import requests
from urllib3.exceptions import ReadTimeoutError

from restclient_sdk.exceptions import ExchangeTimeoutError
from restclient_sdk.exceptions import TransportError

from .base import BaseTransport
from .base import Request
from .base import UnifiedResponse

STREAM_CHUNK_SIZE = 64 * 1024


def _close_abandoned_response(future: asyncio.Future) -> None:
    """Done-callback for a send whose caller went away before it finished."""
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


def _is_read_timeout(error: requests.RequestException) -> bool:
    # iter_content re-raises urllib3's ReadTimeoutError as a ConnectionError
    return isinstance(error, requests.Timeout) or any(
        isinstance(arg, ReadTimeoutError) for arg in error.args
    )


class RequestsTransport(BaseTransport):
    """
    Sync transport implementation using requests.Session.

    This transport wraps the synchronous requests library in an async interface
    to provide compatibility with the async-first SDK design.

    Note: This is a compatibility layer for users who need to use requests
    in an async context. For best performance, use httpx or aiohttp.

    An existing session can be passed in; the transport then leaves closing it
    to the caller.
    """

    def __init__(self, timeout: float = 30.0, session: requests.Session | None = None):
        self._timeout = timeout
        self._owns_session = session is None
        self._session = session or requests.Session()

    async def send(self, request: Request) -> UnifiedResponse:
        """
        Async wrapper around synchronous requests.

        This method runs the synchronous requests call in a thread pool
        to avoid blocking the event loop. The body is streamed, one chunk
        per executor hop.

        The worker thread cannot be interrupted. If the exchange is cancelled
        or times out while it runs, the response it eventually produces is
        closed as soon as it arrives.
        """
        loop = asyncio.get_running_loop()

        def make_request() -> requests.Response:
            return self._session.request(
                method=request.method,
                url=request.url,
                headers=dict(request.headers.items()),
                data=request.body,
                timeout=self._timeout,
                stream=True,
            )

        pending = loop.run_in_executor(None, make_request)
        try:
            response = await asyncio.shield(pending)
        except asyncio.CancelledError:
            pending.add_done_callback(_close_abandoned_response)
            raise
        except requests.Timeout as e:
            raise ExchangeTimeoutError(f"request timed out: {e}") from e
        except requests.RequestException as e:
            raise TransportError(f"failed to send request: {e}") from e

        chunk_iter = response.iter_content(STREAM_CHUNK_SIZE)

        async def chunks() -> AsyncIterator[bytes]:
            try:
                while chunk := await loop.run_in_executor(None, next, chunk_iter, b""):
                    yield chunk
            except requests.RequestException as e:
                if _is_read_timeout(e):
                    raise ExchangeTimeoutError(
                        f"response body read timed out: {e}"
                    ) from e
                raise

        async def close() -> None:
            await loop.run_in_executor(None, response.close)

        return UnifiedResponse(
            response.status_code,
            headers=list(response.headers.items()),
            reason=response.reason,
            chunks=chunks(),
            close=close,
        )

    async def close(self):
        """
        Async wrapper for closing the session.
        """
        if self._owns_session:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._session.close)
